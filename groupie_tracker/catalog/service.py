# groupie_tracker/catalog/service.py

import dataclasses
import logging
from typing import List, Optional, Sequence

from ..spotify.connector import SpotifyConnector
from ..spotify.exceptions import NotFoundError
from ..spotify.models import Artist, ArtistDetail
from .best_effort import best_effort
from .cache import ArtistCache
from .filters import matches_query, normalize_artist_name


class ArtistCatalog:
    """Entry point for the page layer: cached artist list plus uncached detail lookups"""

    def __init__(self, cache: ArtistCache, spotify: SpotifyConnector, logger: logging.Logger):
        self.cache = cache
        self.spotify = spotify
        self.logger = logger

    def list_artists(self) -> List[Artist]:
        return self.cache.get_artists()

    def cached_artist_count(self) -> Optional[int]:
        """Size of the current cache entry, or None before the first pass. Never fetches."""
        entry = self.cache.peek()
        return None if entry is None else len(entry.artists)

    def get_artist(self, local_id: int) -> Artist:
        for artist in self.cache.get_artists():
            if artist.local_id == local_id:
                return artist
        raise NotFoundError(f"Artist with ID {local_id} not found")

    def get_artist_detail(self, local_id: int) -> ArtistDetail:
        """Fetch profile, top tracks, albums and related artists for a cached artist.

        The profile is required; the three lists degrade to empty when their
        calls fail. Nothing here is cached.
        """
        artist = self.get_artist(local_id)
        self.logger.info(f"Fetching details for {artist.name} ({artist.external_id})")

        full = self.spotify.get_artist_full(artist.external_id)
        artist = dataclasses.replace(
            artist,
            name=full.name or artist.name,
            image_url=full.image_url or artist.image_url,
            genres=tuple(full.genres) or artist.genres,
            popularity=full.popularity,
            follower_count=full.followers,
            external_profile_url=full.profile_url or artist.external_profile_url,
        )

        top_tracks = best_effort(self.logger, "Top tracks", self.spotify.get_top_tracks, artist.external_id)
        albums = best_effort(self.logger, "Albums", self.spotify.get_albums, artist.external_id)
        related = best_effort(self.logger, "Related artists", self.spotify.get_related_artists, artist.external_id)

        return ArtistDetail(
            artist=artist,
            top_tracks=top_tracks or [],
            albums=albums or [],
            related_artists=related or [],
        )

    def search(self, query: str) -> List[Artist]:
        return [a for a in self.cache.get_artists() if matches_query(a, query)]

    def suggestions(self, query: str, limit: int = 10) -> List[str]:
        """Artist names and genres for autosuggest, prefix matches first"""
        query = query.strip().lower()
        if not query:
            return []

        prefix, contains = [], []
        seen = set()
        for artist in self.cache.get_artists():
            for candidate in (artist.name, *artist.genres):
                key = candidate.lower()
                if key in seen or query not in key:
                    continue
                seen.add(key)
                (prefix if key.startswith(query) else contains).append(candidate)
        return (prefix + contains)[:limit]

    def resolve_featured_artist(self, variants: Sequence[str]) -> Optional[int]:
        """Local ID of the first name variant present in the catalog"""
        artists = self.cache.get_artists()
        by_name = {}
        for artist in artists:
            by_name.setdefault(normalize_artist_name(artist.name), artist)

        for variant in variants:
            artist = by_name.get(normalize_artist_name(variant))
            if artist is not None:
                return artist.local_id
        self.logger.info(f"Featured artist not found under any of {list(variants)}")
        return None

    def artists_for_location(self, location: str) -> List[Artist]:
        location_lower = location.strip().lower()
        if not location_lower:
            return []
        return [
            a for a in self.cache.get_artists()
            if location_lower in a.name.lower() or any(location_lower in g.lower() for g in a.genres)
        ]
