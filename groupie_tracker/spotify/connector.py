# groupie_tracker/spotify/connector.py

import logging
import time
from typing import Any, Callable, Dict, List, Optional

import requests

from ..utils.config_loader import ConfigError
from .auth import TokenManager
from .exceptions import AuthError, NotFoundError, UpstreamError
from .models import (
    AlbumInfo,
    EarliestAlbum,
    RelatedArtistInfo,
    TrackInfo,
    UpstreamArtist,
    UpstreamArtistFull,
)

SPOTIFY_API_URL = "https://api.spotify.com/v1"
MAX_SEARCH_LIMIT = 50
MAX_ALBUM_SCAN = 50


def release_year(release_date: Optional[str]) -> int:
    """Year from a Spotify release date (YYYY, YYYY-MM or YYYY-MM-DD), 0 when unparseable"""
    if not release_date or len(release_date) < 4:
        return 0
    head = release_date[:4]
    if not head.isdigit():
        return 0
    year = int(head)
    return year if year > 0 else 0


def earliest_album(albums: List[Dict[str, Any]]) -> Optional[EarliestAlbum]:
    """Pick the album with the smallest release year.

    Ties keep the first album seen. When no album has a usable year the
    first album is returned with year 0. None for an empty list.
    """
    if not albums:
        return None

    best = None
    best_year = 0
    for album in albums:
        year = release_year(album.get('release_date'))
        if year and (best is None or year < best_year):
            best, best_year = album, year

    if best is None:
        first = albums[0]
        return EarliestAlbum(name=first.get('name') or "", release_date=first.get('release_date') or "", year=0)
    return EarliestAlbum(name=best.get('name') or "", release_date=best.get('release_date') or "", year=best_year)


class SpotifyConnector:
    def __init__(self, config: dict, logger: logging.Logger,
                 token_manager: Optional[TokenManager] = None,
                 session: Optional[requests.Session] = None,
                 sleep: Callable[[float], None] = time.sleep):
        self.logger = logger
        self.session = session or requests.Session()
        self.tokens = token_manager or TokenManager(config, logger, session=self.session)
        self.api_url = config.get('api_url', SPOTIFY_API_URL).rstrip('/')
        self.market = config.get('market', 'FR')
        self.timeout = config.get('request_timeout', 10)
        self.max_retries = config.get('max_retries', 2)
        self.max_retry_wait = config.get('max_retry_wait', 5)
        self._sleep = sleep

    def _request(self, path: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """GET an API path with a bearer token.

        A 401 invalidates the token and retries once with a fresh one.
        A 429 waits for Retry-After (capped) and retries up to max_retries.
        """
        url = f"{self.api_url}/{path.lstrip('/')}"
        reauthenticated = False
        rate_limited = 0

        while True:
            token = self.tokens.ensure_valid_token()
            start_time = time.time()
            try:
                response = self.session.get(
                    url,
                    params=params,
                    headers={'Authorization': f"Bearer {token.value}"},
                    timeout=self.timeout,
                )
            except requests.RequestException as e:
                self.logger.error(f"Spotify request to {path} failed: {str(e)}")
                raise UpstreamError(f"Request to {path} failed: {e}")
            self.logger.debug(f"GET {path} -> {response.status_code} in {time.time() - start_time:.2f}s")

            if response.status_code == 401:
                if reauthenticated:
                    raise UpstreamError(f"Unauthorized on {path} after re-authentication", status=401)
                self.logger.info("Spotify returned 401, refreshing access token")
                self.tokens.invalidate(token)
                reauthenticated = True
                continue

            if response.status_code == 429:
                if rate_limited >= self.max_retries:
                    raise UpstreamError(f"Rate limited on {path}", status=429)
                try:
                    retry_after = float(response.headers.get('Retry-After', 1))
                except (TypeError, ValueError):
                    retry_after = 1.0
                wait = max(0.0, min(retry_after, self.max_retry_wait))
                self.logger.warning(f"Rate limited, waiting {wait:.1f} seconds...")
                self._sleep(wait)
                rate_limited += 1
                continue

            if response.status_code == 404:
                raise NotFoundError(f"Spotify resource not found: {path}")

            if not 200 <= response.status_code < 300:
                raise UpstreamError(
                    f"Spotify API error (HTTP {response.status_code}) on {path}: {response.text[:200]}",
                    status=response.status_code,
                )

            try:
                data = response.json()
            except ValueError:
                raise UpstreamError(f"Invalid JSON from {path}", status=response.status_code)
            return data if isinstance(data, dict) else {}

    def search_artists(self, query: str, limit: int = 20) -> List[UpstreamArtist]:
        """Search artists; entries without an id or a name are dropped"""
        limit = max(1, min(int(limit), MAX_SEARCH_LIMIT))
        data = self._request('search', {'q': query, 'type': 'artist', 'limit': limit})
        items = (data.get('artists') or {}).get('items') or []

        artists = []
        for item in items:
            artist = UpstreamArtist.from_api(item)
            if artist is None:
                self.logger.debug(f"Dropping incomplete search result for '{query}'")
                continue
            artists.append(artist)
        return artists

    def get_artist_full(self, external_id: str) -> UpstreamArtistFull:
        data = self._request(f"artists/{external_id}")
        artist = UpstreamArtistFull.from_api(data)
        if artist is None:
            raise UpstreamError(f"Incomplete artist profile for {external_id}")
        return artist

    def get_top_tracks(self, external_id: str, market: Optional[str] = None) -> List[TrackInfo]:
        data = self._request(f"artists/{external_id}/top-tracks", {'market': market or self.market})
        return [TrackInfo.from_api(t) for t in data.get('tracks') or [] if t]

    def _album_items(self, external_id: str, limit: int, **params) -> List[Dict[str, Any]]:
        params.update({'limit': max(1, min(limit, MAX_ALBUM_SCAN)), 'market': self.market})
        data = self._request(f"artists/{external_id}/albums", params)
        return [a for a in data.get('items') or [] if a]

    def get_albums(self, external_id: str, limit: int = 20) -> List[AlbumInfo]:
        return [AlbumInfo.from_api(a) for a in self._album_items(external_id, limit)]

    def get_related_artists(self, external_id: str) -> List[RelatedArtistInfo]:
        data = self._request(f"artists/{external_id}/related-artists")
        return [RelatedArtistInfo.from_api(a) for a in data.get('artists') or [] if a]

    def get_earliest_album(self, external_id: str) -> Optional[EarliestAlbum]:
        albums = self._album_items(external_id, MAX_ALBUM_SCAN, include_groups='album')
        return earliest_album(albums)

    def test_connection(self) -> bool:
        """Test the Spotify API connection"""
        try:
            return len(self.search_artists("The Beatles", limit=1)) > 0
        except (ConfigError, AuthError, UpstreamError, NotFoundError) as e:
            self.logger.error(f"Spotify connection test failed: {str(e)}")
            return False
