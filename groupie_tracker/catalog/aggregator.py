# groupie_tracker/catalog/aggregator.py

import logging
from typing import Dict, List, Optional, Sequence

from tqdm import tqdm

from ..spotify.connector import SpotifyConnector
from ..spotify.exceptions import NotFoundError, UpstreamError
from ..spotify.models import Artist, UpstreamArtist
from .best_effort import best_effort

SEED_QUERIES = [
    'genre:rock', 'genre:pop', 'genre:rap', 'genre:jazz', 'genre:electronic',
    'genre:indie', 'genre:metal', 'genre:hip-hop', 'genre:r&b', 'genre:soul',
    'genre:reggae', 'genre:french', 'genre:k-pop',
    'year:1960-1969', 'year:1970-1979', 'year:1980-1989', 'year:1990-1999',
    'year:2000-2009', 'year:2010-2019', 'year:2020-2029',
    'tag:new',
]

NAME_SEEDS = [
    'Queen', 'The Beatles', 'Daft Punk', 'Beyoncé', 'Stromae', 'Kendrick Lamar',
    'Radiohead', 'Metallica', 'Miles Davis', 'Aya Nakamura', 'Coldplay', 'Drake',
    'Nirvana', 'Rihanna', 'Gorillaz', 'Bob Marley & The Wailers', 'BTS',
    'Pink Floyd', 'Edith Piaf', 'Arctic Monkeys',
]

FALLBACK_QUERY = 'artist'
FALLBACK_LIMIT = 50


class ArtistAggregator:
    def __init__(self, spotify: SpotifyConnector, config: dict, logger: logging.Logger,
                 seed_queries: Optional[Sequence[str]] = None,
                 name_seeds: Optional[Sequence[str]] = None):
        """
        Initialize the aggregator

        Args:
            spotify: Upstream client used for searches and album lookups
            config: 'catalog' configuration section
            logger: Logger instance
            seed_queries: Ordered first-pass queries (genres, decades, new releases)
            name_seeds: Well-known artist names for the gap-filling pass
        """
        self.spotify = spotify
        self.logger = logger
        self.seed_queries = list(SEED_QUERIES if seed_queries is None else seed_queries)
        self.name_seeds = list(NAME_SEEDS if name_seeds is None else name_seeds)

        self.per_query_limit = config.get('per_query_limit', 20)
        self.target_total = config.get('target_total', 150)
        self.min_threshold = config.get('min_threshold', 50)
        self.floor = config.get('floor', 20)
        self.show_progress = config.get('show_progress', False)

    def _collect(self, queries: Sequence[str], limit: int, found: Dict[str, UpstreamArtist]) -> None:
        """Run queries in order, keeping the first occurrence of each external ID"""
        for query in queries:
            if len(found) >= self.target_total:
                return
            try:
                results = self.spotify.search_artists(query, limit)
            except (UpstreamError, NotFoundError) as e:
                self.logger.warning(f"Seed query '{query}' failed: {str(e)}")
                continue

            added = 0
            for artist in results:
                if artist.external_id not in found:
                    found[artist.external_id] = artist
                    added += 1
                    if len(found) >= self.target_total:
                        break
            self.logger.debug(f"Seed query '{query}': {len(results)} results, {added} new")

    def fetch_all(self) -> List[Artist]:
        """Run one aggregation pass and return artists with sequential local IDs"""
        found: Dict[str, UpstreamArtist] = {}

        self._collect(self.seed_queries, self.per_query_limit, found)

        if len(found) < self.min_threshold:
            self.logger.info(f"Only {len(found)} artists from seed queries, searching well-known names")
            self._collect(self.name_seeds, self.per_query_limit, found)

        if len(found) < self.floor:
            self.logger.warning(f"Only {len(found)} artists collected, running fallback query")
            try:
                results = self.spotify.search_artists(FALLBACK_QUERY, FALLBACK_LIMIT)
            except (UpstreamError, NotFoundError) as e:
                if not found:
                    raise UpstreamError(f"No artists could be fetched: {e}", status=getattr(e, 'status', None))
                self.logger.warning(f"Fallback query failed, keeping {len(found)} artists: {str(e)}")
                results = []
            for artist in results:
                found.setdefault(artist.external_id, artist)

        if not found:
            raise UpstreamError("No artists could be fetched: every query returned nothing")

        artists = []
        for index, upstream in enumerate(tqdm(list(found.values()), desc="Resolving first albums",
                                              disable=not self.show_progress)):
            earliest = best_effort(self.logger, f"First album of {upstream.name}",
                                   self.spotify.get_earliest_album, upstream.external_id)
            artists.append(Artist.from_upstream(index + 1, upstream, earliest))

        self.logger.info(f"Aggregated {len(artists)} artists")
        return artists
