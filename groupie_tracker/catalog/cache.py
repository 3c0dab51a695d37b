# groupie_tracker/catalog/cache.py

import logging
import threading
import time
from concurrent.futures import Future
from typing import Callable, List, Optional

from ..spotify.models import Artist, CacheEntry

DEFAULT_TTL = 300


class ArtistCache:
    """Process-wide artist list with a freshness window.

    A miss starts one aggregation pass and publishes it as a Future; misses
    that arrive while it runs wait on that Future instead of starting their
    own pass. The lock only guards the check, the publish and the final
    store, never the network calls.
    """

    def __init__(self, fetch: Callable[[], List[Artist]], logger: logging.Logger,
                 ttl: float = DEFAULT_TTL, clock: Callable[[], float] = time.monotonic):
        self._fetch = fetch
        self.logger = logger
        self.ttl = ttl
        self.clock = clock
        self._entry: Optional[CacheEntry] = None
        self._inflight: Optional[Future] = None
        self._lock = threading.Lock()

    def _is_fresh(self, entry: Optional[CacheEntry]) -> bool:
        return bool(entry and entry.artists) and self.clock() - entry.fetched_at < self.ttl

    def get_artists(self) -> List[Artist]:
        """Return a copy of the cached artists, refreshing them first when stale"""
        with self._lock:
            if self._is_fresh(self._entry):
                self.logger.debug("Artist cache hit")
                return list(self._entry.artists)

            future = self._inflight
            owner = future is None
            if owner:
                future = Future()
                self._inflight = future

        if not owner:
            self.logger.debug("Artist cache miss, waiting for in-flight refresh")
            return list(future.result())

        self.logger.debug("Artist cache miss, refreshing")
        try:
            artists = tuple(self._fetch())
        except BaseException as e:
            with self._lock:
                self._inflight = None
            future.set_exception(e)
            raise

        with self._lock:
            self._entry = CacheEntry(artists=artists, fetched_at=self.clock())
            self._inflight = None
        future.set_result(artists)
        return list(artists)

    def peek(self) -> Optional[CacheEntry]:
        with self._lock:
            return self._entry
