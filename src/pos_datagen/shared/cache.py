"""
Bounded TTL cache for static discount, combo and coupon definitions.

Definitions rarely change during a run, so reading them for every order is
wasteful. Entries expire ``ttl`` seconds after insertion (5 minutes by
default) and the cache never holds more than ``maxsize`` keys.
"""

import logging
import threading
import time
from collections.abc import Callable
from typing import Any

from cachetools import TTLCache

logger = logging.getLogger(__name__)

DEFAULT_DEFINITION_TTL = 300
DEFAULT_DEFINITION_MAXSIZE = 64


class DefinitionCache:
    """Explicit, invalidatable wrapper around ``cachetools.TTLCache``."""

    def __init__(
        self,
        maxsize: int = DEFAULT_DEFINITION_MAXSIZE,
        ttl: float = DEFAULT_DEFINITION_TTL,
        timer: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize the cache.

        Args:
            maxsize: Maximum number of cached keys (LRU-style eviction beyond it)
            ttl: Seconds an entry stays valid after being loaded
            timer: Clock used for expiry, injectable for tests
        """
        if maxsize < 1:
            raise ValueError("maxsize must be at least 1")
        if ttl <= 0:
            raise ValueError("ttl must be positive")

        self._cache: TTLCache[str, Any] = TTLCache(maxsize=maxsize, ttl=ttl, timer=timer)
        self._lock = threading.RLock()

    @property
    def maxsize(self) -> int:
        return int(self._cache.maxsize)

    @property
    def ttl(self) -> float:
        return float(self._cache.ttl)

    def get(self, key: str, loader: Callable[[], Any]) -> Any:
        """
        Return the cached value for ``key``, loading it on a miss.

        The loader is only called when the key is absent or expired. Loader
        exceptions propagate and nothing is cached.
        """
        with self._lock:
            try:
                return self._cache[key]
            except KeyError:
                pass

            value = loader()
            self._cache[key] = value
            logger.debug(f"Loaded definitions for '{key}' into cache")
            return value

    def invalidate_if_expired(self) -> int:
        """Drop expired entries, returning how many were removed."""
        with self._lock:
            expired = self._cache.expire()
            if expired:
                logger.debug(f"Expired {len(expired)} cached definition sets")
            return len(expired)

    def invalidate(self, key: str | None = None) -> None:
        """Drop one key, or every key when ``key`` is None."""
        with self._lock:
            if key is None:
                self._cache.clear()
            else:
                self._cache.pop(key, None)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._cache

    def __len__(self) -> int:
        with self._lock:
            return len(self._cache)
