"""
In-memory cache for sheet snapshots.

Downstream readers (duplicate scan, gap scan) may reuse a recent snapshot;
every structural mutation invalidates it so nobody serves a stale
identifier mapping.

Features:
- TTL-based entry expiration with lazy cleanup
- Glob pattern-based key invalidation
- Thread-safe operations with RLock
- LRU eviction when max size reached
- Hit/miss statistics tracking
"""

import fnmatch
import logging
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class CacheStats:
    """Cache statistics."""

    hits: int = 0
    misses: int = 0
    size: int = 0
    hit_rate: float = 0.0
    invalidations: int = 0

    def to_dict(self) -> dict:
        return {
            "hits": self.hits,
            "misses": self.misses,
            "size": self.size,
            "hit_rate": self.hit_rate,
            "invalidations": self.invalidations,
        }


class CacheManager:
    """Thread-safe in-memory cache with TTL, LRU eviction, and pattern invalidation."""

    def __init__(self, max_size: int = 500, default_ttl: int = 60):
        """
        Initialize cache manager.

        Args:
            max_size: Maximum number of entries before LRU eviction.
            default_ttl: Default TTL in seconds.
        """
        # key -> (value, expiry_time, access_time)
        self._cache: dict[str, tuple[Any, float, float]] = {}
        self._lock = threading.RLock()
        self._max_size = max_size
        self._default_ttl = default_ttl
        self._hits = 0
        self._misses = 0
        self._invalidations = 0

    def get(self, key: str) -> Any | None:
        """Return the cached value, or None when absent or expired."""
        with self._lock:
            entry = self._cache.get(key)
            if entry is None:
                self._misses += 1
                return None

            value, expiry_time, _access_time = entry
            if time.time() >= expiry_time:
                del self._cache[key]
                self._misses += 1
                return None

            self._cache[key] = (value, expiry_time, time.time())
            self._hits += 1
            return value

    def set(self, key: str, value: Any, ttl_seconds: int | None = None) -> None:
        if ttl_seconds is None:
            ttl_seconds = self._default_ttl

        with self._lock:
            now = time.time()
            self._cache[key] = (value, now + ttl_seconds, now)
            if len(self._cache) > self._max_size:
                self._evict_lru()

    def get_or_load(self, key: str, loader: Callable[[], T], ttl_seconds: int | None = None) -> T:
        """
        Return the cached value for key, calling loader on a miss.

        The loader runs outside the lock; two concurrent misses may both load.
        """
        cached = self.get(key)
        if cached is not None:
            return cached
        value = loader()
        self.set(key, value, ttl_seconds)
        return value

    def delete(self, key: str) -> None:
        """Invalidate a single key."""
        with self._lock:
            if self._cache.pop(key, None) is not None:
                self._invalidations += 1
                logger.debug(f"Invalidated cache key: {key}")

    def invalidate_pattern(self, pattern: str) -> int:
        """
        Invalidate all keys matching a glob pattern, e.g. "sheet_data:*".

        Returns:
            Number of keys invalidated
        """
        with self._lock:
            keys_to_delete = [key for key in self._cache if fnmatch.fnmatch(key, pattern)]
            for key in keys_to_delete:
                del self._cache[key]
            self._invalidations += len(keys_to_delete)
            return len(keys_to_delete)

    def clear(self) -> None:
        """Drop every entry."""
        with self._lock:
            self._invalidations += len(self._cache)
            self._cache.clear()

    def stats(self) -> CacheStats:
        with self._lock:
            total_requests = self._hits + self._misses
            return CacheStats(
                hits=self._hits,
                misses=self._misses,
                size=len(self._cache),
                hit_rate=self._hits / total_requests if total_requests > 0 else 0.0,
                invalidations=self._invalidations,
            )

    def _evict_lru(self) -> None:
        """Evict least-recently-used entry. Caller holds the lock."""
        if not self._cache:
            return
        lru_key = min(self._cache, key=lambda k: self._cache[k][2])
        del self._cache[lru_key]
        logger.debug(f"Evicted LRU key: {lru_key}")


# Global cache instance
_cache_instance: CacheManager | None = None


def get_cache() -> CacheManager:
    """Get or create the process-wide cache."""
    global _cache_instance
    if _cache_instance is None:
        from outreach.config import CACHE_TTL_SECONDS

        _cache_instance = CacheManager(default_ttl=CACHE_TTL_SECONDS)
    return _cache_instance
