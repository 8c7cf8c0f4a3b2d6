"""
In-memory cache layer.

Provides:
- CacheManager: TTL-based cache with LRU eviction and pattern invalidation
- get_cache: Access the global cache instance
"""

from .cache_manager import CacheManager, CacheStats, get_cache

__all__ = [
    "CacheManager",
    "CacheStats",
    "get_cache",
]
