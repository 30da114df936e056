"""
Cachelib-based cache implementation
"""

from typing import Any, Optional

from cachelib import SimpleCache

from logviews.internal.caching.interface import Cache, CacheInterface
from logviews.internal.caching.noop_cache import noop_cache


class CachelibCache(Cache):
    """An in-process implementation of CacheInterface backed by cachelib"""

    def __init__(self, threshold: int = 1000, default_timeout: int = 600):
        super().__init__()
        self.cache = SimpleCache(threshold=threshold, default_timeout=default_timeout)

    def get(self, key: str) -> Optional[Any]:
        """Get a cached value from the simple cache"""
        super().get(key)
        return self.cache.get(key)

    def set(self, key: str, value: Any, timeout: int = 600) -> None:
        """Cache a value in the simple cache"""
        super().set(key, value, timeout)
        self.cache.set(key, value, timeout=timeout)

    def delete(self, key: str) -> None:
        """Delete a key in the simple cache"""
        super().delete(key)
        self.cache.delete(key)


def get_cache(timeout: int) -> CacheInterface:
    """
    Cache for tenant lookups; a zero timeout disables caching.
    """
    return CachelibCache(default_timeout=timeout) if timeout > 0 else noop_cache
