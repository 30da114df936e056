"""
NoOp cache implementation
"""

from logviews.internal.caching.interface import Cache


class NoOpCache(Cache):
    """A cache that never holds anything, used when lookups must always be fresh"""


noop_cache = NoOpCache()
