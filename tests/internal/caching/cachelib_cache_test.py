"""
Tests for the cache implementations
"""

import logging

from logviews.internal.caching.cachelib_cache import CachelibCache, get_cache
from logviews.internal.caching.interface import build_cache_key
from logviews.internal.caching.noop_cache import NoOpCache, noop_cache


def test_cachelib_cache(caplog):
    """
    Test getting, setting, and deleting using the cachelib implementation
    """
    caplog.set_level(logging.DEBUG)
    cache = CachelibCache()
    assert cache.set(key="foo", value="bar", timeout=300) is None
    assert cache.get(key="foo") == "bar"
    assert cache.delete(key="foo") is None
    assert cache.get(key="foo") is None
    assert "CachelibCache: Caching foo for 300s" in caplog.text


def test_noop_cache():
    """
    The noop cache never returns anything
    """
    assert noop_cache.set(key="foo", value="bar") is None
    assert noop_cache.get(key="foo") is None
    assert noop_cache.delete(key="foo") is None


def test_get_cache():
    """
    A zero timeout disables caching
    """
    assert isinstance(get_cache(600), CachelibCache)
    assert isinstance(get_cache(0), NoOpCache)


def test_build_cache_key():
    """
    Keys do not depend on the order of parameters
    """
    key = build_cache_key("tenants", {"a": 1, "b": [1, 2]})
    assert key.startswith("tenants:")
    assert key == build_cache_key("tenants", {"b": [1, 2], "a": 1})
    assert key != build_cache_key("tenants", {"a": 1, "b": [2, 1]})
    assert key != build_cache_key("tenant_time_zone", {"a": 1, "b": [1, 2]})
