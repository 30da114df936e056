"""
Caching interface, key builder and logging wrapper
"""

import hashlib
import json
import logging
from abc import ABC, abstractmethod
from typing import Any, Mapping, Optional


class CacheInterface(ABC):
    """Cache interface"""

    @abstractmethod
    def get(self, key: str) -> Optional[Any]:
        """Get a cached value"""

    @abstractmethod
    def set(self, key: str, value: Any, timeout: int = 600) -> None:
        """Cache a value"""

    @abstractmethod
    def delete(self, key: str) -> None:
        """Delete a cache key"""


class Cache(CacheInterface):
    """A wrapper for the cache interface to ensure standardized logging"""

    def __init__(self):
        self.logger = logging.getLogger(self.__class__.__name__)

    def get(self, key: str) -> Optional[Any]:  # type: ignore
        """Log the cache check and then use the implemented cache"""
        self.logger.info("%s: Getting cached value for %s", type(self).__name__, key)

    def set(self, key: str, value: Any, timeout: int = 600) -> None:
        """Log the cache attempt and then use the implemented cache"""
        self.logger.info(
            "%s: Caching %s for %ss",
            type(self).__name__,
            key,
            timeout,
        )

    def delete(self, key: str) -> None:
        """Log the cache deletion attempt and then use the implemented cache"""
        self.logger.info("%s: Evicting %s", type(self).__name__, key)


def build_cache_key(prefix: str, params: Mapping[str, Any]) -> str:
    """
    Cache key for a lookup: the prefix and a digest of the canonical JSON of its
    parameters, so that parameter order does not matter.
    """
    canonical = json.dumps(params, sort_keys=True, default=str)
    digest = hashlib.sha256(canonical.encode("utf-8")).hexdigest()
    return f"{prefix}:{digest}"
