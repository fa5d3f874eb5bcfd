"""Expiring JSON cache shared by the block walker and the swap detector."""

from swapscan.cache.base import CacheBackend
from swapscan.cache.factory import (
    get_cache_backend,
    get_json_from_cache,
    set_json_in_cache,
)

__all__ = ["CacheBackend", "get_cache_backend", "get_json_from_cache", "set_json_in_cache"]
