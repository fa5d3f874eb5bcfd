"""Factory for cache backends and the JSON cache facade.

Supported backends:
- memory: in-process dictionary
- redis: Redis server (settings.redis_url)
- sql: SQLAlchemy database (settings.cache_database_url)
"""

import logging
from typing import Any, Optional

from swapscan.cache.base import CacheBackend
from swapscan.cache.memory import MemoryCache
from swapscan.errors import ScanError

logger = logging.getLogger(__name__)

# Cache for backend instances
_backend_cache: dict[str, CacheBackend] = {}


def get_cache_backend(cache: str) -> CacheBackend:
    """Get the cache backend for a cache selector.

    Args:
        cache: Backend name (memory, redis, sql)

    Returns:
        Shared CacheBackend instance for the selector
    """
    name = cache.lower()

    if name in _backend_cache:
        return _backend_cache[name]

    if name == "memory":
        backend: CacheBackend = MemoryCache()

    elif name == "redis":
        from swapscan.cache.redis import RedisCache
        backend = RedisCache()

    elif name == "sql":
        from swapscan.cache.sql import SqlCache
        backend = SqlCache()

    else:
        raise ScanError(400, "UnsupportedCacheType")

    logger.debug(f"Created {name} cache backend")
    _backend_cache[name] = backend
    return backend


def get_supported_cache_types() -> list[str]:
    """Get list of supported cache selectors."""
    return ["memory", "redis", "sql"]


async def get_json_from_cache(cache: str, type: str, key: str) -> Optional[Any]:
    """Get a JSON value from the selected cache (None when absent)."""
    return await get_cache_backend(cache).get(type, key)


async def set_json_in_cache(cache: str, type: str, key: str, value: Any, ms: int) -> None:
    """Store a JSON value in the selected cache for ms milliseconds."""
    await get_cache_backend(cache).set(type, key, value, ms)


async def close_cache_backends() -> None:
    """Close every backend created so far."""
    for backend in list(_backend_cache.values()):
        await backend.close()
    _backend_cache.clear()


def reset_cache_backends() -> None:
    """Clear backend cache (useful for testing)."""
    _backend_cache.clear()
