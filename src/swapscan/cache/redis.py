"""Redis TTL cache.

Uses the asyncio client from redis-py. Expiry is delegated to Redis via
SET ... PX.
"""

import json
import logging
from typing import Any, Optional

import redis.asyncio as redis

from swapscan.cache.base import CacheBackend
from swapscan.config import get_settings

logger = logging.getLogger(__name__)


class RedisCache(CacheBackend):
    """Cache stored in Redis under "{type}:{key}" keys."""

    name = "redis"

    def __init__(self, url: Optional[str] = None, client: Optional[redis.Redis] = None):
        """Initialize Redis cache.

        Args:
            url: Redis URL, defaults to settings.redis_url
            client: Pre-built client (mainly for tests)
        """
        self.url = url or get_settings().redis_url
        self._client: Optional[redis.Redis] = client

    def _get_client(self) -> redis.Redis:
        """Get or create the Redis client."""
        if self._client is None:
            self._client = redis.Redis.from_url(self.url, decode_responses=True)
            logger.info(f"Redis cache connected to {self.url.rsplit('@', 1)[-1]}")
        return self._client

    async def get(self, type: str, key: str) -> Optional[Any]:
        raw = await self._get_client().get(self.make_key(type, key))
        if raw is None:
            return None
        return json.loads(raw)

    async def set(self, type: str, key: str, value: Any, ms: int) -> None:
        await self._get_client().set(self.make_key(type, key), json.dumps(value), px=ms)

    async def close(self) -> None:
        """Close the Redis connection pool."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None
