"""In-process TTL cache."""

import json
import time
from typing import Any, Callable, Optional

from swapscan.cache.base import CacheBackend

SWEEP_EVERY = 100


class MemoryCache(CacheBackend):
    """Dictionary-backed cache with lazy expiry.

    Values are kept as JSON text so that callers never hold a reference
    into the cache. Expired entries are dropped when read, and every
    SWEEP_EVERY writes all expired entries are dropped.
    """

    name = "memory"

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._items: dict[str, tuple[float, str]] = {}
        self._writes = 0

    async def get(self, type: str, key: str) -> Optional[Any]:
        cache_key = self.make_key(type, key)
        item = self._items.get(cache_key)
        if item is None:
            return None

        expires_at, raw = item
        if self._clock() >= expires_at:
            del self._items[cache_key]
            return None

        return json.loads(raw)

    async def set(self, type: str, key: str, value: Any, ms: int) -> None:
        expires_at = self._clock() + ms / 1000
        self._items[self.make_key(type, key)] = (expires_at, json.dumps(value))

        self._writes += 1
        if self._writes % SWEEP_EVERY == 0:
            self.sweep()

    def sweep(self) -> int:
        """Drop expired entries. Returns how many were dropped."""
        now = self._clock()
        expired = [key for key, (expires_at, _) in self._items.items() if now >= expires_at]
        for key in expired:
            del self._items[key]
        return len(expired)

    async def close(self) -> None:
        self._items.clear()

    def __len__(self) -> int:
        return len(self._items)
