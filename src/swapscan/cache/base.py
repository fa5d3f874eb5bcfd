"""Base interface for TTL cache backends.

Backends store JSON-serializable values under a (type, key) pair and drop
them once their time-to-live has passed. Expiry is owned by the backend.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional


class CacheBackend(ABC):
    """Abstract base class for expiring JSON caches."""

    name: str = "base"

    @abstractmethod
    async def get(self, type: str, key: str) -> Optional[Any]:
        """Get a cached value.

        Args:
            type: Namespace of the value (block, swap_output, ...)
            key: Key within the namespace

        Returns:
            The decoded JSON value, or None when absent or expired
        """
        pass

    @abstractmethod
    async def set(self, type: str, key: str, value: Any, ms: int) -> None:
        """Store a value with a time-to-live.

        Args:
            type: Namespace of the value
            key: Key within the namespace
            value: JSON-serializable value
            ms: Time-to-live in milliseconds
        """
        pass

    async def close(self) -> None:
        """Release backend resources."""
        pass

    @staticmethod
    def make_key(type: str, key: str) -> str:
        """Flatten a (type, key) pair into a single string key."""
        return f"{type}:{key}"

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name={self.name})"
