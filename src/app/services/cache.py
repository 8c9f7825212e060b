from abc import ABC, abstractmethod
from typing import Any, Optional


class Cache(ABC):
    """Key/value cache with per-entry TTL"""

    @abstractmethod
    async def get(self, key: str) -> Optional[Any]:
        """Return cached value, or None if absent or expired"""
        pass

    @abstractmethod
    async def set(self, key: str, value: Any, ttl_seconds: int) -> None:
        """Store value for ttl_seconds"""
        pass

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Invalidate key"""
        pass
