import asyncio
from datetime import timedelta
from typing import Any, Dict, Optional, Tuple

from src.app.services.cache import Cache
from src.app.services.clock import Clock


class InMemoryCache(Cache):
    """
    Process-local TTL cache.

    Each worker process keeps its own copy, so a policy change made in one
    process becomes visible to the others only after their entries expire.
    """

    def __init__(self, clock: Clock):
        self.clock = clock
        self._entries: Dict[str, Tuple[Any, Any]] = {}
        self._lock = asyncio.Lock()

    async def get(self, key: str) -> Optional[Any]:
        async with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            value, expires_at = entry
            if expires_at <= self.clock.now():
                del self._entries[key]
                return None
            return value

    async def set(self, key: str, value: Any, ttl_seconds: int) -> None:
        async with self._lock:
            self._entries[key] = (value, self.clock.now() + timedelta(seconds=ttl_seconds))

    async def delete(self, key: str) -> None:
        async with self._lock:
            self._entries.pop(key, None)
