from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional, Tuple

from src.domain.entities import BlockedIP


class IBlockedIPRepository(ABC):
    """Blocked IP repository interface - application layer"""

    @abstractmethod
    async def get_active(
        self, ip_address: str, tenant_id: Optional[str], now: datetime
    ) -> Optional[BlockedIP]:
        """
        Effective block for exactly this scope: tenant_id=None means the
        global block, otherwise the tenant-scoped block.
        """
        pass

    @abstractmethod
    async def find_effective(
        self, ip_address: str, tenant_id: Optional[str], now: datetime
    ) -> Optional[BlockedIP]:
        """Global block first, then the tenant block (if tenant_id given)"""
        pass

    @abstractmethod
    async def create(self, blocked_ip: BlockedIP) -> BlockedIP:
        """Create a block record"""
        pass

    @abstractmethod
    async def update(self, blocked_ip: BlockedIP) -> BlockedIP:
        """Update a block record"""
        pass

    @abstractmethod
    async def deactivate(
        self, ip_address: str, tenant_id: Optional[str], by: Optional[str], now: datetime
    ) -> int:
        """Deactivate active blocks for the scope. Returns count deactivated."""
        pass

    @abstractmethod
    async def list_paginated(
        self,
        tenant_id: Optional[str],
        include_global: bool,
        now: datetime,
        active_only: bool = True,
        page: int = 1,
        limit: int = 50,
    ) -> Tuple[List[BlockedIP], int]:
        """Blocks newest first, with total count"""
        pass

    @abstractmethod
    async def deactivate_expired(self, now: datetime) -> int:
        """Flip is_active off for blocks whose expiry passed"""
        pass
