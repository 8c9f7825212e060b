from datetime import datetime
from typing import List, Optional, Tuple

from sqlalchemy import func, or_
from sqlmodel import select, update
from sqlmodel.ext.asyncio.session import AsyncSession

from src.app.repositories.blocked_ip_repository import IBlockedIPRepository
from src.domain.entities import BlockedIP


class BlockedIPRepository(IBlockedIPRepository):
    """BlockedIP repository implementation using SQLModel"""

    def __init__(self, session: AsyncSession):
        self.session = session

    @staticmethod
    def _scope(tenant_id: Optional[str]):
        if tenant_id is None:
            return BlockedIP.is_global == True
        return (BlockedIP.tenant_id == tenant_id) & (BlockedIP.is_global == False)

    async def get_active(
        self, ip_address: str, tenant_id: Optional[str], now: datetime
    ) -> Optional[BlockedIP]:
        stmt = (
            select(BlockedIP)
            .where(
                BlockedIP.ip_address == ip_address,
                self._scope(tenant_id),
                BlockedIP.effective_at(now),
            )
            .order_by(BlockedIP.blocked_at.desc())
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def find_effective(
        self, ip_address: str, tenant_id: Optional[str], now: datetime
    ) -> Optional[BlockedIP]:
        global_block = await self.get_active(ip_address, None, now)
        if global_block is not None:
            return global_block
        if tenant_id is None:
            return None
        return await self.get_active(ip_address, tenant_id, now)

    async def create(self, blocked_ip: BlockedIP) -> BlockedIP:
        self.session.add(blocked_ip)
        await self.session.flush()
        await self.session.refresh(blocked_ip)
        return blocked_ip

    async def update(self, blocked_ip: BlockedIP) -> BlockedIP:
        self.session.add(blocked_ip)
        await self.session.flush()
        await self.session.refresh(blocked_ip)
        return blocked_ip

    async def deactivate(
        self, ip_address: str, tenant_id: Optional[str], by: Optional[str], now: datetime
    ) -> int:
        stmt = (
            update(BlockedIP)
            .where(
                BlockedIP.ip_address == ip_address,
                self._scope(tenant_id),
                BlockedIP.is_active == True,
            )
            .values(is_active=False, unblocked_at=now, unblocked_by=by)
            .execution_options(synchronize_session="fetch")
        )
        result = await self.session.execute(stmt)
        await self.session.flush()
        return result.rowcount

    async def list_paginated(
        self,
        tenant_id: Optional[str],
        include_global: bool,
        now: datetime,
        active_only: bool = True,
        page: int = 1,
        limit: int = 50,
    ) -> Tuple[List[BlockedIP], int]:
        filters = []
        if tenant_id is None:
            filters.append(BlockedIP.is_global == True)
        elif include_global:
            filters.append(or_(BlockedIP.tenant_id == tenant_id, BlockedIP.is_global == True))
        else:
            filters.append(BlockedIP.tenant_id == tenant_id)
        if active_only:
            filters.append(BlockedIP.effective_at(now))

        count_stmt = select(func.count(BlockedIP.id)).where(*filters)
        total = (await self.session.execute(count_stmt)).scalar_one()

        stmt = (
            select(BlockedIP)
            .where(*filters)
            .order_by(BlockedIP.blocked_at.desc())
            .offset((page - 1) * limit)
            .limit(limit)
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all()), total

    async def deactivate_expired(self, now: datetime) -> int:
        stmt = (
            update(BlockedIP)
            .where(
                BlockedIP.is_active == True,
                BlockedIP.expires_at != None,
                BlockedIP.expires_at <= now,
            )
            .values(is_active=False, unblocked_at=now, unblocked_by="system")
            .execution_options(synchronize_session="fetch")
        )
        result = await self.session.execute(stmt)
        await self.session.flush()
        return result.rowcount
