from datetime import datetime
from typing import List, Optional, Tuple

from sqlalchemy import case, delete, func, or_
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from src.app.repositories.login_attempt_repository import ILoginAttemptRepository
from src.domain.entities import LoginAttempt


class LoginAttemptRepository(ILoginAttemptRepository):
    """LoginAttempt repository implementation using SQLModel"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, attempt: LoginAttempt) -> LoginAttempt:
        """Append an attempt (immutable)"""
        self.session.add(attempt)
        await self.session.flush()
        await self.session.refresh(attempt)
        return attempt

    def _window(self, stmt, email: str, ip_address: str, since: datetime, tenant_id: Optional[str]):
        stmt = stmt.where(
            or_(LoginAttempt.email == email, LoginAttempt.ip_address == ip_address),
            LoginAttempt.timestamp > since,
        )
        if tenant_id is not None:
            stmt = stmt.where(LoginAttempt.tenant_id == tenant_id)
        return stmt

    async def count_since(
        self, email: str, ip_address: str, since: datetime, tenant_id: Optional[str] = None
    ) -> Tuple[int, int]:
        stmt = select(
            func.count(LoginAttempt.id),
            func.sum(case((LoginAttempt.success == False, 1), else_=0)),
        )
        stmt = self._window(stmt, email, ip_address, since, tenant_id)
        result = await self.session.execute(stmt)
        total, failed = result.one()
        return int(total or 0), int(failed or 0)

    async def list_recent(
        self,
        email: str,
        ip_address: str,
        since: datetime,
        tenant_id: Optional[str] = None,
        limit: int = 100,
    ) -> List[LoginAttempt]:
        stmt = self._window(select(LoginAttempt), email, ip_address, since, tenant_id)
        stmt = stmt.order_by(LoginAttempt.timestamp.desc()).limit(limit)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def count_failed_by_ip(self, ip_address: str, since: datetime) -> int:
        stmt = select(func.count(LoginAttempt.id)).where(
            LoginAttempt.ip_address == ip_address,
            LoginAttempt.success == False,
            LoginAttempt.timestamp > since,
        )
        result = await self.session.execute(stmt)
        return result.scalar_one()

    async def list_paginated(
        self,
        tenant_id: str,
        page: int = 1,
        limit: int = 50,
        email: Optional[str] = None,
        ip_address: Optional[str] = None,
        success: Optional[bool] = None,
    ) -> Tuple[List[LoginAttempt], int]:
        filters = [LoginAttempt.tenant_id == tenant_id]
        if email:
            filters.append(LoginAttempt.email == email.lower())
        if ip_address:
            filters.append(LoginAttempt.ip_address == ip_address)
        if success is not None:
            filters.append(LoginAttempt.success == success)

        count_stmt = select(func.count(LoginAttempt.id)).where(*filters)
        total = (await self.session.execute(count_stmt)).scalar_one()

        stmt = (
            select(LoginAttempt)
            .where(*filters)
            .order_by(LoginAttempt.timestamp.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all()), total

    async def delete_older_than(self, cutoff: datetime) -> int:
        stmt = delete(LoginAttempt).where(LoginAttempt.timestamp < cutoff)
        result = await self.session.execute(stmt)
        await self.session.flush()
        return result.rowcount
