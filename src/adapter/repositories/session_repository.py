from datetime import datetime
from typing import List, Optional
from uuid import UUID

from sqlalchemy import delete, func
from sqlmodel import select, update
from sqlmodel.ext.asyncio.session import AsyncSession

from src.app.repositories.session_repository import ISessionRepository
from src.domain.entities import Session


class SessionRepository(ISessionRepository):
    """Session repository implementation using SQLModel"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(self, session_id: UUID) -> Optional[Session]:
        """Get session by ID"""
        stmt = (
            select(Session)
            .where(Session.id == session_id)
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_by_refresh_token_hash(self, token_hash: str) -> Optional[Session]:
        """Indexed lookup by HMAC digest"""
        stmt = (
            select(Session)
            .where(Session.refresh_token_hash == token_hash)
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def get_by_previous_refresh_token_hash(self, token_hash: str) -> Optional[Session]:
        """Session whose last rotation retired this digest"""
        stmt = (
            select(Session)
            .where(Session.previous_refresh_token_hash == token_hash)
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def create(self, session_obj: Session) -> Session:
        """Create a new session"""
        self.session.add(session_obj)
        await self.session.flush()
        await self.session.refresh(session_obj)
        return session_obj

    async def update(self, session_obj: Session) -> Session:
        """Update existing session"""
        self.session.add(session_obj)
        await self.session.flush()
        await self.session.refresh(session_obj)
        return session_obj

    async def list_active(
        self, tenant_id: str, now: datetime, user_id: Optional[str] = None
    ) -> List[Session]:
        """Active sessions, most recently active first"""
        stmt = select(Session).where(Session.tenant_id == tenant_id, Session.active_at(now))
        if user_id is not None:
            stmt = stmt.where(Session.user_id == user_id)
        stmt = stmt.order_by(Session.last_activity.desc()).execution_options(
            populate_existing=True
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def count_active(self, tenant_id: str, user_id: str, now: datetime) -> int:
        stmt = select(func.count()).select_from(Session).where(
            Session.tenant_id == tenant_id,
            Session.user_id == user_id,
            Session.active_at(now),
        )
        result = await self.session.execute(stmt)
        return result.scalar_one()

    async def revoke_all_but_newest(
        self, tenant_id: str, user_id: str, keep: int, reason: str, now: datetime
    ) -> int:
        """
        Single UPDATE: revoke active sessions whose id is not among the `keep`
        most recently active ones.
        """
        newest_ids = (
            select(Session.id)
            .where(
                Session.tenant_id == tenant_id,
                Session.user_id == user_id,
                Session.active_at(now),
            )
            .order_by(Session.last_activity.desc(), Session.created_at.desc())
            .limit(max(keep, 0))
        )
        stmt = (
            update(Session)
            .where(
                Session.tenant_id == tenant_id,
                Session.user_id == user_id,
                Session.active_at(now),
                Session.id.not_in(newest_ids),
            )
            .values(is_active=False, revoked_at=now, revoked_reason=reason)
            .execution_options(synchronize_session="fetch")
        )
        result = await self.session.execute(stmt)
        await self.session.flush()
        return result.rowcount

    async def revoke_by_id(self, session_id: UUID, reason: str, now: datetime) -> bool:
        """Conditional on is_active, so only the first revocation counts"""
        stmt = (
            update(Session)
            .where(Session.id == session_id, Session.is_active == True)
            .values(is_active=False, revoked_at=now, revoked_reason=reason)
        )
        result = await self.session.execute(stmt)
        await self.session.flush()
        return result.rowcount > 0

    async def revoke_all_by_user(
        self, tenant_id: str, user_id: str, reason: str, now: datetime
    ) -> int:
        """Revoke all active sessions for a user within a tenant"""
        stmt = (
            update(Session)
            .where(
                Session.tenant_id == tenant_id,
                Session.user_id == user_id,
                Session.is_active == True,
            )
            .values(is_active=False, revoked_at=now, revoked_reason=reason)
        )
        result = await self.session.execute(stmt)
        await self.session.flush()
        return result.rowcount

    async def touch(self, session_id: UUID, now: datetime) -> None:
        """Bump last_activity inside a savepoint so a failure leaves the outer transaction usable"""
        stmt = update(Session).where(Session.id == session_id).values(last_activity=now)
        async with self.session.begin_nested():
            await self.session.execute(stmt)

    async def replace_refresh_token_hash(
        self, session_id: UUID, old_hash: str, new_hash: str, now: datetime
    ) -> bool:
        stmt = (
            update(Session)
            .where(
                Session.id == session_id,
                Session.refresh_token_hash == old_hash,
                Session.active_at(now),
            )
            .values(
                refresh_token_hash=new_hash,
                previous_refresh_token_hash=old_hash,
                last_activity=now,
            )
        )
        result = await self.session.execute(stmt)
        await self.session.flush()
        return result.rowcount > 0

    async def delete_expired(self, now: datetime) -> int:
        stmt = delete(Session).where(Session.expires_at <= now)
        result = await self.session.execute(stmt)
        await self.session.flush()
        return result.rowcount
