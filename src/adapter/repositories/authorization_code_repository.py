from datetime import datetime
from typing import Optional

from sqlalchemy import delete
from sqlmodel import select, update
from sqlmodel.ext.asyncio.session import AsyncSession

from src.app.repositories.authorization_code_repository import IAuthorizationCodeRepository
from src.domain.entities import AuthorizationCode


class AuthorizationCodeRepository(IAuthorizationCodeRepository):
    """Authorization code repository implementation using SQLModel"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, auth_code: AuthorizationCode) -> AuthorizationCode:
        self.session.add(auth_code)
        await self.session.flush()
        await self.session.refresh(auth_code)
        return auth_code

    async def get_by_code(self, code: str) -> Optional[AuthorizationCode]:
        stmt = (
            select(AuthorizationCode)
            .where(AuthorizationCode.code == code)
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def consume(self, code: str, now: datetime) -> Optional[AuthorizationCode]:
        """
        Find-and-mark in one statement. The WHERE clause carries the whole
        validity predicate, so of two concurrent callers only one sees rowcount 1.
        """
        stmt = (
            update(AuthorizationCode)
            .where(
                AuthorizationCode.code == code,
                AuthorizationCode.used_at == None,
                AuthorizationCode.expires_at > now,
            )
            .values(used_at=now)
        )
        result = await self.session.execute(stmt)
        await self.session.flush()
        if result.rowcount != 1:
            return None
        return await self.get_by_code(code)

    async def delete_expired(self, now: datetime) -> int:
        stmt = delete(AuthorizationCode).where(AuthorizationCode.expires_at <= now)
        result = await self.session.execute(stmt)
        await self.session.flush()
        return result.rowcount
