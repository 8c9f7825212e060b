from typing import List, Optional

from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from src.app.repositories.auth_client_repository import IAuthClientRepository
from src.domain.entities import AuthClient


class AuthClientRepository(IAuthClientRepository):
    """AuthClient repository implementation using SQLModel"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_client_id(self, client_id: str) -> Optional[AuthClient]:
        stmt = (
            select(AuthClient)
            .where(AuthClient.client_id == client_id)
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def list_all(self, include_inactive: bool = False) -> List[AuthClient]:
        stmt = select(AuthClient)
        if not include_inactive:
            stmt = stmt.where(AuthClient.is_active == True)
        stmt = stmt.order_by(AuthClient.created_at.desc())
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def create(self, client: AuthClient) -> AuthClient:
        self.session.add(client)
        await self.session.flush()
        await self.session.refresh(client)
        return client

    async def update(self, client: AuthClient) -> AuthClient:
        self.session.add(client)
        await self.session.flush()
        await self.session.refresh(client)
        return client
