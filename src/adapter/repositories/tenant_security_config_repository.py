from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from src.app.repositories.tenant_security_config_repository import (
    ITenantSecurityConfigRepository,
)
from src.domain.entities import TenantSecurityConfig


class TenantSecurityConfigRepository(ITenantSecurityConfigRepository):
    """TenantSecurityConfig repository implementation using SQLModel"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_tenant_id(self, tenant_id: str) -> Optional[TenantSecurityConfig]:
        stmt = (
            select(TenantSecurityConfig)
            .where(TenantSecurityConfig.tenant_id == tenant_id)
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def create(self, config: TenantSecurityConfig) -> TenantSecurityConfig:
        """
        Insert inside a savepoint. If a concurrent request created the
        tenant's record first, return that one.
        """
        try:
            async with self.session.begin_nested():
                self.session.add(config)
                await self.session.flush()
        except IntegrityError:
            existing = await self.get_by_tenant_id(config.tenant_id)
            if existing is None:
                raise
            return existing
        await self.session.refresh(config)
        return config

    async def update(self, config: TenantSecurityConfig) -> TenantSecurityConfig:
        self.session.add(config)
        await self.session.flush()
        await self.session.refresh(config)
        return config
