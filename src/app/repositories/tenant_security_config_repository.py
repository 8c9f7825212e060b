from abc import ABC, abstractmethod
from typing import Optional

from src.domain.entities import TenantSecurityConfig


class ITenantSecurityConfigRepository(ABC):
    """Tenant security config repository interface - application layer"""

    @abstractmethod
    async def get_by_tenant_id(self, tenant_id: str) -> Optional[TenantSecurityConfig]:
        """Get policy for a tenant"""
        pass

    @abstractmethod
    async def create(self, config: TenantSecurityConfig) -> TenantSecurityConfig:
        """Create policy record"""
        pass

    @abstractmethod
    async def update(self, config: TenantSecurityConfig) -> TenantSecurityConfig:
        """Update policy record"""
        pass
