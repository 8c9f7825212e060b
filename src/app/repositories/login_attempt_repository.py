from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional, Tuple

from src.domain.entities import LoginAttempt


class ILoginAttemptRepository(ABC):
    """Login attempt repository interface - application layer (append-only)"""

    @abstractmethod
    async def create(self, attempt: LoginAttempt) -> LoginAttempt:
        """Append an attempt"""
        pass

    @abstractmethod
    async def count_since(
        self, email: str, ip_address: str, since: datetime, tenant_id: Optional[str] = None
    ) -> Tuple[int, int]:
        """(total, failed) attempts matching email OR ip after `since`"""
        pass

    @abstractmethod
    async def list_recent(
        self,
        email: str,
        ip_address: str,
        since: datetime,
        tenant_id: Optional[str] = None,
        limit: int = 100,
    ) -> List[LoginAttempt]:
        """Attempts matching email OR ip after `since`, newest first"""
        pass

    @abstractmethod
    async def count_failed_by_ip(self, ip_address: str, since: datetime) -> int:
        """Failed attempts from one IP across all tenants after `since`"""
        pass

    @abstractmethod
    async def list_paginated(
        self,
        tenant_id: str,
        page: int = 1,
        limit: int = 50,
        email: Optional[str] = None,
        ip_address: Optional[str] = None,
        success: Optional[bool] = None,
    ) -> Tuple[List[LoginAttempt], int]:
        """Tenant attempts newest first, with total count"""
        pass

    @abstractmethod
    async def delete_older_than(self, cutoff: datetime) -> int:
        """Purge attempts past the retention window. Returns count deleted."""
        pass
