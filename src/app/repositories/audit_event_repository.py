from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional, Tuple
from uuid import UUID

from src.domain.entities import AuditEvent


class IAuditEventRepository(ABC):
    """AuditEvent repository interface - application layer"""

    @abstractmethod
    async def create(self, audit_event: AuditEvent) -> AuditEvent:
        pass

    @abstractmethod
    async def list_for_tenant(
        self,
        tenant_id: str,
        limit: int,
        before: Optional[Tuple[datetime, UUID]] = None,
        action: Optional[str] = None,
        actor: Optional[str] = None,
    ) -> List[AuditEvent]:
        """
        Newest first, ordered by (created_at, id).

        before: keyset position; only events strictly older than it are returned
        """
        pass
