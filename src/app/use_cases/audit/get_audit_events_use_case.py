"""
Get Audit Events Use Case

Pages through a tenant's audit trail with an opaque keyset cursor.
"""

import base64
import binascii
from datetime import datetime
from typing import Optional, Tuple
from uuid import UUID

from libs.result import Error, Result, Return
from src.app.services.unit_of_work import UnitOfWork
from src.domain.entities import AuditEvent
from src.domain.identity import is_tenant_admin
from .dtos import AuditEventItem, AuditEventPage


def encode_cursor(event: AuditEvent) -> str:
    raw = f"{event.created_at.isoformat()}|{event.id}"
    return base64.urlsafe_b64encode(raw.encode()).decode().rstrip("=")


def decode_cursor(cursor: str) -> Optional[Tuple[datetime, UUID]]:
    """(created_at, id) of the last event on the previous page, or None if malformed"""
    try:
        padded = cursor + "=" * (-len(cursor) % 4)
        created_at, event_id = base64.urlsafe_b64decode(padded).decode().split("|")
        return datetime.fromisoformat(created_at), UUID(event_id)
    except (binascii.Error, UnicodeDecodeError, ValueError):
        return None


class GetAuditEventsUseCase:
    """
    Use case for GET /audit.

    Business Rules:
    - Caller must be a tenant admin; only the caller's tenant is visible
    - Newest first; next_cursor is None on the last page
    - A cursor that does not decode is rejected instead of restarting from the top
    """

    def __init__(self, uow: UnitOfWork):
        self.uow = uow

    async def execute(
        self,
        tenant_id: str,
        role: str,
        limit: int = 50,
        cursor: Optional[str] = None,
        action: Optional[str] = None,
        actor: Optional[str] = None,
    ) -> Result[AuditEventPage]:
        if not is_tenant_admin(role):
            return Return.err(Error("FORBIDDEN", "You do not have permission to view audit events"))

        before = None
        if cursor:
            before = decode_cursor(cursor)
            if before is None:
                return Return.err(Error("INVALID_CURSOR", "Malformed pagination cursor"))

        async with self.uow:
            # One extra row tells whether another page exists
            events = await self.uow.audit_events.list_for_tenant(
                tenant_id, limit=limit + 1, before=before, action=action, actor=actor
            )

        next_cursor = None
        if len(events) > limit:
            events = events[:limit]
            next_cursor = encode_cursor(events[-1])

        return Return.ok(
            AuditEventPage(
                events=[
                    AuditEventItem(
                        id=str(event.id),
                        action=event.action,
                        actor=event.actor,
                        timestamp=event.created_at.isoformat() + "Z",
                        metadata=event.event_metadata or {},
                    )
                    for event in events
                ],
                next_cursor=next_cursor,
            )
        )
