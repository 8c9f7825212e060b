"""
AuditEvent Entity

Append-only trail of logins, revocations, IP blocks, policy and client changes.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from sqlmodel import Column, DateTime, Field, Index, JSON, SQLModel


class AuditEvent(SQLModel, table=True):
    """
    AuditEvent entity - one security-relevant action.

    Business Rules:
    - Never updated or deleted
    - tenant_id is None for platform events (global blocks, client registry, purges)
    - actor is a user id, "admin_api" for admin key calls, or "system"
    - Listing order is (created_at, id) descending, so equal timestamps still page stably
    """

    __tablename__ = "audit_events"

    id: UUID = Field(default_factory=uuid4, primary_key=True)

    tenant_id: Optional[str] = Field(default=None, max_length=64)
    actor: Optional[str] = Field(default=None, max_length=128)
    action: str = Field(max_length=64)  # login, ip_auto_blocked, security_config_updated, ...
    event_metadata: Optional[dict] = Field(default=None, sa_column=Column(JSON))

    created_at: datetime = Field(
        default_factory=lambda: datetime.utcnow(), sa_column=Column(DateTime, nullable=False)
    )

    __table_args__ = (
        Index("idx_audit_tenant_created", "tenant_id", "created_at"),
        Index("idx_audit_tenant_action", "tenant_id", "action"),
        Index("idx_audit_actor", "actor"),
    )
