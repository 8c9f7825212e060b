"""
BlockedIP Entity

Global or tenant-scoped IP block.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from sqlalchemy import and_, or_
from sqlmodel import Column, DateTime, Field, Index, SQLModel

from .enums import BlockReason


class BlockedIP(SQLModel, table=True):
    """
    BlockedIP entity - IP blacklist entry.

    Business Rules:
    - At most one active block per (ip, tenant) and one active global block per ip
    - Re-blocking merges into the active record (attempt_count incremented)
    - expires_at None means permanent
    - Ended by explicit unblock or by passive expiry
    """

    __tablename__ = "sso_blocked_ips"

    id: UUID = Field(default_factory=uuid4, primary_key=True)

    ip_address: str = Field(max_length=45)
    tenant_id: Optional[str] = Field(default=None, max_length=64)
    is_global: bool = Field(default=False)

    reason: BlockReason = Field(default=BlockReason.manual_block)
    description: Optional[str] = Field(default=None, max_length=1024)
    attempt_count: int = Field(default=1)

    blocked_at: datetime = Field(
        default_factory=lambda: datetime.utcnow(), sa_column=Column(DateTime)
    )
    blocked_by: Optional[str] = Field(default=None, max_length=255)
    expires_at: Optional[datetime] = Field(default=None, sa_column=Column(DateTime))

    is_active: bool = Field(default=True)
    unblocked_at: Optional[datetime] = Field(default=None, sa_column=Column(DateTime))
    unblocked_by: Optional[str] = Field(default=None, max_length=255)

    __table_args__ = (
        Index("idx_blocked_ip_ip_active", "ip_address", "is_active"),
        Index("idx_blocked_ip_tenant_active", "tenant_id", "is_active"),
        Index("idx_blocked_ip_global_active", "is_global", "is_active"),
        Index("idx_blocked_ip_expires_at", "expires_at"),
    )

    @classmethod
    def effective_at(cls, now: datetime):
        return and_(
            cls.is_active == True,
            or_(cls.expires_at == None, cls.expires_at > now),
        )
