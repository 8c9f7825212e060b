"""
Session Entity

Live SSO session for one user in one client application.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from sqlalchemy import and_
from sqlmodel import Column, DateTime, Field, Index, JSON, SQLModel

from .enums import ClientApp, DeviceType


class Session(SQLModel, table=True):
    """
    Session entity - authenticated context shared across client apps.

    Business Rules:
    - Refresh tokens are stored as HMAC-SHA256 digests, never raw
    - Active iff is_active and expires_at > now (expiry is computed, not stored)
    - Revocation is one-way (is_active true -> false)
    - last_activity drives oldest-first eviction under the session cap
    """

    __tablename__ = "sso_sessions"

    id: UUID = Field(default_factory=uuid4, primary_key=True)

    tenant_id: str = Field(max_length=64, nullable=False)
    user_id: str = Field(max_length=128, nullable=False)
    user_email: str = Field(max_length=255)
    user_role: str = Field(max_length=64)
    company_name: Optional[str] = Field(default=None, max_length=255)
    profile: Optional[dict] = Field(default=None, sa_column=Column(JSON))

    # Client info
    client_app: ClientApp = Field(default=ClientApp.other)
    client_id: Optional[str] = Field(default=None, max_length=64)
    storefront_id: Optional[str] = Field(default=None, max_length=128)

    # Device tracking
    ip_address: str = Field(max_length=45)
    country: Optional[str] = Field(default=None, max_length=64)
    city: Optional[str] = Field(default=None, max_length=128)
    device_type: DeviceType = Field(default=DeviceType.unknown)
    browser: Optional[str] = Field(default=None, max_length=64)
    browser_version: Optional[str] = Field(default=None, max_length=32)
    os: Optional[str] = Field(default=None, max_length=64)
    os_version: Optional[str] = Field(default=None, max_length=32)
    user_agent: Optional[str] = Field(default=None, max_length=1024)
    device_fingerprint: Optional[str] = Field(default=None, max_length=128)

    # Token tracking
    refresh_token_hash: str = Field(max_length=64, index=True)
    previous_refresh_token_hash: Optional[str] = Field(default=None, max_length=64, index=True)
    access_token_jti: Optional[str] = Field(default=None, max_length=64)

    # Timestamps
    created_at: datetime = Field(
        default_factory=lambda: datetime.utcnow(), sa_column=Column(DateTime)
    )
    last_activity: datetime = Field(
        default_factory=lambda: datetime.utcnow(), sa_column=Column(DateTime)
    )
    expires_at: datetime = Field(sa_column=Column(DateTime, nullable=False))

    # Status
    is_active: bool = Field(default=True)
    revoked_at: Optional[datetime] = Field(default=None, sa_column=Column(DateTime))
    revoked_reason: Optional[str] = Field(default=None, max_length=64)

    __table_args__ = (
        Index("idx_session_tenant_user_active", "tenant_id", "user_id", "is_active"),
        Index("idx_session_tenant_active", "tenant_id", "is_active"),
        Index("idx_session_expires_at", "expires_at"),
        Index("idx_session_last_activity", "last_activity"),
    )

    def is_active_at(self, now: datetime) -> bool:
        return self.is_active and self.expires_at > now

    @classmethod
    def active_at(cls, now: datetime):
        """SQL predicate matching is_active_at; shared by reads and sweeps."""
        return and_(cls.is_active == True, cls.expires_at > now)
