"""
TenantSecurityConfig Entity

Per-tenant security policy.
"""

from datetime import datetime
from typing import List, Optional
from uuid import UUID, uuid4

from sqlmodel import Column, DateTime, Field, JSON, SQLModel

from .enums import SessionLimitPolicy


class TenantSecurityConfig(SQLModel, table=True):
    """
    TenantSecurityConfig entity - lockout thresholds, session limits, notifications.

    Business Rules:
    - One record per tenant, created lazily with defaults
    - Mutated only by tenant administrators
    - Never deleted
    """

    __tablename__ = "sso_tenant_security_configs"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    tenant_id: str = Field(unique=True, index=True, max_length=64)

    # Sessions
    max_sessions_per_user: int = Field(default=5)
    session_timeout_hours: int = Field(default=24)
    session_limit_policy: SessionLimitPolicy = Field(
        default=SessionLimitPolicy.evict_oldest
    )

    # Brute force
    max_login_attempts: int = Field(default=5)
    lockout_minutes: int = Field(default=15)
    enable_progressive_delay: bool = Field(default=True)

    # Password policy (enforced by the identity API, surfaced here)
    require_strong_password: bool = Field(default=True)
    password_expiry_days: Optional[int] = None

    # Notifications
    notify_on_new_device: bool = Field(default=True)
    notify_on_suspicious_login: bool = Field(default=True)
    notify_on_password_change: bool = Field(default=True)
    alert_email: Optional[str] = Field(default=None, max_length=255)

    # IP lists
    ip_whitelist: List[str] = Field(default_factory=list, sa_column=Column(JSON))
    ip_blacklist: List[str] = Field(default_factory=list, sa_column=Column(JSON))

    # Timestamps
    created_at: datetime = Field(
        default_factory=lambda: datetime.utcnow(), sa_column=Column(DateTime)
    )
    updated_at: datetime = Field(
        default_factory=lambda: datetime.utcnow(), sa_column=Column(DateTime)
    )
    updated_by: Optional[str] = Field(default=None, max_length=255)
