"""
LoginAttempt Entity

Append-only audit record of every login attempt.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from sqlmodel import Column, DateTime, Field, Index, SQLModel

from .enums import LoginFailureReason


class LoginAttempt(SQLModel, table=True):
    """
    LoginAttempt entity - immutable record of a login attempt.

    Business Rules:
    - Never updated
    - tenant_id nullable for platform-level attempts
    - Purged after the retention window (30 days by default)
    """

    __tablename__ = "sso_login_attempts"

    id: UUID = Field(default_factory=uuid4, primary_key=True)

    tenant_id: Optional[str] = Field(default=None, max_length=64)
    email: str = Field(max_length=255)
    ip_address: str = Field(max_length=45)

    success: bool = Field(default=False)
    failure_reason: Optional[LoginFailureReason] = None

    device_type: Optional[str] = Field(default=None, max_length=16)
    browser: Optional[str] = Field(default=None, max_length=64)
    os: Optional[str] = Field(default=None, max_length=64)
    user_agent: Optional[str] = Field(default=None, max_length=1024)
    country: Optional[str] = Field(default=None, max_length=64)
    city: Optional[str] = Field(default=None, max_length=128)
    client_id: Optional[str] = Field(default=None, max_length=64)

    timestamp: datetime = Field(
        default_factory=lambda: datetime.utcnow(), sa_column=Column(DateTime)
    )

    __table_args__ = (
        Index("idx_login_attempt_email_ts", "email", "timestamp"),
        Index("idx_login_attempt_ip_ts", "ip_address", "timestamp"),
        Index("idx_login_attempt_tenant_ts", "tenant_id", "timestamp"),
        Index("idx_login_attempt_timestamp", "timestamp"),
    )
