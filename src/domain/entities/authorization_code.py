"""
AuthorizationCode Entity

One-time credential bridging a successful login to the token exchange.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from sqlmodel import Column, DateTime, Field, Index, JSON, SQLModel

from .enums import CodeChallengeMethod


class AuthorizationCode(SQLModel, table=True):
    """
    AuthorizationCode entity - OAuth2 authorization code with optional PKCE.

    Business Rules:
    - Valid iff used_at is unset and expires_at is in the future
    - Consumed exactly once (conditional update on used_at IS NULL)
    - Consumed even when PKCE verification fails
    - Physically removed by the purge sweep once expired
    """

    __tablename__ = "sso_auth_codes"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    code: str = Field(unique=True, index=True, max_length=128)

    client_id: str = Field(max_length=64, index=True)
    tenant_id: str = Field(max_length=64, index=True)

    user_id: str = Field(max_length=128)
    user_email: str = Field(max_length=255)
    user_role: str = Field(max_length=64)

    redirect_uri: str = Field(max_length=2048)
    state: Optional[str] = Field(default=None, max_length=512)
    scope: Optional[str] = Field(default=None, max_length=512)

    # PKCE
    code_challenge: Optional[str] = Field(default=None, max_length=128)
    code_challenge_method: Optional[CodeChallengeMethod] = None

    # Opaque identity profile carried through to the token exchange
    profile: Optional[dict] = Field(default=None, sa_column=Column(JSON))

    expires_at: datetime = Field(sa_column=Column(DateTime, nullable=False))
    used_at: Optional[datetime] = Field(default=None, sa_column=Column(DateTime))
    created_at: datetime = Field(
        default_factory=lambda: datetime.utcnow(), sa_column=Column(DateTime)
    )

    __table_args__ = (
        Index("idx_auth_code_expires_at", "expires_at"),
        Index("idx_auth_code_used_at", "used_at"),
    )

    def is_valid(self, now: datetime) -> bool:
        return self.used_at is None and self.expires_at > now
