"""
AuthClient Entity

Registered relying-party application.
"""

from datetime import datetime
from typing import List, Optional
from uuid import UUID, uuid4

from sqlmodel import Column, DateTime, Field, JSON, SQLModel

from .enums import AuthClientType, ClientApp

CLIENT_ID_PATTERN = r"^[a-z0-9-]{3,64}$"


class AuthClient(SQLModel, table=True):
    """
    AuthClient entity - OAuth client registered by platform operators.

    Business Rules:
    - client_id is lowercase alphanumerics and dashes
    - Secret stored as bcrypt hash, shown once at creation/regeneration
    - redirect_uri must match a registered URI exactly
    - Inactive clients cannot authorize or exchange codes
    """

    __tablename__ = "sso_auth_clients"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    client_id: str = Field(unique=True, index=True, max_length=64)
    client_secret_hash: str = Field(max_length=60)  # Bcrypt output

    name: str = Field(max_length=255)
    type: AuthClientType = Field(default=AuthClientType.web)
    client_app: ClientApp = Field(default=ClientApp.other)

    redirect_uris: List[str] = Field(default_factory=list, sa_column=Column(JSON))
    allowed_origins: List[str] = Field(default_factory=list, sa_column=Column(JSON))

    logo_url: Optional[str] = Field(default=None, max_length=2048)
    description: Optional[str] = Field(default=None, max_length=1024)

    is_first_party: bool = Field(default=False)
    is_active: bool = Field(default=True)

    created_at: datetime = Field(
        default_factory=lambda: datetime.utcnow(), sa_column=Column(DateTime)
    )
    updated_at: datetime = Field(
        default_factory=lambda: datetime.utcnow(), sa_column=Column(DateTime)
    )
