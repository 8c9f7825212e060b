"""
Session Use Case DTOs (Data Transfer Objects)

All Command and Response classes for session domain.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel

from src.domain.entities import Session


class SessionInfo(BaseModel):
    """Active session as shown to users and tenant admins"""

    id: str
    tenant_id: str
    user_id: str
    user_email: str
    user_role: str
    client_app: str
    client_id: Optional[str] = None
    ip_address: str
    country: Optional[str] = None
    city: Optional[str] = None
    device_type: str
    browser: Optional[str] = None
    browser_version: Optional[str] = None
    os: Optional[str] = None
    os_version: Optional[str] = None
    created_at: datetime
    last_activity: datetime
    expires_at: datetime
    is_current: bool = False

    @classmethod
    def from_session(cls, session: Session, current_session_id: Optional[str] = None) -> "SessionInfo":
        return cls(
            id=str(session.id),
            tenant_id=session.tenant_id,
            user_id=session.user_id,
            user_email=session.user_email,
            user_role=session.user_role,
            client_app=getattr(session.client_app, "value", session.client_app),
            client_id=session.client_id,
            ip_address=session.ip_address,
            country=session.country,
            city=session.city,
            device_type=getattr(session.device_type, "value", session.device_type),
            browser=session.browser,
            browser_version=session.browser_version,
            os=session.os,
            os_version=session.os_version,
            created_at=session.created_at,
            last_activity=session.last_activity,
            expires_at=session.expires_at,
            is_current=current_session_id is not None and str(session.id) == current_session_id,
        )


class ListSessionsResponse(BaseModel):
    """Response for list sessions use case"""

    sessions: List[SessionInfo]
    total: int


class IntrospectResponse(BaseModel):
    """Session status for relying parties; inactive sessions carry the reason"""

    active: bool
    reason: Optional[str] = None
    session: Optional[SessionInfo] = None


class RevokeAllResponse(BaseModel):
    """Response for bulk revocation"""

    revoked_count: int
    target_user_id: str


class RevokeSessionResponse(BaseModel):
    """Response for single-session revocation"""

    session_id: str
    revoked: bool
