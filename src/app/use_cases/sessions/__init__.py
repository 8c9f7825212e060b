"""
Session Use Cases

Listing, introspection and revocation of SSO sessions.
"""

from .introspect_session_use_case import IntrospectSessionUseCase
from .list_sessions_use_case import ListSessionsUseCase
from .revoke_sessions_use_case import RevokeSessionsUseCase
from .dtos import (
    IntrospectResponse,
    ListSessionsResponse,
    RevokeAllResponse,
    RevokeSessionResponse,
    SessionInfo,
)

__all__ = [
    "IntrospectSessionUseCase",
    "ListSessionsUseCase",
    "RevokeSessionsUseCase",
    "IntrospectResponse",
    "ListSessionsResponse",
    "RevokeAllResponse",
    "RevokeSessionResponse",
    "SessionInfo",
]
