"""
Use Cases

Organized into domain folders:
- auth/: Authorization requests, login, token exchange, refresh, logout
- sessions/: Session listing, introspection and revocation
- security/: Tenant security policy, login attempts, IP blocks
- admin/: Auth clients and maintenance
- audit/: Audit logs
"""

from .auth import (
    AuthorizeUseCase,
    LoginUseCase,
    ExchangeCodeUseCase,
    RefreshTokenUseCase,
    LogoutUseCase,
)
from .sessions import (
    IntrospectSessionUseCase,
    ListSessionsUseCase,
    RevokeSessionsUseCase,
)
from .security import (
    SecurityConfigUseCase,
    ListLoginAttemptsUseCase,
    IPBlockUseCase,
)
from .admin import (
    ManageClientsUseCase,
    PurgeExpiredUseCase,
)
from .audit import (
    GetAuditEventsUseCase,
)

__all__ = [
    # Auth
    "AuthorizeUseCase",
    "LoginUseCase",
    "ExchangeCodeUseCase",
    "RefreshTokenUseCase",
    "LogoutUseCase",
    # Sessions
    "IntrospectSessionUseCase",
    "ListSessionsUseCase",
    "RevokeSessionsUseCase",
    # Security
    "SecurityConfigUseCase",
    "ListLoginAttemptsUseCase",
    "IPBlockUseCase",
    # Admin
    "ManageClientsUseCase",
    "PurgeExpiredUseCase",
    # Audit
    "GetAuditEventsUseCase",
]
