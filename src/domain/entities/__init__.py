"""
SSO Domain Entities

All domain entities organized by model.
Each entity in its own file for better maintainability.
"""

# Export all enums
from .enums import (
    AuthClientType,
    BlockReason,
    ClientApp,
    CodeChallengeMethod,
    DeviceType,
    LoginFailureReason,
    RevocationReason,
    SessionLimitPolicy,
)

# Export all entities
from .authorization_code import AuthorizationCode
from .session import Session
from .login_attempt import LoginAttempt
from .blocked_ip import BlockedIP
from .tenant_security_config import TenantSecurityConfig
from .auth_client import AuthClient, CLIENT_ID_PATTERN
from .audit_event import AuditEvent

__all__ = [
    # Enums
    "AuthClientType",
    "BlockReason",
    "ClientApp",
    "CodeChallengeMethod",
    "DeviceType",
    "LoginFailureReason",
    "RevocationReason",
    "SessionLimitPolicy",
    # Entities
    "AuthorizationCode",
    "Session",
    "LoginAttempt",
    "BlockedIP",
    "TenantSecurityConfig",
    "AuthClient",
    "CLIENT_ID_PATTERN",
    "AuditEvent",
]
