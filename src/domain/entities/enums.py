"""
SSO Domain Enums

All enumeration types used across domain entities.
"""

from enum import Enum
from typing import Optional


class ClientApp(str, Enum):
    """Known client applications sharing the identity provider"""

    b2b = "vinc-b2b"
    vetrina = "vinc-vetrina"
    pim = "vinc-pim"
    commerce_suite = "vinc-commerce-suite"
    mobile = "vinc-mobile"
    other = "other"

    @classmethod
    def from_client_id(cls, client_id: Optional[str]) -> "ClientApp":
        for app in cls:
            if app.value == client_id:
                return app
        return cls.other


class DeviceType(str, Enum):
    """Device class derived from the user agent"""

    desktop = "desktop"
    mobile = "mobile"
    tablet = "tablet"
    unknown = "unknown"


class AuthClientType(str, Enum):
    """Relying-party application type"""

    web = "web"
    mobile = "mobile"
    api = "api"


class CodeChallengeMethod(str, Enum):
    """PKCE transform"""

    plain = "plain"
    S256 = "S256"


class LoginFailureReason(str, Enum):
    """Why a login attempt failed"""

    invalid_credentials = "invalid_credentials"
    user_not_found = "user_not_found"
    user_blocked = "user_blocked"
    tenant_blocked = "tenant_blocked"
    ip_blocked = "ip_blocked"
    rate_limited = "rate_limited"
    mfa_failed = "mfa_failed"
    expired_password = "expired_password"
    account_locked = "account_locked"
    identity_provider_error = "identity_provider_error"


class BlockReason(str, Enum):
    """Why an IP address was blocked"""

    brute_force = "brute_force"
    suspicious_activity = "suspicious_activity"
    manual_block = "manual_block"
    rate_limit_exceeded = "rate_limit_exceeded"
    geo_restriction = "geo_restriction"


class SessionLimitPolicy(str, Enum):
    """What happens when a user reaches max_sessions_per_user"""

    evict_oldest = "evict_oldest"
    reject_new = "reject_new"


class RevocationReason(str, Enum):
    """Reasons stamped on revoked sessions"""

    manual_revocation = "manual_revocation"
    bulk_revocation = "bulk_revocation"
    user_logout = "user_logout"
    session_limit_exceeded = "session_limit_exceeded"
    account_compromised = "account_compromised"
    token_reuse_detected = "token_reuse_detected"
    client_mismatch = "client_mismatch"
