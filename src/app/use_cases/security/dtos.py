"""
Security Use Case DTOs (Data Transfer Objects)

Tenant security policy, login attempt history and IP blocks.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel

from src.domain.entities import BlockedIP, LoginAttempt, TenantSecurityConfig


def _value(field):
    return getattr(field, "value", field)


class SecurityConfigResponse(BaseModel):
    """Tenant security policy"""

    tenant_id: str
    max_sessions_per_user: int
    session_timeout_hours: int
    session_limit_policy: str
    max_login_attempts: int
    lockout_minutes: int
    enable_progressive_delay: bool
    require_strong_password: bool
    password_expiry_days: Optional[int] = None
    notify_on_new_device: bool
    notify_on_suspicious_login: bool
    notify_on_password_change: bool
    alert_email: Optional[str] = None
    ip_whitelist: List[str]
    ip_blacklist: List[str]
    updated_at: datetime
    updated_by: Optional[str] = None

    @classmethod
    def from_config(cls, config: TenantSecurityConfig) -> "SecurityConfigResponse":
        return cls(
            tenant_id=config.tenant_id,
            max_sessions_per_user=config.max_sessions_per_user,
            session_timeout_hours=config.session_timeout_hours,
            session_limit_policy=_value(config.session_limit_policy),
            max_login_attempts=config.max_login_attempts,
            lockout_minutes=config.lockout_minutes,
            enable_progressive_delay=config.enable_progressive_delay,
            require_strong_password=config.require_strong_password,
            password_expiry_days=config.password_expiry_days,
            notify_on_new_device=config.notify_on_new_device,
            notify_on_suspicious_login=config.notify_on_suspicious_login,
            notify_on_password_change=config.notify_on_password_change,
            alert_email=config.alert_email,
            ip_whitelist=list(config.ip_whitelist or []),
            ip_blacklist=list(config.ip_blacklist or []),
            updated_at=config.updated_at,
            updated_by=config.updated_by,
        )


class LoginAttemptInfo(BaseModel):
    id: str
    email: str
    ip_address: str
    success: bool
    failure_reason: Optional[str] = None
    device_type: Optional[str] = None
    browser: Optional[str] = None
    os: Optional[str] = None
    country: Optional[str] = None
    city: Optional[str] = None
    client_id: Optional[str] = None
    timestamp: datetime

    @classmethod
    def from_attempt(cls, attempt: LoginAttempt) -> "LoginAttemptInfo":
        return cls(
            id=str(attempt.id),
            email=attempt.email,
            ip_address=attempt.ip_address,
            success=attempt.success,
            failure_reason=_value(attempt.failure_reason),
            device_type=attempt.device_type,
            browser=attempt.browser,
            os=attempt.os,
            country=attempt.country,
            city=attempt.city,
            client_id=attempt.client_id,
            timestamp=attempt.timestamp,
        )


class LoginAttemptsPage(BaseModel):
    attempts: List[LoginAttemptInfo]
    total: int
    page: int
    limit: int


class BlockedIPInfo(BaseModel):
    id: str
    ip_address: str
    tenant_id: Optional[str] = None
    is_global: bool
    reason: str
    description: Optional[str] = None
    attempt_count: int
    blocked_at: datetime
    blocked_by: Optional[str] = None
    expires_at: Optional[datetime] = None
    is_active: bool
    unblocked_at: Optional[datetime] = None
    unblocked_by: Optional[str] = None

    @classmethod
    def from_block(cls, block: BlockedIP) -> "BlockedIPInfo":
        return cls(
            id=str(block.id),
            ip_address=block.ip_address,
            tenant_id=block.tenant_id,
            is_global=block.is_global,
            reason=_value(block.reason),
            description=block.description,
            attempt_count=block.attempt_count,
            blocked_at=block.blocked_at,
            blocked_by=block.blocked_by,
            expires_at=block.expires_at,
            is_active=block.is_active,
            unblocked_at=block.unblocked_at,
            unblocked_by=block.unblocked_by,
        )


class BlockedIPPage(BaseModel):
    blocks: List[BlockedIPInfo]
    total: int
    page: int
    limit: int


class UnblockIPResponse(BaseModel):
    ip_address: str
    unblocked: bool
