"""
Security Use Cases

Tenant security policy, login attempt history and IP blocking.
"""

from .security_config_use_case import SecurityConfigUseCase
from .list_login_attempts_use_case import ListLoginAttemptsUseCase
from .ip_block_use_case import IPBlockUseCase
from .dtos import (
    BlockedIPInfo,
    BlockedIPPage,
    LoginAttemptInfo,
    LoginAttemptsPage,
    SecurityConfigResponse,
    UnblockIPResponse,
)

__all__ = [
    "SecurityConfigUseCase",
    "ListLoginAttemptsUseCase",
    "IPBlockUseCase",
    "BlockedIPInfo",
    "BlockedIPPage",
    "LoginAttemptInfo",
    "LoginAttemptsPage",
    "SecurityConfigResponse",
    "UnblockIPResponse",
]
