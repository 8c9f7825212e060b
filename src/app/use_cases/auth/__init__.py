"""
Authentication Use Cases

Authorization requests, login, token exchange, refresh and logout.
"""

from .authorize_use_case import AuthorizeUseCase
from .login_use_case import LoginUseCase
from .exchange_code_use_case import ExchangeCodeUseCase
from .refresh_token_use_case import RefreshTokenUseCase
from .logout_use_case import LogoutUseCase
from .dtos import (
    AuthSettings,
    AuthorizationCodeResponse,
    AuthorizeResponse,
    ClientContext,
    ExchangeCodeCommand,
    LoginCommand,
    LoginResponse,
    LogoutResponse,
    TokenResponse,
    UserInfo,
)

__all__ = [
    # Use Cases
    "AuthorizeUseCase",
    "LoginUseCase",
    "ExchangeCodeUseCase",
    "RefreshTokenUseCase",
    "LogoutUseCase",
    # Settings
    "AuthSettings",
    # DTOs - Commands
    "ClientContext",
    "LoginCommand",
    "ExchangeCodeCommand",
    # DTOs - Responses
    "AuthorizeResponse",
    "AuthorizationCodeResponse",
    "LoginResponse",
    "LogoutResponse",
    "TokenResponse",
    "UserInfo",
]
