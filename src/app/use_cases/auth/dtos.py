"""
Authentication Use Case DTOs (Data Transfer Objects)

All Command and Response classes for auth domain.
Provides type safety and clear contracts between layers.
"""

from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel


# ============================================================================
# Settings
# ============================================================================


class AuthSettings(BaseModel):
    """Tunables the auth flows read from configuration"""

    refresh_token_secret: str
    auth_code_ttl_seconds: int = 120
    max_progressive_delay_seconds: int = 30
    auto_block_ip_threshold: int = 50
    auto_block_ip_hours: int = 24
    auto_block_ip_window_minutes: int = 60
    policy_cache_ttl_seconds: int = 60
    access_token_expire_minutes: int = 15


# ============================================================================
# Command DTOs
# ============================================================================


class ClientContext(BaseModel):
    """Network and device hints of the caller"""

    ip_address: str
    user_agent: Optional[str] = None
    accept_language: Optional[str] = None
    country: Optional[str] = None
    city: Optional[str] = None


class LoginCommand(BaseModel):
    """Credentials plus optional OAuth parameters"""

    email: str
    password: str
    tenant_id: str
    response_type: Literal["code", "token"] = "token"
    client_id: Optional[str] = None
    redirect_uri: Optional[str] = None
    state: Optional[str] = None
    scope: Optional[str] = None
    code_challenge: Optional[str] = None
    code_challenge_method: Optional[str] = None
    storefront_id: Optional[str] = None
    context: ClientContext


class ExchangeCodeCommand(BaseModel):
    """grant_type=authorization_code"""

    code: str
    client_id: str
    redirect_uri: str
    client_secret: Optional[str] = None
    code_verifier: Optional[str] = None
    context: ClientContext


# ============================================================================
# Response DTOs
# ============================================================================


class AuthorizeResponse(BaseModel):
    """Client display info for the login page"""

    client_id: str
    name: str
    logo_url: Optional[str] = None
    description: Optional[str] = None
    is_first_party: bool
    redirect_uri: str
    state: Optional[str] = None
    scope: Optional[str] = None


class UserInfo(BaseModel):
    """User as returned alongside tokens; profile is passed through untouched"""

    id: str
    email: str
    role: str
    name: Optional[str] = None
    company_name: Optional[str] = None
    profile: Optional[Dict[str, Any]] = None


class TokenResponse(BaseModel):
    """Access + refresh token pair bound to an SSO session"""

    access_token: str
    refresh_token: str
    token_type: str = "Bearer"
    expires_in: int
    session_id: str
    tenant_id: str
    user: UserInfo


class AuthorizationCodeResponse(BaseModel):
    """OAuth flow: where to send the browser next"""

    redirect_uri: str
    code: str
    state: Optional[str] = None


class LogoutResponse(BaseModel):
    """Response for logout use case"""

    session_id: str
    revoked: bool


class LoginResponse(BaseModel):
    """Either an authorization code or session tokens, depending on response_type"""

    response_type: Literal["code", "token"]
    authorization: Optional[AuthorizationCodeResponse] = None
    tokens: Optional[TokenResponse] = None
