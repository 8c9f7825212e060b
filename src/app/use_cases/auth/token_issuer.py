"""
Shared token issuance for the login and token-exchange flows.
"""

from typing import Optional, Tuple
from uuid import uuid4

from libs.result import Result, Return
from src.api.utils.jwt import generate_access_token
from src.app.services.session_manager import SessionManager
from src.domain.device import DeviceInfo
from src.domain.entities import ClientApp, Session
from src.domain.identity import UserIdentity
from src.domain.tokens import generate_refresh_token
from .dtos import AuthSettings, TokenResponse, UserInfo


def build_user_info(user: UserIdentity) -> UserInfo:
    return UserInfo(
        id=user.user_id,
        email=user.email,
        role=user.role,
        name=user.name,
        company_name=user.company_name,
        profile=user.profile,
    )


def build_token_response(
    session: Session, refresh_token: str, settings: AuthSettings
) -> Tuple[TokenResponse, str]:
    """Mint a fresh access token for an existing session. Returns (response, jti)."""
    access_token, jti = generate_access_token(
        user_id=session.user_id,
        tenant_id=session.tenant_id,
        role=session.user_role,
        session_id=str(session.id),
        email=session.user_email,
        client_id=session.client_id,
        expires_minutes=settings.access_token_expire_minutes,
    )
    profile = session.profile or {}
    response = TokenResponse(
        access_token=access_token,
        refresh_token=refresh_token,
        expires_in=settings.access_token_expire_minutes * 60,
        session_id=str(session.id),
        tenant_id=session.tenant_id,
        user=UserInfo(
            id=session.user_id,
            email=session.user_email,
            role=session.user_role,
            name=profile.get("name"),
            company_name=session.company_name,
            profile=session.profile,
        ),
    )
    return response, jti


async def issue_session_tokens(
    session_manager: SessionManager,
    settings: AuthSettings,
    tenant_id: str,
    user: UserIdentity,
    client_app: ClientApp,
    device_info: DeviceInfo,
    client_id: Optional[str] = None,
    storefront_id: Optional[str] = None,
) -> Result[Tuple[Session, TokenResponse]]:
    """
    Create a session and mint its tokens. The access token carries the
    session id, and its jti is stored on the session.
    """
    session_id = uuid4()
    refresh_token = generate_refresh_token()
    access_token, jti = generate_access_token(
        user_id=user.user_id,
        tenant_id=tenant_id,
        role=user.role,
        session_id=str(session_id),
        email=user.email.lower(),
        client_id=client_id,
        expires_minutes=settings.access_token_expire_minutes,
    )

    session_result = await session_manager.create_session(
        tenant_id=tenant_id,
        user=user,
        client_app=client_app,
        device_info=device_info,
        refresh_token=refresh_token,
        client_id=client_id,
        storefront_id=storefront_id,
        access_token_jti=jti,
        session_id=session_id,
    )
    if session_result.is_err():
        return Return.err(session_result.error)

    session = session_result.value
    return Return.ok(
        (
            session,
            TokenResponse(
                access_token=access_token,
                refresh_token=refresh_token,
                expires_in=settings.access_token_expire_minutes * 60,
                session_id=str(session.id),
                tenant_id=tenant_id,
                user=build_user_info(user),
            ),
        )
    )
