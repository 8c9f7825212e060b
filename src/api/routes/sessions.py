from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, Field

from src.api.error import ClientError, ServerError
from src.api.utils.admin_auth import verify_admin_api_key
from src.api.utils.jwt import verify_jwt
from src.app.services.cache import Cache
from src.app.services.clock import Clock
from src.app.services.unit_of_work import UnitOfWork
from src.app.use_cases.auth import AuthSettings
from src.app.use_cases.sessions import (
    IntrospectResponse,
    IntrospectSessionUseCase,
    ListSessionsResponse,
    ListSessionsUseCase,
    RevokeAllResponse,
    RevokeSessionResponse,
    RevokeSessionsUseCase,
)
from src.depends import (
    get_auth_settings,
    get_cache,
    get_clock,
    get_current_user,
    get_unit_of_work,
)

router = APIRouter(prefix="/sessions", tags=["Sessions"])


class IntrospectRequest(BaseModel):
    """Either an access token or a session id"""

    token: Optional[str] = None
    session_id: Optional[UUID] = None
    tenant_id: Optional[str] = None


class RevokeAllSessionsRequest(BaseModel):
    """Request to revoke all sessions for a user (defaults to the caller)"""

    user_id: Optional[str] = Field(None, description="User whose sessions will be revoked")


@router.post(
    "/introspect",
    status_code=status.HTTP_200_OK,
    response_model=IntrospectResponse,
    dependencies=[Depends(verify_admin_api_key)],
)
async def introspect_session(
    request: IntrospectRequest,
    uow: UnitOfWork = Depends(get_unit_of_work),
    clock: Clock = Depends(get_clock),
    cache: Cache = Depends(get_cache),
    settings: AuthSettings = Depends(get_auth_settings),
):
    """
    Session introspection for relying parties

    Always answers 200; an unusable token or session yields active=false with
    the reason (INVALID_TOKEN, SESSION_NOT_FOUND, SESSION_REVOKED,
    SESSION_EXPIRED).
    """
    session_id = request.session_id
    tenant_id = request.tenant_id
    if request.token is not None:
        payload = verify_jwt(request.token)
        if payload is None or not payload.get("session_id"):
            return IntrospectResponse(active=False, reason="INVALID_TOKEN")
        try:
            session_id = UUID(payload["session_id"])
        except ValueError:
            return IntrospectResponse(active=False, reason="INVALID_TOKEN")
        tenant_id = tenant_id or payload.get("tenant_id")

    if session_id is None:
        return IntrospectResponse(active=False, reason="INVALID_REQUEST")

    use_case = IntrospectSessionUseCase(uow, clock, cache, settings.refresh_token_secret)
    result = await use_case.execute(session_id, tenant_id)

    if result.is_err():
        raise ServerError(result.error)

    return result.value


@router.get("", status_code=status.HTTP_200_OK, response_model=ListSessionsResponse)
async def list_sessions(
    user_id: Optional[str] = Query(None, description="Another user's sessions (admins)"),
    all: bool = Query(False, description="Every active session in the tenant (admins)"),
    current_user: dict = Depends(get_current_user),
    uow: UnitOfWork = Depends(get_unit_of_work),
    clock: Clock = Depends(get_clock),
    cache: Cache = Depends(get_cache),
    settings: AuthSettings = Depends(get_auth_settings),
):
    """
    List active sessions, newest activity first

    Raises:
        - 403 Forbidden: Listing another user's sessions without admin role
    """
    use_case = ListSessionsUseCase(uow, clock, cache, settings.refresh_token_secret)
    result = await use_case.execute(
        requesting_user_id=current_user["user_id"],
        requesting_tenant_id=current_user["tenant_id"],
        requesting_role=current_user["role"],
        current_session_id=current_user["session_id"],
        target_user_id=user_id,
        all_users=all,
    )

    if result.is_err():
        error = result.error
        if error.code == "FORBIDDEN":
            raise ClientError(error, status_code=status.HTTP_403_FORBIDDEN)
        raise ServerError(error)

    return result.value


@router.post(
    "/revoke-all",
    status_code=status.HTTP_200_OK,
    response_model=RevokeAllResponse,
)
async def revoke_all_sessions(
    request: RevokeAllSessionsRequest,
    current_user: dict = Depends(get_current_user),
    uow: UnitOfWork = Depends(get_unit_of_work),
    clock: Clock = Depends(get_clock),
    cache: Cache = Depends(get_cache),
    settings: AuthSettings = Depends(get_auth_settings),
):
    """
    Revoke All Sessions

    Revokes all active sessions for a user. Useful for:
    - Security incidents (account compromise)
    - Password changes
    - Admin-initiated logout

    Authorization:
    - Users can revoke their own sessions
    - Tenant admins can revoke any user's sessions within their tenant

    Raises:
        - 403 Forbidden: Insufficient permissions
    """
    use_case = RevokeSessionsUseCase(uow, clock, cache, settings.refresh_token_secret)
    result = await use_case.revoke_all_sessions(
        request.user_id or current_user["user_id"],
        current_user["user_id"],
        current_user["tenant_id"],
        current_user["role"],
    )

    if result.is_err():
        error = result.error
        if error.code == "FORBIDDEN":
            raise ClientError(error, status_code=status.HTTP_403_FORBIDDEN)
        raise ServerError(error)

    return result.value


@router.delete(
    "/{session_id}",
    status_code=status.HTTP_200_OK,
    response_model=RevokeSessionResponse,
)
async def revoke_specific_session(
    session_id: UUID,
    current_user: dict = Depends(get_current_user),
    uow: UnitOfWork = Depends(get_unit_of_work),
    clock: Clock = Depends(get_clock),
    cache: Cache = Depends(get_cache),
    settings: AuthSettings = Depends(get_auth_settings),
):
    """
    Revoke Specific Session

    Authorization:
    - Users can revoke their own sessions
    - Tenant admins can revoke any session within their tenant

    Raises:
        - 403 Forbidden: Insufficient permissions
        - 404 Not Found: Session not found in this tenant
    """
    use_case = RevokeSessionsUseCase(uow, clock, cache, settings.refresh_token_secret)
    result = await use_case.revoke_specific_session(
        session_id,
        current_user["user_id"],
        current_user["tenant_id"],
        current_user["role"],
    )

    if result.is_err():
        error = result.error
        if error.code == "FORBIDDEN":
            raise ClientError(error, status_code=status.HTTP_403_FORBIDDEN)
        elif error.code == "SESSION_NOT_FOUND":
            raise ClientError(error, status_code=status.HTTP_404_NOT_FOUND)
        raise ServerError(error)

    return result.value
