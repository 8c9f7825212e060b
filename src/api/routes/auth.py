from typing import Literal, Optional, Union
from uuid import UUID

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, EmailStr, Field

from src.api.error import ClientError, ServerError
from src.app.services.cache import Cache
from src.app.services.clock import Clock
from src.app.services.credential_verifier import CredentialVerifier
from src.app.services.unit_of_work import UnitOfWork
from src.app.use_cases.auth import (
    AuthorizationCodeResponse,
    AuthSettings,
    ClientContext,
    LoginCommand,
    LoginUseCase,
    LogoutResponse,
    LogoutUseCase,
    TokenResponse,
)
from src.depends import (
    get_auth_settings,
    get_cache,
    get_client_context,
    get_clock,
    get_credential_verifier,
    get_current_user,
    get_unit_of_work,
)

router = APIRouter(prefix="/auth", tags=["Authentication"])


class LoginRequest(BaseModel):
    """
    Login HTTP request payload

    response_type=token (default) returns session tokens directly;
    response_type=code runs the OAuth flow and returns an authorization code.
    """

    email: EmailStr = Field(..., description="User email address")
    password: str = Field(..., min_length=1, description="User password")
    tenant_id: str = Field(..., min_length=1, max_length=64)
    response_type: Literal["code", "token"] = "token"
    client_id: Optional[str] = None
    redirect_uri: Optional[str] = None
    state: Optional[str] = None
    scope: Optional[str] = None
    code_challenge: Optional[str] = Field(None, min_length=43, max_length=128)
    code_challenge_method: Optional[str] = None
    storefront_id: Optional[str] = None


@router.post(
    "/login",
    status_code=status.HTTP_200_OK,
    response_model=Union[TokenResponse, AuthorizationCodeResponse],
)
async def login(
    request: LoginRequest,
    uow: UnitOfWork = Depends(get_unit_of_work),
    clock: Clock = Depends(get_clock),
    cache: Cache = Depends(get_cache),
    verifier: CredentialVerifier = Depends(get_credential_verifier),
    settings: AuthSettings = Depends(get_auth_settings),
    context: ClientContext = Depends(get_client_context),
):
    """
    User Login

    Checks IP blocks and the brute-force gate, verifies credentials with the
    identity API, records the attempt, then issues a code or session tokens.

    Raises:
        - 400 Bad Request: INVALID_REQUEST, INVALID_CLIENT
        - 401 Unauthorized: INVALID_CREDENTIALS (with attempts_remaining)
        - 403 Forbidden: IP_BLOCKED, USER_BLOCKED
        - 409 Conflict: SESSION_LIMIT_REACHED
        - 429 Too Many Requests: ACCOUNT_LOCKED, RATE_LIMITED (with Retry-After)
        - 503 Service Unavailable: IDENTITY_PROVIDER_ERROR
    """
    command = LoginCommand(
        email=request.email,
        password=request.password,
        tenant_id=request.tenant_id,
        response_type=request.response_type,
        client_id=request.client_id,
        redirect_uri=request.redirect_uri,
        state=request.state,
        scope=request.scope,
        code_challenge=request.code_challenge,
        code_challenge_method=request.code_challenge_method,
        storefront_id=request.storefront_id,
        context=context,
    )

    use_case = LoginUseCase(uow, clock, cache, verifier, settings)
    result = await use_case.execute(command)

    if result.is_err():
        error = result.error
        if error.code == "INVALID_CREDENTIALS":
            raise ClientError(error, status_code=status.HTTP_401_UNAUTHORIZED)
        elif error.code in ("IP_BLOCKED", "USER_BLOCKED"):
            raise ClientError(error, status_code=status.HTTP_403_FORBIDDEN)
        elif error.code in ("ACCOUNT_LOCKED", "RATE_LIMITED"):
            raise ClientError(error, status_code=status.HTTP_429_TOO_MANY_REQUESTS)
        elif error.code in ("INVALID_REQUEST", "INVALID_CLIENT"):
            raise ClientError(error, status_code=status.HTTP_400_BAD_REQUEST)
        elif error.code == "SESSION_LIMIT_REACHED":
            raise ClientError(error, status_code=status.HTTP_409_CONFLICT)
        raise ServerError(error)

    response = result.value
    if response.response_type == "code":
        return response.authorization
    return response.tokens


@router.post("/logout", status_code=status.HTTP_200_OK, response_model=LogoutResponse)
async def logout(
    current_user: dict = Depends(get_current_user),
    uow: UnitOfWork = Depends(get_unit_of_work),
    clock: Clock = Depends(get_clock),
    cache: Cache = Depends(get_cache),
    settings: AuthSettings = Depends(get_auth_settings),
):
    """
    Logout

    Revokes the session bound to the caller's access token.
    """
    use_case = LogoutUseCase(uow, clock, cache, settings.refresh_token_secret)
    result = await use_case.execute(
        UUID(current_user["session_id"]),
        current_user["user_id"],
        current_user["tenant_id"],
    )

    if result.is_err():
        error = result.error
        if error.code == "SESSION_NOT_FOUND":
            raise ClientError(error, status_code=status.HTTP_404_NOT_FOUND)
        raise ServerError(error)

    return result.value
