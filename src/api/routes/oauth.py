"""
OAuth2 API Routes

Authorization request validation and the token endpoint.
"""

from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel

from libs.result import Error
from src.api.error import ClientError, ServerError
from src.app.services.cache import Cache
from src.app.services.clock import Clock
from src.app.services.unit_of_work import UnitOfWork
from src.app.use_cases.auth import (
    AuthorizeResponse,
    AuthorizeUseCase,
    AuthSettings,
    ClientContext,
    ExchangeCodeCommand,
    ExchangeCodeUseCase,
    RefreshTokenUseCase,
    TokenResponse,
)
from src.depends import (
    get_auth_settings,
    get_cache,
    get_client_context,
    get_clock,
    get_unit_of_work,
)

router = APIRouter(prefix="/oauth", tags=["OAuth"])


@router.get("/authorize", status_code=status.HTTP_200_OK, response_model=AuthorizeResponse)
async def authorize(
    client_id: str = Query(...),
    redirect_uri: str = Query(...),
    response_type: str = Query("code"),
    state: Optional[str] = Query(None),
    scope: Optional[str] = Query(None),
    code_challenge: Optional[str] = Query(None),
    code_challenge_method: Optional[str] = Query(None),
    uow: UnitOfWork = Depends(get_unit_of_work),
    clock: Clock = Depends(get_clock),
):
    """
    Validate an authorization request

    Returns the client's display info for the login page. The redirect_uri is
    never followed on error because it is not trusted until validated.

    Raises:
        - 400 Bad Request: INVALID_REQUEST, INVALID_CLIENT
    """
    use_case = AuthorizeUseCase(uow, clock)
    result = await use_case.execute(
        client_id=client_id,
        redirect_uri=redirect_uri,
        response_type=response_type,
        state=state,
        scope=scope,
        code_challenge=code_challenge,
        code_challenge_method=code_challenge_method,
    )

    if result.is_err():
        error = result.error
        if error.code in ("INVALID_REQUEST", "INVALID_CLIENT"):
            raise ClientError(error, status_code=status.HTTP_400_BAD_REQUEST)
        raise ServerError(error)

    return result.value


class TokenRequest(BaseModel):
    """
    Token endpoint payload

    grant_type=authorization_code needs code, client_id and redirect_uri, plus
    client_secret (confidential clients) and/or code_verifier (PKCE).
    grant_type=refresh_token needs refresh_token.
    """

    grant_type: Literal["authorization_code", "refresh_token"]
    code: Optional[str] = None
    redirect_uri: Optional[str] = None
    client_id: Optional[str] = None
    client_secret: Optional[str] = None
    code_verifier: Optional[str] = None
    refresh_token: Optional[str] = None


@router.post("/token", status_code=status.HTTP_200_OK, response_model=TokenResponse)
async def token(
    request: TokenRequest,
    uow: UnitOfWork = Depends(get_unit_of_work),
    clock: Clock = Depends(get_clock),
    cache: Cache = Depends(get_cache),
    settings: AuthSettings = Depends(get_auth_settings),
    context: ClientContext = Depends(get_client_context),
):
    """
    Token endpoint

    Exchanges an authorization code, or rotates a refresh token, for a new
    access/refresh token pair. Refresh tokens are single-use.

    Raises:
        - 400 Bad Request: INVALID_REQUEST, INVALID_GRANT, INVALID_TOKEN
        - 401 Unauthorized: INVALID_CLIENT, CLIENT_MISMATCH, TOKEN_REUSE_DETECTED,
          SESSION_REVOKED, SESSION_EXPIRED
        - 409 Conflict: SESSION_LIMIT_REACHED
    """
    if request.grant_type == "authorization_code":
        if not request.code or not request.client_id or not request.redirect_uri:
            raise ClientError(
                Error("INVALID_REQUEST", "code, client_id and redirect_uri are required"),
                status_code=status.HTTP_400_BAD_REQUEST,
            )
        use_case = ExchangeCodeUseCase(uow, clock, cache, settings)
        result = await use_case.execute(
            ExchangeCodeCommand(
                code=request.code,
                client_id=request.client_id,
                redirect_uri=request.redirect_uri,
                client_secret=request.client_secret,
                code_verifier=request.code_verifier,
                context=context,
            )
        )
    else:
        if not request.refresh_token:
            raise ClientError(
                Error("INVALID_REQUEST", "refresh_token is required"),
                status_code=status.HTTP_400_BAD_REQUEST,
            )
        use_case = RefreshTokenUseCase(uow, clock, cache, settings)
        result = await use_case.execute(
            request.refresh_token,
            client_id=request.client_id,
            client_secret=request.client_secret,
        )

    if result.is_err():
        error = result.error
        if error.code in ("INVALID_GRANT", "INVALID_TOKEN"):
            raise ClientError(error, status_code=status.HTTP_400_BAD_REQUEST)
        elif error.code in (
            "INVALID_CLIENT",
            "CLIENT_MISMATCH",
            "TOKEN_REUSE_DETECTED",
            "SESSION_REVOKED",
            "SESSION_EXPIRED",
        ):
            raise ClientError(error, status_code=status.HTTP_401_UNAUTHORIZED)
        elif error.code == "SESSION_LIMIT_REACHED":
            raise ClientError(error, status_code=status.HTTP_409_CONFLICT)
        raise ServerError(error)

    return result.value
