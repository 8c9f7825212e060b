from typing import Optional
from uuid import UUID

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel.ext.asyncio.session import AsyncSession
from config import ApplicationConfig
from src.adapter.services.http_credential_verifier import HttpCredentialVerifier
from src.adapter.services.system_clock import SystemClock
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.api.utils.jwt import verify_jwt
from src.app.services.cache import Cache
from src.app.services.clock import Clock
from src.app.services.credential_verifier import CredentialVerifier
from src.app.services.security_policy_store import SecurityPolicyStore
from src.app.services.session_manager import SessionManager
from src.app.services.unit_of_work import UnitOfWork
from src.app.use_cases.auth import AuthSettings, ClientContext

engine = create_async_engine(ApplicationConfig.DB_URI, echo=False, future=True)

AsyncSessionLocal = sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
)

security = HTTPBearer()

_system_clock = SystemClock()


async def get_unit_of_work():
    async with AsyncSessionLocal() as session:
        yield SqlAlchemyUnitOfWork(session)


def get_clock() -> Clock:
    return _system_clock


def get_cache(request: Request) -> Cache:
    """Process-wide cache created by create_app"""
    return request.app.state.cache


def get_credential_verifier() -> CredentialVerifier:
    return HttpCredentialVerifier(
        ApplicationConfig.IDENTITY_API_URL,
        api_key=ApplicationConfig.IDENTITY_API_KEY,
        timeout_seconds=ApplicationConfig.IDENTITY_API_TIMEOUT_SECONDS,
    )


def get_auth_settings() -> AuthSettings:
    return AuthSettings(
        refresh_token_secret=ApplicationConfig.REFRESH_TOKEN_HASH_SECRET,
        auth_code_ttl_seconds=ApplicationConfig.AUTH_CODE_TTL_SECONDS,
        max_progressive_delay_seconds=ApplicationConfig.MAX_PROGRESSIVE_DELAY_SECONDS,
        auto_block_ip_threshold=ApplicationConfig.AUTO_BLOCK_IP_THRESHOLD,
        auto_block_ip_hours=ApplicationConfig.AUTO_BLOCK_IP_HOURS,
        auto_block_ip_window_minutes=ApplicationConfig.AUTO_BLOCK_IP_WINDOW_MINUTES,
        policy_cache_ttl_seconds=ApplicationConfig.SECURITY_POLICY_CACHE_TTL_SECONDS,
        access_token_expire_minutes=ApplicationConfig.ACCESS_TOKEN_EXPIRE_MINUTES,
    )


def get_client_context(request: Request) -> ClientContext:
    """
    Caller IP and device hints.

    Proxy headers (X-Forwarded-For, X-Real-IP, CF-IPCountry) are only trusted
    when TRUST_PROXY_HEADERS is enabled.
    """
    ip_address: Optional[str] = None
    country = city = None
    if ApplicationConfig.TRUST_PROXY_HEADERS:
        forwarded = request.headers.get("x-forwarded-for")
        if forwarded:
            ip_address = forwarded.split(",")[0].strip()
        ip_address = ip_address or request.headers.get("x-real-ip")
        country = request.headers.get("cf-ipcountry") or request.headers.get("x-country")
        city = request.headers.get("x-city")
    if not ip_address:
        ip_address = request.client.host if request.client else "unknown"

    return ClientContext(
        ip_address=ip_address,
        user_agent=request.headers.get("user-agent"),
        accept_language=request.headers.get("accept-language"),
        country=country,
        city=city,
    )


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    uow: UnitOfWork = Depends(get_unit_of_work),
    clock: Clock = Depends(get_clock),
    cache: Cache = Depends(get_cache),
    settings: AuthSettings = Depends(get_auth_settings),
) -> dict:
    """
    Dependency to extract and verify JWT token from Authorization header.

    The token must be signed and unexpired, and the session it names must
    still be active (not revoked, not expired).

    Args:
        credentials: Bearer token from Authorization header

    Returns:
        Decoded JWT payload containing user_id, tenant_id, role, session_id

    Raises:
        HTTPException: 401 if token is invalid or expired, or its session is not active
    """
    token = credentials.credentials
    payload = verify_jwt(token)

    if payload is None or not payload.get("session_id"):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
        )

    try:
        session_id = UUID(payload["session_id"])
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
        )

    async with uow:
        session_manager = SessionManager(
            uow,
            clock,
            SecurityPolicyStore(uow, clock, cache),
            settings.refresh_token_secret,
        )
        result = await session_manager.validate(session_id, payload.get("tenant_id"))
        if result.is_err():
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail=result.error.message,
            )
        await uow.commit()

    return payload
