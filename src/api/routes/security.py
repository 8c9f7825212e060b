"""
Security API Routes

Tenant security policy, login attempt history and tenant IP blocks.
All endpoints require a tenant admin JWT.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, ConfigDict, Field

from src.api.error import ClientError, ServerError
from src.app.services.cache import Cache
from src.app.services.clock import Clock
from src.app.services.unit_of_work import UnitOfWork
from src.app.use_cases.auth import AuthSettings
from src.app.use_cases.security import (
    BlockedIPInfo,
    BlockedIPPage,
    IPBlockUseCase,
    ListLoginAttemptsUseCase,
    LoginAttemptsPage,
    SecurityConfigResponse,
    SecurityConfigUseCase,
    UnblockIPResponse,
)
from src.depends import (
    get_auth_settings,
    get_cache,
    get_clock,
    get_current_user,
    get_unit_of_work,
)

router = APIRouter(prefix="/security", tags=["Security"])


class SecurityConfigUpdateRequest(BaseModel):
    """Partial policy update; omitted fields are left unchanged"""

    model_config = ConfigDict(extra="forbid")

    max_sessions_per_user: Optional[int] = None
    session_timeout_hours: Optional[int] = None
    session_limit_policy: Optional[str] = None
    max_login_attempts: Optional[int] = None
    lockout_minutes: Optional[int] = None
    enable_progressive_delay: Optional[bool] = None
    require_strong_password: Optional[bool] = None
    password_expiry_days: Optional[int] = None
    notify_on_new_device: Optional[bool] = None
    notify_on_suspicious_login: Optional[bool] = None
    notify_on_password_change: Optional[bool] = None
    alert_email: Optional[str] = None
    ip_whitelist: Optional[List[str]] = None
    ip_blacklist: Optional[List[str]] = None


class BlockIPRequest(BaseModel):
    ip_address: str = Field(..., min_length=2, max_length=45)
    reason: str = "manual_block"
    description: Optional[str] = Field(None, max_length=500)
    expires_in_hours: Optional[int] = Field(None, ge=1, description="Omit for a permanent block")


def _raise_for(error):
    if error.code == "FORBIDDEN":
        raise ClientError(error, status_code=status.HTTP_403_FORBIDDEN)
    elif error.code in ("VALIDATION_ERROR", "INVALID_IP"):
        raise ClientError(error, status_code=status.HTTP_422_UNPROCESSABLE_ENTITY)
    elif error.code == "BLOCK_NOT_FOUND":
        raise ClientError(error, status_code=status.HTTP_404_NOT_FOUND)
    raise ServerError(error)


@router.get("/config", status_code=status.HTTP_200_OK, response_model=SecurityConfigResponse)
async def get_security_config(
    current_user: dict = Depends(get_current_user),
    uow: UnitOfWork = Depends(get_unit_of_work),
    clock: Clock = Depends(get_clock),
    cache: Cache = Depends(get_cache),
    settings: AuthSettings = Depends(get_auth_settings),
):
    """
    Get the tenant's security policy (defaults are created on first read)

    Raises:
        - 403 Forbidden: Caller is not a tenant admin
    """
    use_case = SecurityConfigUseCase(uow, clock, cache, settings.policy_cache_ttl_seconds)
    result = await use_case.get_config(current_user["tenant_id"], current_user["role"])

    if result.is_err():
        _raise_for(result.error)

    return result.value


@router.put("/config", status_code=status.HTTP_200_OK, response_model=SecurityConfigResponse)
async def update_security_config(
    request: SecurityConfigUpdateRequest,
    current_user: dict = Depends(get_current_user),
    uow: UnitOfWork = Depends(get_unit_of_work),
    clock: Clock = Depends(get_clock),
    cache: Cache = Depends(get_cache),
    settings: AuthSettings = Depends(get_auth_settings),
):
    """
    Update the tenant's security policy

    Raises:
        - 403 Forbidden: Caller is not a tenant admin
        - 422 Unprocessable Entity: Value out of range, bad policy name or bad CIDR
    """
    use_case = SecurityConfigUseCase(uow, clock, cache, settings.policy_cache_ttl_seconds)
    result = await use_case.update_config(
        current_user["tenant_id"],
        current_user["user_id"],
        current_user["role"],
        request.model_dump(exclude_unset=True),
    )

    if result.is_err():
        _raise_for(result.error)

    return result.value


@router.get("/login-attempts", status_code=status.HTTP_200_OK, response_model=LoginAttemptsPage)
async def list_login_attempts(
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=200),
    email: Optional[str] = Query(None),
    ip_address: Optional[str] = Query(None),
    success: Optional[bool] = Query(None),
    current_user: dict = Depends(get_current_user),
    uow: UnitOfWork = Depends(get_unit_of_work),
    clock: Clock = Depends(get_clock),
):
    """
    Login history for the tenant, newest first
    """
    use_case = ListLoginAttemptsUseCase(uow, clock)
    result = await use_case.execute(
        current_user["tenant_id"],
        current_user["role"],
        page=page,
        limit=limit,
        email=email,
        ip_address=ip_address,
        success=success,
    )

    if result.is_err():
        _raise_for(result.error)

    return result.value


@router.get("/blocked-ips", status_code=status.HTTP_200_OK, response_model=BlockedIPPage)
async def list_blocked_ips(
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=200),
    include_global: bool = Query(True),
    active_only: bool = Query(True),
    current_user: dict = Depends(get_current_user),
    uow: UnitOfWork = Depends(get_unit_of_work),
    clock: Clock = Depends(get_clock),
):
    use_case = IPBlockUseCase(uow, clock)
    result = await use_case.list_blocks(
        current_user["tenant_id"],
        role=current_user["role"],
        include_global=include_global,
        active_only=active_only,
        page=page,
        limit=limit,
    )

    if result.is_err():
        _raise_for(result.error)

    return result.value


@router.post("/blocked-ips", status_code=status.HTTP_201_CREATED, response_model=BlockedIPInfo)
async def block_ip(
    request: BlockIPRequest,
    current_user: dict = Depends(get_current_user),
    uow: UnitOfWork = Depends(get_unit_of_work),
    clock: Clock = Depends(get_clock),
):
    """
    Block an IP for this tenant

    Re-blocking an already blocked IP updates the existing block.

    Raises:
        - 403 Forbidden: Caller is not a tenant admin
        - 422 Unprocessable Entity: INVALID_IP, VALIDATION_ERROR
    """
    use_case = IPBlockUseCase(uow, clock)
    result = await use_case.block_ip(
        request.ip_address,
        current_user["tenant_id"],
        actor=current_user["user_id"],
        role=current_user["role"],
        reason=request.reason,
        description=request.description,
        expires_in_hours=request.expires_in_hours,
    )

    if result.is_err():
        _raise_for(result.error)

    return result.value


@router.delete(
    "/blocked-ips/{ip_address}", status_code=status.HTTP_200_OK, response_model=UnblockIPResponse
)
async def unblock_ip(
    ip_address: str,
    current_user: dict = Depends(get_current_user),
    uow: UnitOfWork = Depends(get_unit_of_work),
    clock: Clock = Depends(get_clock),
):
    """
    Lift this tenant's block on an IP (global blocks are untouched)

    Raises:
        - 404 Not Found: No active tenant block for the IP
    """
    use_case = IPBlockUseCase(uow, clock)
    result = await use_case.unblock_ip(
        ip_address,
        current_user["tenant_id"],
        actor=current_user["user_id"],
        role=current_user["role"],
    )

    if result.is_err():
        _raise_for(result.error)

    return result.value
