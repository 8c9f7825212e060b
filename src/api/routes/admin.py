"""
Admin API Routes

Platform administration via X-Admin-API-Key: global IP blocks, auth client
registration and the maintenance purge.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, Field

from config import ApplicationConfig
from src.api.error import ClientError, ServerError
from src.api.utils.admin_auth import verify_admin_api_key
from src.app.services.clock import Clock
from src.app.services.unit_of_work import UnitOfWork
from src.app.use_cases.admin import (
    AuthClientResponse,
    ClientSecretResponse,
    ManageClientsUseCase,
    PurgeExpiredResponse,
    PurgeExpiredUseCase,
    RegisterClientCommand,
)
from src.app.use_cases.security import (
    BlockedIPInfo,
    BlockedIPPage,
    IPBlockUseCase,
    UnblockIPResponse,
)
from src.depends import get_clock, get_unit_of_work
from src.domain.entities import AuthClientType

router = APIRouter(prefix="/admin", tags=["Admin"])

ADMIN_ACTOR = "admin_api"


class GlobalBlockIPRequest(BaseModel):
    ip_address: str = Field(..., min_length=2, max_length=45)
    reason: str = "manual_block"
    description: Optional[str] = Field(None, max_length=500)
    expires_in_hours: Optional[int] = Field(None, ge=1, description="Omit for a permanent block")


class RegisterClientRequest(BaseModel):
    client_id: str = Field(..., min_length=3, max_length=64)
    name: str = Field(..., min_length=1, max_length=200)
    redirect_uris: List[str] = Field(..., min_length=1)
    type: AuthClientType = AuthClientType.web
    allowed_origins: List[str] = []
    logo_url: Optional[str] = None
    description: Optional[str] = None
    is_first_party: bool = False


def _raise_for(error):
    if error.code in ("VALIDATION_ERROR", "INVALID_IP"):
        raise ClientError(error, status_code=status.HTTP_422_UNPROCESSABLE_ENTITY)
    elif error.code in ("BLOCK_NOT_FOUND", "CLIENT_NOT_FOUND"):
        raise ClientError(error, status_code=status.HTTP_404_NOT_FOUND)
    elif error.code == "CLIENT_ALREADY_EXISTS":
        raise ClientError(error, status_code=status.HTTP_409_CONFLICT)
    raise ServerError(error)


@router.get(
    "/blocked-ips",
    status_code=status.HTTP_200_OK,
    response_model=BlockedIPPage,
    dependencies=[Depends(verify_admin_api_key)],
)
async def list_global_blocks(
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=200),
    active_only: bool = Query(True),
    uow: UnitOfWork = Depends(get_unit_of_work),
    clock: Clock = Depends(get_clock),
):
    """List global IP blocks"""
    use_case = IPBlockUseCase(uow, clock)
    result = await use_case.list_blocks(
        None, include_global=True, active_only=active_only, page=page, limit=limit
    )

    if result.is_err():
        _raise_for(result.error)

    return result.value


@router.post(
    "/blocked-ips",
    status_code=status.HTTP_201_CREATED,
    response_model=BlockedIPInfo,
    dependencies=[Depends(verify_admin_api_key)],
)
async def block_ip_globally(
    request: GlobalBlockIPRequest,
    uow: UnitOfWork = Depends(get_unit_of_work),
    clock: Clock = Depends(get_clock),
):
    """
    Block an IP for every tenant

    A global block wins over any tenant whitelist.

    Raises:
        - 401 Unauthorized: Invalid admin API key
        - 422 Unprocessable Entity: INVALID_IP, VALIDATION_ERROR
    """
    use_case = IPBlockUseCase(uow, clock)
    result = await use_case.block_ip(
        request.ip_address,
        None,
        actor=ADMIN_ACTOR,
        reason=request.reason,
        description=request.description,
        expires_in_hours=request.expires_in_hours,
    )

    if result.is_err():
        _raise_for(result.error)

    return result.value


@router.delete(
    "/blocked-ips/{ip_address}",
    status_code=status.HTTP_200_OK,
    response_model=UnblockIPResponse,
    dependencies=[Depends(verify_admin_api_key)],
)
async def unblock_ip_globally(
    ip_address: str,
    uow: UnitOfWork = Depends(get_unit_of_work),
    clock: Clock = Depends(get_clock),
):
    """
    Lift a global block

    Raises:
        - 404 Not Found: No active global block for the IP
    """
    use_case = IPBlockUseCase(uow, clock)
    result = await use_case.unblock_ip(ip_address, None, actor=ADMIN_ACTOR)

    if result.is_err():
        _raise_for(result.error)

    return result.value


@router.get(
    "/clients",
    status_code=status.HTTP_200_OK,
    response_model=List[AuthClientResponse],
    dependencies=[Depends(verify_admin_api_key)],
)
async def list_clients(
    include_inactive: bool = Query(False),
    uow: UnitOfWork = Depends(get_unit_of_work),
    clock: Clock = Depends(get_clock),
):
    use_case = ManageClientsUseCase(uow, clock)
    result = await use_case.list_clients(include_inactive=include_inactive)

    if result.is_err():
        _raise_for(result.error)

    return result.value


@router.post(
    "/clients",
    status_code=status.HTTP_201_CREATED,
    response_model=ClientSecretResponse,
    dependencies=[Depends(verify_admin_api_key)],
)
async def register_client(
    request: RegisterClientRequest,
    uow: UnitOfWork = Depends(get_unit_of_work),
    clock: Clock = Depends(get_clock),
):
    """
    Register an OAuth client

    The client_secret is only returned here and on regeneration.

    Raises:
        - 409 Conflict: CLIENT_ALREADY_EXISTS
        - 422 Unprocessable Entity: VALIDATION_ERROR
    """
    use_case = ManageClientsUseCase(uow, clock)
    result = await use_case.register(
        RegisterClientCommand(**request.model_dump()), actor=ADMIN_ACTOR
    )

    if result.is_err():
        _raise_for(result.error)

    return result.value


@router.post(
    "/clients/{client_id}/regenerate-secret",
    status_code=status.HTTP_200_OK,
    response_model=ClientSecretResponse,
    dependencies=[Depends(verify_admin_api_key)],
)
async def regenerate_client_secret(
    client_id: str,
    uow: UnitOfWork = Depends(get_unit_of_work),
    clock: Clock = Depends(get_clock),
):
    """
    Issue a new client secret; the previous one stops working immediately

    Raises:
        - 404 Not Found: CLIENT_NOT_FOUND
    """
    use_case = ManageClientsUseCase(uow, clock)
    result = await use_case.regenerate_secret(client_id, actor=ADMIN_ACTOR)

    if result.is_err():
        _raise_for(result.error)

    return result.value


@router.delete(
    "/clients/{client_id}",
    status_code=status.HTTP_200_OK,
    response_model=AuthClientResponse,
    dependencies=[Depends(verify_admin_api_key)],
)
async def deactivate_client(
    client_id: str,
    uow: UnitOfWork = Depends(get_unit_of_work),
    clock: Clock = Depends(get_clock),
):
    """
    Deactivate a client

    Raises:
        - 404 Not Found: CLIENT_NOT_FOUND
    """
    use_case = ManageClientsUseCase(uow, clock)
    result = await use_case.deactivate(client_id, actor=ADMIN_ACTOR)

    if result.is_err():
        _raise_for(result.error)

    return result.value


@router.post(
    "/maintenance/purge",
    status_code=status.HTTP_200_OK,
    response_model=PurgeExpiredResponse,
    dependencies=[Depends(verify_admin_api_key)],
)
async def purge_expired(
    uow: UnitOfWork = Depends(get_unit_of_work),
    clock: Clock = Depends(get_clock),
):
    """
    Delete expired codes and sessions, old login attempts, and deactivate
    lapsed IP blocks. Safe to run repeatedly (e.g. from a cron job).
    """
    use_case = PurgeExpiredUseCase(
        uow, clock, retention_days=ApplicationConfig.LOGIN_ATTEMPT_RETENTION_DAYS
    )
    result = await use_case.execute()

    if result.is_err():
        _raise_for(result.error)

    return result.value
