"""
Audit API Routes

Tenant audit trail for session and security events.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from src.api.error import ClientError, ServerError
from src.app.services.unit_of_work import UnitOfWork
from src.app.use_cases.audit import AuditEventPage, GetAuditEventsUseCase
from src.depends import get_current_user, get_unit_of_work

router = APIRouter(prefix="/audit", tags=["Audit"])


@router.get("", status_code=status.HTTP_200_OK, response_model=AuditEventPage)
async def list_audit_events(
    current_user: dict = Depends(get_current_user),
    uow: UnitOfWork = Depends(get_unit_of_work),
    limit: int = Query(50, ge=1, le=100),
    cursor: Optional[str] = Query(None, description="next_cursor from the previous page"),
    action: Optional[str] = Query(None, description="e.g. login, ip_blocked, session_revoked"),
    actor: Optional[str] = Query(None, description="User id, admin_api or system"),
):
    """
    List Audit Events

    Logins, logouts, revocations, IP blocks and policy changes for the
    caller's tenant, newest first. Tenant admins only.

    Raises:
        - 400 Bad Request: Malformed cursor
        - 403 Forbidden: Caller is not a tenant admin
    """
    result = await GetAuditEventsUseCase(uow).execute(
        tenant_id=current_user["tenant_id"],
        role=current_user["role"],
        limit=limit,
        cursor=cursor,
        action=action,
        actor=actor,
    )

    if result.is_err():
        error = result.error
        if error.code == "FORBIDDEN":
            raise ClientError(error, status_code=status.HTTP_403_FORBIDDEN)
        if error.code == "INVALID_CURSOR":
            raise ClientError(error)
        raise ServerError(error)

    return result.value
