"""
List Login Attempts Use Case

Paginated login history of a tenant for its administrators.
"""

from typing import Optional

from libs.result import Error, Result, Return
from src.app.services.clock import Clock
from src.app.services.login_attempt_ledger import LoginAttemptLedger
from src.app.services.unit_of_work import UnitOfWork
from src.domain.identity import is_tenant_admin
from .dtos import LoginAttemptInfo, LoginAttemptsPage


class ListLoginAttemptsUseCase:
    def __init__(self, uow: UnitOfWork, clock: Clock):
        self.uow = uow
        self.clock = clock

    async def execute(
        self,
        tenant_id: str,
        role: str,
        page: int = 1,
        limit: int = 50,
        email: Optional[str] = None,
        ip_address: Optional[str] = None,
        success: Optional[bool] = None,
    ) -> Result[LoginAttemptsPage]:
        if not is_tenant_admin(role):
            return Return.err(
                Error("FORBIDDEN", "You do not have permission to view login attempts")
            )

        async with self.uow:
            attempts, total = await LoginAttemptLedger(self.uow, self.clock).list_attempts(
                tenant_id,
                page=page,
                limit=limit,
                email=email,
                ip_address=ip_address,
                success=success,
            )
            return Return.ok(
                LoginAttemptsPage(
                    attempts=[LoginAttemptInfo.from_attempt(a) for a in attempts],
                    total=total,
                    page=page,
                    limit=limit,
                )
            )
