"""
Use Case: Purge Expired Security Records

TTL sweep for authorization codes, sessions, login attempts and IP blocks.
Expiry is already enforced on every read path; the sweep only reclaims
storage and flips lapsed blocks to inactive.
"""

from pydantic import BaseModel

from libs.result import Result, Return
from src.app.services.authorization_code_broker import AuthorizationCodeBroker
from src.app.services.clock import Clock
from src.app.services.ip_block_registry import IPBlockRegistry
from src.app.services.login_attempt_ledger import LoginAttemptLedger
from src.app.services.unit_of_work import UnitOfWork
from src.domain.entities import AuditEvent


class PurgeExpiredResponse(BaseModel):
    """Response DTO for PurgeExpiredUseCase"""

    authorization_codes_deleted: int
    sessions_deleted: int
    login_attempts_deleted: int
    blocks_deactivated: int


class PurgeExpiredUseCase:
    """
    Business Logic:
    1. Delete authorization codes past expires_at (used or not)
    2. Delete sessions past expires_at (revoked ones included)
    3. Delete login attempts older than the retention window
    4. Deactivate IP blocks whose expiry passed
    5. Record a platform audit event with the counts
    """

    def __init__(self, uow: UnitOfWork, clock: Clock, retention_days: int = 30):
        self.uow = uow
        self.clock = clock
        self.retention_days = retention_days

    async def execute(self) -> Result[PurgeExpiredResponse]:
        now = self.clock.now()
        async with self.uow:
            codes = await AuthorizationCodeBroker(self.uow, self.clock).purge_expired()
            sessions = await self.uow.sessions.delete_expired(now)
            attempts = await LoginAttemptLedger(self.uow, self.clock).purge_older_than(
                self.retention_days
            )
            blocks = await IPBlockRegistry(self.uow, self.clock).deactivate_expired()

            response = PurgeExpiredResponse(
                authorization_codes_deleted=codes,
                sessions_deleted=sessions,
                login_attempts_deleted=attempts,
                blocks_deactivated=blocks,
            )
            await self.uow.audit_events.create(
                AuditEvent(
                    created_at=self.clock.now(),
                    tenant_id=None,
                    actor="system",
                    action="maintenance_purge",
                    event_metadata=response.model_dump(),
                )
            )
            await self.uow.commit()

            return Return.ok(response)
