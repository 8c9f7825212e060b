"""
Logout Use Case

Ends the caller's own SSO session.
"""

from uuid import UUID

from libs.result import Error, Result, Return
from src.app.services.cache import Cache
from src.app.services.clock import Clock
from src.app.services.security_policy_store import SecurityPolicyStore
from src.app.services.session_manager import SessionManager
from src.app.services.unit_of_work import UnitOfWork
from src.domain.entities import AuditEvent, RevocationReason
from .dtos import LogoutResponse


class LogoutUseCase:
    """
    Use case for POST /auth/logout.

    Business Rules:
    - Only the session named in the caller's access token is revoked
    - Logging out an already revoked session succeeds (revoked=False)
    """

    def __init__(self, uow: UnitOfWork, clock: Clock, cache: Cache, refresh_token_secret: str):
        self.uow = uow
        self.clock = clock
        self.cache = cache
        self.refresh_token_secret = refresh_token_secret

    async def execute(self, session_id: UUID, user_id: str, tenant_id: str) -> Result[LogoutResponse]:
        async with self.uow:
            session = await self.uow.sessions.get_by_id(session_id)
            if session is None or session.user_id != user_id or session.tenant_id != tenant_id:
                return Return.err(Error("SESSION_NOT_FOUND", "Session not found"))

            session_manager = SessionManager(
                self.uow,
                self.clock,
                SecurityPolicyStore(self.uow, self.clock, self.cache),
                self.refresh_token_secret,
            )
            revoked = await session_manager.revoke(session_id, RevocationReason.user_logout.value)

            if revoked:
                await self.uow.audit_events.create(
                    AuditEvent(
                        created_at=self.clock.now(),
                        tenant_id=tenant_id,
                        actor=user_id,
                        action="logout",
                        event_metadata={"session_id": str(session_id)},
                    )
                )
            await self.uow.commit()

            return Return.ok(LogoutResponse(session_id=str(session_id), revoked=revoked))
