"""
Introspect Session Use Case

Server-to-server check that a session is still active.
"""

from typing import Optional
from uuid import UUID

from libs.result import Result, Return
from src.app.services.cache import Cache
from src.app.services.clock import Clock
from src.app.services.security_policy_store import SecurityPolicyStore
from src.app.services.session_manager import SessionManager
from src.app.services.unit_of_work import UnitOfWork
from .dtos import IntrospectResponse, SessionInfo


class IntrospectSessionUseCase:
    """
    Use case for POST /sessions/introspect.

    Business Rules:
    - Revoked, expired and unknown sessions are reported as inactive with a reason
    - A successful check records activity on the session
    """

    def __init__(self, uow: UnitOfWork, clock: Clock, cache: Cache, refresh_token_secret: str):
        self.uow = uow
        self.clock = clock
        self.cache = cache
        self.refresh_token_secret = refresh_token_secret

    async def execute(
        self, session_id: UUID, tenant_id: Optional[str] = None
    ) -> Result[IntrospectResponse]:
        async with self.uow:
            session_manager = SessionManager(
                self.uow,
                self.clock,
                SecurityPolicyStore(self.uow, self.clock, self.cache),
                self.refresh_token_secret,
            )
            result = await session_manager.validate(session_id, tenant_id)
            if result.is_err():
                return Return.ok(IntrospectResponse(active=False, reason=result.error.code))

            await self.uow.commit()
            return Return.ok(
                IntrospectResponse(active=True, session=SessionInfo.from_session(result.value))
            )
