"""
Revoke Sessions Use Case

Handles session revocation for security and session management.
"""

from uuid import UUID

from libs.result import Error, Result, Return
from src.app.services.cache import Cache
from src.app.services.clock import Clock
from src.app.services.security_policy_store import SecurityPolicyStore
from src.app.services.session_manager import SessionManager
from src.app.services.unit_of_work import UnitOfWork
from src.domain.entities import AuditEvent, RevocationReason
from src.domain.identity import is_tenant_admin
from .dtos import RevokeAllResponse, RevokeSessionResponse


class RevokeSessionsUseCase:
    """
    Use case for revoking user sessions.

    Business Rules:
    - Users can revoke their own sessions
    - Admins can revoke any user's sessions within their tenant
    - Revocation is terminal; revoking an inactive session is a no-op
    - Revocation is audit-logged for security compliance
    """

    def __init__(self, uow: UnitOfWork, clock: Clock, cache: Cache, refresh_token_secret: str):
        self.uow = uow
        self.clock = clock
        self.cache = cache
        self.refresh_token_secret = refresh_token_secret

    def _session_manager(self) -> SessionManager:
        return SessionManager(
            self.uow,
            self.clock,
            SecurityPolicyStore(self.uow, self.clock, self.cache),
            self.refresh_token_secret,
        )

    async def revoke_all_sessions(
        self,
        target_user_id: str,
        requesting_user_id: str,
        requesting_tenant_id: str,
        requesting_role: str,
        reason: str = RevocationReason.bulk_revocation.value,
    ) -> Result[RevokeAllResponse]:
        """
        Revoke all sessions for a user.

        Args:
            target_user_id: User whose sessions will be revoked
            requesting_user_id: User requesting the revocation
            requesting_tenant_id: Current tenant context
            requesting_role: Role of requesting user
            reason: Revocation reason stored on each session

        Returns:
            Result with count of revoked sessions, or Error
        """
        async with self.uow:
            # Authorization: user revoking own sessions OR admin
            is_self = target_user_id == requesting_user_id
            if not is_self and not is_tenant_admin(requesting_role):
                return Return.err(
                    Error(
                        "FORBIDDEN",
                        "Only admins can revoke other users' sessions",
                    )
                )

            count = await self._session_manager().revoke_all(
                requesting_tenant_id, target_user_id, reason
            )

            audit = AuditEvent(
                created_at=self.clock.now(),
                tenant_id=requesting_tenant_id,
                actor=requesting_user_id,
                action="revoke_all_sessions",
                event_metadata={
                    "target_user_id": target_user_id,
                    "revoked_count": count,
                    "reason": reason,
                    "is_self": is_self,
                },
            )
            await self.uow.audit_events.create(audit)

            await self.uow.commit()

            return Return.ok(RevokeAllResponse(revoked_count=count, target_user_id=target_user_id))

    async def revoke_specific_session(
        self,
        session_id: UUID,
        requesting_user_id: str,
        requesting_tenant_id: str,
        requesting_role: str,
    ) -> Result[RevokeSessionResponse]:
        """
        Revoke a specific session by ID.

        Args:
            session_id: Session to revoke
            requesting_user_id: User requesting the revocation
            requesting_tenant_id: Current tenant context
            requesting_role: Role of requesting user

        Returns:
            Result with revoked flag (False when it was already inactive), or Error
        """
        async with self.uow:
            session = await self.uow.sessions.get_by_id(session_id)
            if not session or session.tenant_id != requesting_tenant_id:
                return Return.err(Error("SESSION_NOT_FOUND", "Session not found"))

            # Authorization: user revoking own session OR admin
            is_self = session.user_id == requesting_user_id
            if not is_self and not is_tenant_admin(requesting_role):
                return Return.err(
                    Error("FORBIDDEN", "Only admins can revoke other users' sessions")
                )

            revoked = await self._session_manager().revoke(
                session_id, RevocationReason.manual_revocation.value
            )

            if revoked:
                audit = AuditEvent(
                    created_at=self.clock.now(),
                    tenant_id=requesting_tenant_id,
                    actor=requesting_user_id,
                    action="revoke_session",
                    event_metadata={
                        "session_id": str(session_id),
                        "target_user_id": session.user_id,
                        "is_self": is_self,
                    },
                )
                await self.uow.audit_events.create(audit)

            await self.uow.commit()

            return Return.ok(RevokeSessionResponse(session_id=str(session_id), revoked=revoked))
