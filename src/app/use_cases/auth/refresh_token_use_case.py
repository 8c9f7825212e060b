"""
Refresh Token Use Case

OAuth2 token endpoint, grant_type=refresh_token (with rotation).
"""

import logging
from typing import Optional

from libs.result import Error, Result, Return
from src.app.services.cache import Cache
from src.app.services.client_registry import ClientRegistry
from src.app.services.clock import Clock
from src.app.services.security_policy_store import SecurityPolicyStore
from src.app.services.session_manager import SessionManager
from src.app.services.unit_of_work import UnitOfWork
from src.domain.entities import AuditEvent
from .dtos import AuthSettings, TokenResponse
from .token_issuer import build_token_response

logger = logging.getLogger(__name__)


class RefreshTokenUseCase:
    """
    Use case for refreshing access tokens.

    Business Rules:
    - Each refresh token is single-use: a successful refresh rotates it
    - Session must be active (not revoked, not expired)
    - Session expiry is never extended by a refresh
    - A client secret, when given, must authenticate the client
    - Replaying a rotated token, or presenting one from another client,
      revokes the session and is audit-logged
    """

    REVOKING_ERRORS = {
        "TOKEN_REUSE_DETECTED": "refresh_token_reuse",
        "CLIENT_MISMATCH": "refresh_client_mismatch",
    }

    def __init__(self, uow: UnitOfWork, clock: Clock, cache: Cache, settings: AuthSettings):
        self.uow = uow
        self.clock = clock
        self.cache = cache
        self.settings = settings

    async def execute(
        self,
        refresh_token: str,
        client_id: Optional[str] = None,
        client_secret: Optional[str] = None,
    ) -> Result[TokenResponse]:
        """
        Execute refresh token use case.

        Args:
            refresh_token: Raw refresh token from the previous issuance
            client_id: Client presenting the token (optional)
            client_secret: Client secret for confidential clients (optional)

        Returns:
            Result with TokenResponse, or Error (INVALID_CLIENT, INVALID_TOKEN,
            TOKEN_REUSE_DETECTED, CLIENT_MISMATCH, SESSION_REVOKED, SESSION_EXPIRED)
        """
        async with self.uow:
            if client_id and client_secret:
                client_result = await ClientRegistry(self.uow, self.clock).authenticate(
                    client_id, client_secret
                )
                if client_result.is_err():
                    return Return.err(client_result.error)

            session_manager = SessionManager(
                self.uow,
                self.clock,
                SecurityPolicyStore(
                    self.uow,
                    self.clock,
                    self.cache,
                    cache_ttl_seconds=self.settings.policy_cache_ttl_seconds,
                ),
                self.settings.refresh_token_secret,
            )
            rotated = await session_manager.rotate_refresh_token(refresh_token, client_id)
            if rotated.is_err():
                error = rotated.error
                logger.info("Refresh rejected: %s", error.code)
                if error.code in self.REVOKING_ERRORS:
                    await self._record_revocation(error, client_id)
                    await self.uow.commit()
                    return Return.err(Error(error.code, error.message))
                return Return.err(error)

            session, new_refresh_token = rotated.value
            response, jti = build_token_response(session, new_refresh_token, self.settings)
            session.access_token_jti = jti
            await self.uow.sessions.update(session)

            await self.uow.commit()

            return Return.ok(response)

    async def _record_revocation(self, error: Error, client_id: Optional[str]) -> None:
        await self.uow.audit_events.create(
            AuditEvent(
                created_at=self.clock.now(),
                tenant_id=error.details["tenant_id"],
                actor=error.details["user_id"],
                action=self.REVOKING_ERRORS[error.code],
                event_metadata={"session_id": error.details["session_id"], "client_id": client_id},
            )
        )
