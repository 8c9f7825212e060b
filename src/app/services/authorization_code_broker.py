"""
Authorization Code Broker

Issues and consumes one-time OAuth2 authorization codes (with PKCE).
"""

import logging
from datetime import timedelta
from typing import Optional

from libs.result import Error, Result, Return
from src.app.services.clock import Clock
from src.app.services.unit_of_work import UnitOfWork
from src.domain.entities import AuthorizationCode, CodeChallengeMethod
from src.domain.identity import UserIdentity
from src.domain.pkce import verify_code_challenge
from src.domain.tokens import generate_authorization_code

logger = logging.getLogger(__name__)


class AuthorizationCodeBroker:
    """
    Bridges a successful login to session issuance.

    Business Rules:
    - Codes are random, short-lived (AUTH_CODE_TTL_SECONDS) and single-use
    - Consumption is a single conditional update: concurrent exchanges of
      the same code yield exactly one winner
    - A failed PKCE check still consumes the code (no retry oracle)
    - Specific failure codes stay internal; callers expose INVALID_GRANT
    """

    def __init__(self, uow: UnitOfWork, clock: Clock, ttl_seconds: int = 120):
        self.uow = uow
        self.clock = clock
        self.ttl_seconds = ttl_seconds

    async def issue(
        self,
        client_id: str,
        tenant_id: str,
        user: UserIdentity,
        redirect_uri: str,
        state: Optional[str] = None,
        scope: Optional[str] = None,
        code_challenge: Optional[str] = None,
        code_challenge_method: Optional[str] = None,
    ) -> Result[str]:
        """
        Mint a code. The redirect URI must already be validated for the client.

        Errors:
            - INVALID_REQUEST: unsupported PKCE method, or method without challenge
        """
        method = None
        if code_challenge_method is not None:
            try:
                method = CodeChallengeMethod(code_challenge_method)
            except ValueError:
                return Return.err(
                    Error(
                        "INVALID_REQUEST",
                        "code_challenge_method must be 'plain' or 'S256'",
                    )
                )
            if not code_challenge:
                return Return.err(
                    Error("INVALID_REQUEST", "code_challenge_method given without code_challenge")
                )
        if code_challenge and method is None:
            method = CodeChallengeMethod.plain

        now = self.clock.now()
        auth_code = AuthorizationCode(
            code=generate_authorization_code(),
            client_id=client_id,
            tenant_id=tenant_id,
            user_id=user.user_id,
            user_email=user.email.lower(),
            user_role=user.role,
            redirect_uri=redirect_uri,
            state=state,
            scope=scope,
            code_challenge=code_challenge or None,
            code_challenge_method=method,
            profile=user.profile,
            created_at=now,
            expires_at=now + timedelta(seconds=self.ttl_seconds),
        )
        await self.uow.authorization_codes.create(auth_code)
        return Return.ok(auth_code.code)

    async def exchange(
        self, code: str, code_verifier: Optional[str] = None
    ) -> Result[AuthorizationCode]:
        """
        Consume a code and verify PKCE.

        Errors (internal; map to INVALID_GRANT at the boundary):
            - CODE_NOT_FOUND
            - CODE_EXPIRED
            - CODE_ALREADY_USED
            - PKCE_VERIFICATION_FAILED
        """
        now = self.clock.now()
        auth_code = await self.uow.authorization_codes.consume(code, now)

        if auth_code is None:
            error = await self._diagnose(code, now)
            logger.info("Authorization code rejected: %s", error.code)
            return Return.err(error)

        if auth_code.code_challenge:
            if not verify_code_challenge(
                code_verifier, auth_code.code_challenge, auth_code.code_challenge_method
            ):
                logger.warning(
                    "PKCE verification failed for client=%s user=%s; code consumed",
                    auth_code.client_id,
                    auth_code.user_id,
                )
                return Return.err(
                    Error("PKCE_VERIFICATION_FAILED", "Code verifier does not match challenge")
                )

        return Return.ok(auth_code)

    async def purge_expired(self) -> int:
        return await self.uow.authorization_codes.delete_expired(self.clock.now())

    async def _diagnose(self, code: str, now) -> Error:
        existing = await self.uow.authorization_codes.get_by_code(code)
        if existing is None:
            return Error("CODE_NOT_FOUND", "Authorization code not found")
        if existing.used_at is not None:
            return Error("CODE_ALREADY_USED", "Authorization code already used")
        return Error("CODE_EXPIRED", "Authorization code expired")
