"""
Exchange Code Use Case

OAuth2 token endpoint, grant_type=authorization_code.
"""

import logging

from libs.result import Error, Result, Return
from src.app.services.authorization_code_broker import AuthorizationCodeBroker
from src.app.services.cache import Cache
from src.app.services.client_registry import ClientRegistry
from src.app.services.clock import Clock
from src.app.services.security_policy_store import SecurityPolicyStore
from src.app.services.session_manager import SessionManager
from src.app.services.unit_of_work import UnitOfWork
from src.domain.device import build_device_info
from src.domain.entities import AuditEvent
from src.domain.identity import UserIdentity
from .dtos import AuthSettings, ExchangeCodeCommand, TokenResponse
from .token_issuer import issue_session_tokens

logger = logging.getLogger(__name__)

_INVALID_GRANT = Error("INVALID_GRANT", "Invalid or expired authorization code")


class ExchangeCodeUseCase:
    """
    Use case for exchanging an authorization code for session tokens.

    Business Rules:
    - Confidential clients authenticate with client_secret; public clients
      must have used PKCE
    - The code is consumed atomically: concurrent exchanges yield one winner
    - client_id and redirect_uri must equal the values the code was issued for
    - Every code failure is reported as INVALID_GRANT; the specific cause is logged
    - The new session is created under the tenant's session cap
    """

    def __init__(
        self,
        uow: UnitOfWork,
        clock: Clock,
        cache: Cache,
        settings: AuthSettings,
    ):
        self.uow = uow
        self.clock = clock
        self.cache = cache
        self.settings = settings

    async def execute(self, command: ExchangeCodeCommand) -> Result[TokenResponse]:
        """
        Execute exchange code use case.

        Args:
            command: Code, client credentials, redirect_uri, PKCE verifier

        Returns:
            Result with TokenResponse, or Error (INVALID_CLIENT, INVALID_GRANT,
            SESSION_LIMIT_REACHED)
        """
        async with self.uow:
            registry = ClientRegistry(self.uow, self.clock)
            if command.client_secret:
                client_result = await registry.authenticate(
                    command.client_id, command.client_secret
                )
            else:
                client_result = await registry.get_active(command.client_id)
            if client_result.is_err():
                return Return.err(client_result.error)
            client = client_result.value

            broker = AuthorizationCodeBroker(
                self.uow, self.clock, ttl_seconds=self.settings.auth_code_ttl_seconds
            )
            exchange = await broker.exchange(command.code, command.code_verifier)
            if exchange.is_err():
                # The code stays consumed after a PKCE failure
                await self.uow.commit()
                logger.info(
                    "Token exchange rejected for client %s: %s",
                    command.client_id,
                    exchange.error.code,
                )
                return Return.err(_INVALID_GRANT)

            auth_code = exchange.value
            if auth_code.client_id != command.client_id:
                await self.uow.commit()
                logger.warning(
                    "Token exchange rejected: code issued to %s presented by %s",
                    auth_code.client_id,
                    command.client_id,
                )
                return Return.err(_INVALID_GRANT)
            if auth_code.redirect_uri != command.redirect_uri:
                await self.uow.commit()
                logger.warning(
                    "Token exchange rejected for client %s: redirect_uri mismatch",
                    command.client_id,
                )
                return Return.err(_INVALID_GRANT)
            if not command.client_secret and not auth_code.code_challenge:
                await self.uow.commit()
                logger.warning(
                    "Token exchange rejected for client %s: no client secret and no PKCE",
                    command.client_id,
                )
                return Return.err(Error("INVALID_CLIENT", "Client authentication required"))

            profile = auth_code.profile or {}
            user = UserIdentity(
                user_id=auth_code.user_id,
                email=auth_code.user_email,
                role=auth_code.user_role,
                name=profile.get("name"),
                company_name=profile.get("supplier_name") or profile.get("company_name"),
                profile=auth_code.profile,
            )
            context = command.context
            device_info = build_device_info(
                ip_address=context.ip_address,
                user_agent=context.user_agent,
                country=context.country,
                city=context.city,
                accept_language=context.accept_language,
            )
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
            issued = await issue_session_tokens(
                session_manager,
                self.settings,
                tenant_id=auth_code.tenant_id,
                user=user,
                client_app=client.client_app,
                device_info=device_info,
                client_id=client.client_id,
            )
            if issued.is_err():
                await self.uow.commit()
                return Return.err(issued.error)

            session, tokens = issued.value
            await self.uow.audit_events.create(
                AuditEvent(
                    created_at=self.clock.now(),
                    tenant_id=auth_code.tenant_id,
                    actor=auth_code.user_id,
                    action="token_exchanged",
                    event_metadata={
                        "session_id": str(session.id),
                        "client_id": client.client_id,
                        "ip_address": device_info.ip_address,
                    },
                )
            )
            await self.uow.commit()

            return Return.ok(tokens)
