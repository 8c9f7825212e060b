"""
Login Use Case

Authenticates a user against the identity API, guarded by IP blocks and the
brute-force gate, and returns either an authorization code or session tokens.
"""

import logging
from datetime import timedelta
from typing import Optional

from libs.result import Error, Result, Return
from src.app.services.authorization_code_broker import AuthorizationCodeBroker
from src.app.services.cache import Cache
from src.app.services.client_registry import ClientRegistry
from src.app.services.clock import Clock
from src.app.services.credential_verifier import CredentialVerifier
from src.app.services.ip_block_registry import BlockMatch, IPBlockRegistry
from src.app.services.login_attempt_ledger import LoginAttemptLedger
from src.app.services.security_policy_store import SecurityPolicyStore
from src.app.services.session_manager import SessionManager
from src.app.services.unit_of_work import UnitOfWork
from src.domain.brute_force import LoginGateDecision
from src.domain.device import DeviceInfo, build_device_info
from src.domain.entities import (
    AuditEvent,
    BlockReason,
    ClientApp,
    CodeChallengeMethod,
    LoginFailureReason,
)
from .dtos import AuthorizationCodeResponse, AuthSettings, LoginCommand, LoginResponse
from .token_issuer import issue_session_tokens

logger = logging.getLogger(__name__)

_FAILURE_REASONS = {
    "INVALID_CREDENTIALS": LoginFailureReason.invalid_credentials,
    "USER_BLOCKED": LoginFailureReason.user_blocked,
    "IDENTITY_PROVIDER_ERROR": LoginFailureReason.identity_provider_error,
}


class LoginUseCase:
    """
    Use case for POST /auth/login.

    Business Rules:
    - Order: IP block check, brute-force gate, credential verification,
      attempt recorded, then code or session issued
    - Every attempt is recorded, including those rejected before verification
    - A locked account is rejected even with correct credentials
    - An IP whose failures across all tenants pass the threshold is blocked
      for the tenant automatically
    - response_type=code needs a registered client_id and redirect_uri
    - The database transaction is not held open during the identity API call
    """

    def __init__(
        self,
        uow: UnitOfWork,
        clock: Clock,
        cache: Cache,
        verifier: CredentialVerifier,
        settings: AuthSettings,
    ):
        self.uow = uow
        self.clock = clock
        self.cache = cache
        self.verifier = verifier
        self.settings = settings

    async def execute(self, command: LoginCommand) -> Result[LoginResponse]:
        """
        Execute login use case.

        Args:
            command: Credentials, tenant, OAuth parameters and caller context

        Returns:
            Result with LoginResponse, or Error (IP_BLOCKED, ACCOUNT_LOCKED,
            RATE_LIMITED, INVALID_CREDENTIALS, USER_BLOCKED, INVALID_CLIENT,
            INVALID_REQUEST, SESSION_LIMIT_REACHED, IDENTITY_PROVIDER_ERROR)
        """
        email = command.email.strip().lower()
        context = command.context
        device_info = build_device_info(
            ip_address=context.ip_address,
            user_agent=context.user_agent,
            country=context.country,
            city=context.city,
            accept_language=context.accept_language,
        )
        is_code_flow = command.response_type == "code"

        request_check = self._check_request(command)
        if request_check is not None:
            return Return.err(request_check)

        # Phase 1: gates that run before the credentials are looked at
        async with self.uow:
            policy_store = self._policy_store()
            ledger = self._ledger()
            policy = await policy_store.get_policy(command.tenant_id)

            block = await IPBlockRegistry(self.uow, self.clock).check(
                device_info.ip_address, command.tenant_id, policy
            )
            if block is not None:
                await self._record_failure(
                    ledger, email, command, device_info, LoginFailureReason.ip_blocked
                )
                await self.uow.commit()
                return Return.err(self._ip_blocked_error(block))

            decision = await ledger.check_login_allowed(
                email, device_info.ip_address, command.tenant_id, policy
            )
            if not decision.allowed:
                reason = (
                    LoginFailureReason.account_locked
                    if decision.reason == "ACCOUNT_LOCKED"
                    else LoginFailureReason.rate_limited
                )
                await self._record_failure(ledger, email, command, device_info, reason)
                await self.uow.commit()
                return Return.err(self._gate_error(decision))

            if is_code_flow:
                client_result = await ClientRegistry(
                    self.uow, self.clock
                ).validate_authorization_request(command.client_id, command.redirect_uri)
                if client_result.is_err():
                    await self.uow.commit()
                    return Return.err(client_result.error)

            await self.uow.commit()

        verification = await self.verifier.verify(command.tenant_id, email, command.password)

        # Phase 2: record the outcome and issue credentials
        async with self.uow:
            ledger = self._ledger()

            if verification.is_err():
                error = verification.error
                reason = _FAILURE_REASONS.get(error.code, LoginFailureReason.invalid_credentials)
                await self._record_failure(ledger, email, command, device_info, reason)
                if reason != LoginFailureReason.identity_provider_error:
                    await self._auto_block(ledger, command.tenant_id, device_info.ip_address)
                await self.uow.commit()

                if error.code == "INVALID_CREDENTIALS":
                    remaining = decision.attempts_remaining
                    return Return.err(
                        Error(
                            "INVALID_CREDENTIALS",
                            "Invalid credentials",
                            details={
                                "attempts_remaining": max(0, remaining - 1)
                                if remaining is not None
                                else None
                            },
                        )
                    )
                return Return.err(error)

            user = verification.value
            await ledger.record_attempt(
                email=email,
                ip_address=device_info.ip_address,
                success=True,
                tenant_id=command.tenant_id,
                device_info=device_info,
                client_id=command.client_id,
            )

            if is_code_flow:
                broker = AuthorizationCodeBroker(
                    self.uow, self.clock, ttl_seconds=self.settings.auth_code_ttl_seconds
                )
                code_result = await broker.issue(
                    client_id=command.client_id,
                    tenant_id=command.tenant_id,
                    user=user,
                    redirect_uri=command.redirect_uri,
                    state=command.state,
                    scope=command.scope,
                    code_challenge=command.code_challenge,
                    code_challenge_method=command.code_challenge_method,
                )
                if code_result.is_err():
                    await self.uow.commit()
                    return Return.err(code_result.error)

                await self.uow.commit()
                logger.info(
                    "Issued authorization code for user %s, client %s, tenant %s",
                    user.user_id,
                    command.client_id,
                    command.tenant_id,
                )
                return Return.ok(
                    LoginResponse(
                        response_type="code",
                        authorization=AuthorizationCodeResponse(
                            redirect_uri=command.redirect_uri,
                            code=code_result.value,
                            state=command.state,
                        ),
                    )
                )

            session_manager = SessionManager(
                self.uow,
                self.clock,
                self._policy_store(),
                self.settings.refresh_token_secret,
            )
            issued = await issue_session_tokens(
                session_manager,
                self.settings,
                tenant_id=command.tenant_id,
                user=user,
                client_app=ClientApp.from_client_id(command.client_id),
                device_info=device_info,
                client_id=command.client_id,
                storefront_id=command.storefront_id,
            )
            if issued.is_err():
                # Keep the successful attempt on record
                await self.uow.commit()
                return Return.err(issued.error)

            session, tokens = issued.value
            await self.uow.audit_events.create(
                AuditEvent(
                    created_at=self.clock.now(),
                    tenant_id=command.tenant_id,
                    actor=user.user_id,
                    action="login",
                    event_metadata={
                        "session_id": str(session.id),
                        "client_id": command.client_id,
                        "ip_address": device_info.ip_address,
                    },
                )
            )
            await self.uow.commit()

            return Return.ok(LoginResponse(response_type="token", tokens=tokens))

    def _check_request(self, command: LoginCommand) -> Optional[Error]:
        if command.response_type != "code":
            return None
        if not command.client_id or not command.redirect_uri:
            return Error(
                "INVALID_REQUEST", "client_id and redirect_uri are required for OAuth flow"
            )
        method = command.code_challenge_method
        if method is not None and method not in [m.value for m in CodeChallengeMethod]:
            return Error("INVALID_REQUEST", "code_challenge_method must be 'plain' or 'S256'")
        if method is not None and not command.code_challenge:
            return Error("INVALID_REQUEST", "code_challenge_method given without code_challenge")
        return None

    def _policy_store(self) -> SecurityPolicyStore:
        return SecurityPolicyStore(
            self.uow,
            self.clock,
            self.cache,
            cache_ttl_seconds=self.settings.policy_cache_ttl_seconds,
        )

    def _ledger(self) -> LoginAttemptLedger:
        return LoginAttemptLedger(
            self.uow, self.clock, max_delay_seconds=self.settings.max_progressive_delay_seconds
        )

    async def _record_failure(
        self,
        ledger: LoginAttemptLedger,
        email: str,
        command: LoginCommand,
        device_info: DeviceInfo,
        reason: LoginFailureReason,
    ) -> None:
        await ledger.record_attempt(
            email=email,
            ip_address=device_info.ip_address,
            success=False,
            tenant_id=command.tenant_id,
            failure_reason=reason,
            device_info=device_info,
            client_id=command.client_id,
        )

    async def _auto_block(self, ledger: LoginAttemptLedger, tenant_id: str, ip_address: str) -> None:
        failed = await ledger.count_failed_by_ip(
            ip_address, self.settings.auto_block_ip_window_minutes
        )
        if failed <= self.settings.auto_block_ip_threshold:
            return

        expires_at = self.clock.now() + timedelta(hours=self.settings.auto_block_ip_hours)
        result = await IPBlockRegistry(self.uow, self.clock).block(
            ip_address,
            tenant_id=tenant_id,
            reason=BlockReason.brute_force,
            description=(
                f"{failed} failed logins in {self.settings.auto_block_ip_window_minutes} minutes"
            ),
            expires_at=expires_at,
            blocked_by="system",
        )
        if result.is_err():
            logger.error("Auto-block of %s failed: %s", ip_address, result.error.message)
            return

        await self.uow.audit_events.create(
            AuditEvent(
                created_at=self.clock.now(),
                tenant_id=tenant_id,
                actor="system",
                action="ip_auto_blocked",
                event_metadata={
                    "ip_address": ip_address,
                    "failed_attempts": failed,
                    "expires_at": expires_at.isoformat(),
                },
            )
        )

    @staticmethod
    def _ip_blocked_error(block: BlockMatch) -> Error:
        expires_at = block.expires_at.isoformat() if block.expires_at else None
        return Error(
            "IP_BLOCKED",
            "Access from this IP address is blocked",
            details={"scope": block.scope, "reason": block.reason, "expires_at": expires_at},
        )

    @staticmethod
    def _gate_error(decision: LoginGateDecision) -> Error:
        lockout_until = decision.lockout_until.isoformat() if decision.lockout_until else None
        message = (
            "Too many failed login attempts. Account temporarily locked"
            if decision.reason == "ACCOUNT_LOCKED"
            else "Too many login attempts. Please wait before retrying"
        )
        return Error(
            decision.reason,
            message,
            retryable=True,
            details={
                "retry_after_seconds": decision.retry_after_seconds,
                "lockout_until": lockout_until,
            },
        )
