"""
Login Attempt Ledger

Append-only attempt log plus the brute-force gate built on top of it.
"""

import logging
from datetime import timedelta
from typing import List, Optional, Tuple

from src.app.services.clock import Clock
from src.app.services.unit_of_work import UnitOfWork
from src.domain.brute_force import LoginGateDecision, RiskCounts, evaluate_login_gate
from src.domain.device import DeviceInfo
from src.domain.entities import LoginAttempt, LoginFailureReason, TenantSecurityConfig

logger = logging.getLogger(__name__)


class LoginAttemptLedger:
    """
    Records login attempts and evaluates brute-force risk.

    Business Rules:
    - Every attempt is appended, success or failure, never rejected
    - Risk counts match the email OR the IP (rotating either is still caught)
    - Flat lockout and progressive delay are both evaluated; the longer wait wins
    """

    RECENT_ATTEMPTS_LIMIT = 200

    def __init__(self, uow: UnitOfWork, clock: Clock, max_delay_seconds: int = 30):
        self.uow = uow
        self.clock = clock
        self.max_delay_seconds = max_delay_seconds

    async def record_attempt(
        self,
        email: str,
        ip_address: str,
        success: bool,
        tenant_id: Optional[str] = None,
        failure_reason: Optional[LoginFailureReason] = None,
        device_info: Optional[DeviceInfo] = None,
        client_id: Optional[str] = None,
    ) -> LoginAttempt:
        attempt = LoginAttempt(
            tenant_id=tenant_id,
            email=email.strip().lower(),
            ip_address=ip_address,
            success=success,
            failure_reason=None if success else failure_reason,
            client_id=client_id,
            timestamp=self.clock.now(),
        )
        if device_info is not None:
            attempt.device_type = device_info.device_type.value
            attempt.browser = device_info.browser
            attempt.os = device_info.os
            attempt.user_agent = device_info.user_agent
            attempt.country = device_info.country
            attempt.city = device_info.city
        return await self.uow.login_attempts.create(attempt)

    async def evaluate_risk(
        self,
        email: str,
        ip_address: str,
        tenant_id: Optional[str] = None,
        window_minutes: int = 15,
    ) -> RiskCounts:
        since = self.clock.now() - timedelta(minutes=window_minutes)
        total, failed = await self.uow.login_attempts.count_since(
            email.strip().lower(), ip_address, since, tenant_id
        )
        return RiskCounts(total=total, failed=failed)

    async def check_login_allowed(
        self,
        email: str,
        ip_address: str,
        tenant_id: Optional[str],
        policy: TenantSecurityConfig,
    ) -> LoginGateDecision:
        risk = await self.evaluate_risk(email, ip_address, tenant_id, policy.lockout_minutes)
        if risk.failed == 0:
            return LoginGateDecision(allowed=True, attempts_remaining=policy.max_login_attempts)

        now = self.clock.now()
        since = now - timedelta(minutes=policy.lockout_minutes)
        recent = await self.uow.login_attempts.list_recent(
            email.strip().lower(),
            ip_address,
            since,
            tenant_id,
            limit=max(self.RECENT_ATTEMPTS_LIMIT, policy.max_login_attempts),
        )
        decision = evaluate_login_gate(
            recent,
            now,
            max_login_attempts=policy.max_login_attempts,
            lockout_minutes=policy.lockout_minutes,
            enable_progressive_delay=policy.enable_progressive_delay,
            max_delay_seconds=self.max_delay_seconds,
        )
        if not decision.allowed:
            logger.warning(
                "Login gate rejected email=%s ip=%s tenant=%s: %s (retry in %ss, %s of %s failed)",
                email,
                ip_address,
                tenant_id,
                decision.reason,
                decision.retry_after_seconds,
                risk.failed,
                risk.total,
            )
        return decision

    async def count_failed_by_ip(self, ip_address: str, window_minutes: int) -> int:
        since = self.clock.now() - timedelta(minutes=window_minutes)
        return await self.uow.login_attempts.count_failed_by_ip(ip_address, since)

    async def list_attempts(
        self,
        tenant_id: str,
        page: int = 1,
        limit: int = 50,
        email: Optional[str] = None,
        ip_address: Optional[str] = None,
        success: Optional[bool] = None,
    ) -> Tuple[List[LoginAttempt], int]:
        return await self.uow.login_attempts.list_paginated(
            tenant_id,
            page=page,
            limit=limit,
            email=email.strip().lower() if email else None,
            ip_address=ip_address,
            success=success,
        )

    async def purge_older_than(self, retention_days: int) -> int:
        cutoff = self.clock.now() - timedelta(days=retention_days)
        return await self.uow.login_attempts.delete_older_than(cutoff)
