from datetime import timedelta
from unittest.mock import AsyncMock

import pytest

from src.app.services.login_attempt_ledger import LoginAttemptLedger
from src.domain.brute_force import RiskCounts
from src.domain.entities import LoginAttempt, LoginFailureReason, TenantSecurityConfig

IP = "203.0.113.9"


@pytest.fixture
def ledger(mock_uow, clock):
    mock_uow.login_attempts.count_since = AsyncMock(return_value=(0, 0))
    mock_uow.login_attempts.list_recent = AsyncMock(return_value=[])
    return LoginAttemptLedger(mock_uow, clock)


def _failure(clock, minutes_ago, email="buyer@acme.com", ip_address=IP):
    return LoginAttempt(
        email=email,
        ip_address=ip_address,
        success=False,
        failure_reason=LoginFailureReason.invalid_credentials,
        timestamp=clock.now() - timedelta(minutes=minutes_ago),
    )


@pytest.mark.asyncio
async def test_evaluate_risk_counts_email_or_ip_in_window(ledger, mock_uow, clock):
    mock_uow.login_attempts.count_since.return_value = (7, 4)

    risk = await ledger.evaluate_risk(" Buyer@Acme.com ", IP, "acme", window_minutes=30)

    assert risk == RiskCounts(total=7, failed=4)
    mock_uow.login_attempts.count_since.assert_awaited_once_with(
        "buyer@acme.com", IP, clock.now() - timedelta(minutes=30), "acme"
    )


@pytest.mark.asyncio
async def test_evaluate_risk_defaults_to_fifteen_minutes(ledger, mock_uow, clock):
    risk = await ledger.evaluate_risk("buyer@acme.com", IP)

    assert risk == RiskCounts(total=0, failed=0)
    assert mock_uow.login_attempts.count_since.await_args.args[2] == clock.now() - timedelta(
        minutes=15
    )


@pytest.mark.asyncio
async def test_clean_history_skips_attempt_scan(ledger, mock_uow):
    policy = TenantSecurityConfig(tenant_id="acme", max_login_attempts=5, lockout_minutes=10)
    mock_uow.login_attempts.count_since.return_value = (3, 0)

    decision = await ledger.check_login_allowed("buyer@acme.com", IP, "acme", policy)

    assert decision.allowed is True
    assert decision.attempts_remaining == 5
    mock_uow.login_attempts.list_recent.assert_not_called()


@pytest.mark.asyncio
async def test_failures_against_one_email_from_many_ips_lock(ledger, mock_uow, clock):
    policy = TenantSecurityConfig(tenant_id="acme", max_login_attempts=5, lockout_minutes=10)
    mock_uow.login_attempts.count_since.return_value = (5, 5)
    mock_uow.login_attempts.list_recent.return_value = [
        _failure(clock, minutes, ip_address=f"198.51.100.{minutes}") for minutes in (1, 2, 3, 4, 5)
    ]

    decision = await ledger.check_login_allowed("buyer@acme.com", IP, "acme", policy)

    assert decision.allowed is False
    assert decision.reason == "ACCOUNT_LOCKED"
    assert decision.retry_after_seconds == 5 * 60
    args = mock_uow.login_attempts.list_recent.await_args.args
    assert args[:2] == ("buyer@acme.com", IP)
    assert args[2] == clock.now() - timedelta(minutes=10)
