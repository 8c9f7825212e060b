"""
Brute-force policy: flat lockout combined with progressive delay.

Pure functions over already-fetched attempt history so the decision can be
tested without a database.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import List, Optional, Sequence

from src.domain.entities import LoginAttempt, LoginFailureReason


@dataclass(frozen=True)
class RiskCounts:
    total: int
    failed: int


@dataclass(frozen=True)
class LoginGateDecision:
    allowed: bool
    reason: Optional[str] = None  # "ACCOUNT_LOCKED" | "RATE_LIMITED"
    retry_after_seconds: int = 0
    lockout_until: Optional[datetime] = None
    attempts_remaining: Optional[int] = None


def progressive_delay_seconds(consecutive_failures: int, max_delay_seconds: int) -> int:
    """
    Wait required after the last failure: 0 for the first failure, then
    1, 2, 4, 8... seconds, capped at max_delay_seconds.
    """
    if consecutive_failures < 2:
        return 0
    return min(2 ** (consecutive_failures - 2), max_delay_seconds)


def counts_as_failure(attempt: LoginAttempt) -> bool:
    """Failures caused by an identity API outage are not held against the user."""
    if attempt.success:
        return False
    return attempt.failure_reason != LoginFailureReason.identity_provider_error


def count_consecutive_failures(recent_attempts: Sequence[LoginAttempt]) -> int:
    """recent_attempts must be ordered newest first."""
    count = 0
    for attempt in recent_attempts:
        if attempt.success:
            break
        if counts_as_failure(attempt):
            count += 1
    return count


def evaluate_login_gate(
    recent_attempts: Sequence[LoginAttempt],
    now: datetime,
    max_login_attempts: int,
    lockout_minutes: int,
    enable_progressive_delay: bool,
    max_delay_seconds: int,
) -> LoginGateDecision:
    """
    Decide whether a new attempt may proceed.

    recent_attempts: attempts for the email OR the IP inside the trailing
    lockout window, newest first.

    Flat lockout holds while the window contains max_login_attempts failures;
    it lifts when the oldest of those ages out. Progressive delay requires a
    growing wait after consecutive failures. Whichever wait is longer wins.
    """
    window = timedelta(minutes=lockout_minutes)
    failures: List[datetime] = [
        a.timestamp for a in recent_attempts if counts_as_failure(a) and a.timestamp > now - window
    ]
    attempts_remaining = max(0, max_login_attempts - len(failures))

    lockout_until = None
    lock_remaining = 0.0
    if len(failures) >= max_login_attempts:
        # Oldest failure that still keeps the count at the threshold
        pivot = sorted(failures, reverse=True)[max_login_attempts - 1]
        lockout_until = pivot + window
        lock_remaining = (lockout_until - now).total_seconds()

    delay_remaining = 0.0
    if enable_progressive_delay and failures:
        consecutive = count_consecutive_failures(recent_attempts)
        delay = progressive_delay_seconds(consecutive, max_delay_seconds)
        if delay:
            delay_remaining = (max(failures) + timedelta(seconds=delay) - now).total_seconds()

    if lock_remaining <= 0 and delay_remaining <= 0:
        return LoginGateDecision(allowed=True, attempts_remaining=attempts_remaining)

    if lock_remaining >= delay_remaining:
        return LoginGateDecision(
            allowed=False,
            reason="ACCOUNT_LOCKED",
            retry_after_seconds=_ceil_seconds(lock_remaining),
            lockout_until=lockout_until,
            attempts_remaining=0,
        )
    return LoginGateDecision(
        allowed=False,
        reason="RATE_LIMITED",
        retry_after_seconds=_ceil_seconds(delay_remaining),
        lockout_until=lockout_until,
        attempts_remaining=attempts_remaining,
    )


def _ceil_seconds(value: float) -> int:
    whole = int(value)
    return whole + 1 if value > whole else max(whole, 1)
