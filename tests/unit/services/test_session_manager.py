from datetime import timedelta
from unittest.mock import AsyncMock
from uuid import uuid4

import pytest
from sqlalchemy.exc import OperationalError

from src.app.services.security_policy_store import SecurityPolicyStore
from src.app.services.session_manager import SessionManager
from src.domain.device import build_device_info
from src.domain.entities import (
    ClientApp,
    RevocationReason,
    Session,
    SessionLimitPolicy,
    TenantSecurityConfig,
)
from src.domain.identity import UserIdentity
from src.domain.tokens import hash_refresh_token

SECRET = "unit-test-refresh-secret"
USER = UserIdentity(user_id="u-100", email="buyer@acme.com", role="customer", company_name="Acme")


@pytest.fixture
def policy():
    return TenantSecurityConfig(tenant_id="acme", max_sessions_per_user=3, session_timeout_hours=24)


@pytest.fixture
def manager(mock_uow, clock, cache, policy):
    mock_uow.security_configs.get_by_tenant_id = AsyncMock(return_value=policy)
    mock_uow.sessions.create = AsyncMock(side_effect=lambda s: s)
    mock_uow.sessions.count_active = AsyncMock(return_value=0)
    mock_uow.sessions.revoke_all_but_newest = AsyncMock(return_value=0)
    mock_uow.sessions.get_by_id = AsyncMock()
    mock_uow.sessions.get_by_refresh_token_hash = AsyncMock()
    mock_uow.sessions.get_by_previous_refresh_token_hash = AsyncMock(return_value=None)
    mock_uow.sessions.touch = AsyncMock()
    mock_uow.sessions.revoke_by_id = AsyncMock(return_value=True)
    mock_uow.sessions.replace_refresh_token_hash = AsyncMock(return_value=True)
    store = SecurityPolicyStore(mock_uow, clock, cache)
    return SessionManager(mock_uow, clock, store, SECRET)


def _session(clock, **overrides):
    values = dict(
        id=uuid4(),
        tenant_id="acme",
        user_id="u-100",
        user_email="buyer@acme.com",
        user_role="customer",
        ip_address="203.0.113.9",
        refresh_token_hash=hash_refresh_token("refresh-1", SECRET),
        created_at=clock.now(),
        last_activity=clock.now(),
        expires_at=clock.now() + timedelta(hours=24),
        is_active=True,
    )
    values.update(overrides)
    return Session(**values)


async def _create(manager, **kwargs):
    return await manager.create_session(
        tenant_id="acme",
        user=USER,
        client_app=ClientApp.b2b,
        device_info=build_device_info("203.0.113.9"),
        refresh_token="refresh-1",
        **kwargs,
    )


@pytest.mark.asyncio
async def test_create_stores_only_refresh_token_digest(manager, clock):
    result = await _create(manager, client_id="vinc-b2b")

    session = result.value
    assert session.refresh_token_hash == hash_refresh_token("refresh-1", SECRET)
    assert "refresh-1" not in session.refresh_token_hash
    assert session.expires_at == clock.now() + timedelta(hours=24)
    assert session.last_activity == clock.now()
    assert session.company_name == "Acme"
    assert session.client_id == "vinc-b2b"


@pytest.mark.asyncio
async def test_create_evicts_down_to_cap(manager, mock_uow, clock):
    mock_uow.sessions.revoke_all_but_newest.return_value = 1

    result = await _create(manager)

    assert result.is_ok()
    mock_uow.sessions.revoke_all_but_newest.assert_awaited_once_with(
        "acme",
        "u-100",
        keep=2,
        reason=RevocationReason.session_limit_exceeded.value,
        now=clock.now(),
    )


@pytest.mark.asyncio
async def test_reject_new_refuses_when_cap_reached(manager, mock_uow, policy):
    policy.session_limit_policy = SessionLimitPolicy.reject_new
    mock_uow.sessions.count_active.return_value = 3

    result = await _create(manager)

    assert result.is_err()
    assert result.error.code == "SESSION_LIMIT_REACHED"
    mock_uow.sessions.create.assert_not_called()
    mock_uow.sessions.revoke_all_but_newest.assert_not_called()


@pytest.mark.asyncio
async def test_validate_active_session_touches_activity(manager, mock_uow, clock):
    session = _session(clock, last_activity=clock.now() - timedelta(hours=1))
    mock_uow.sessions.get_by_id.return_value = session

    result = await manager.validate(session.id, "acme")

    assert result.is_ok()
    assert result.value.last_activity == clock.now()
    mock_uow.sessions.touch.assert_awaited_once_with(session.id, clock.now())


@pytest.mark.asyncio
async def test_validate_survives_failed_activity_write(manager, mock_uow, clock):
    session = _session(clock, last_activity=clock.now() - timedelta(hours=1))
    mock_uow.sessions.get_by_id.return_value = session
    mock_uow.sessions.touch.side_effect = OperationalError(
        "UPDATE sessions", {}, Exception("database is locked")
    )

    result = await manager.validate(session.id, "acme")

    assert result.is_ok()
    assert result.value.last_activity == clock.now() - timedelta(hours=1)


@pytest.mark.asyncio
async def test_validate_reports_revoked_before_expired(manager, mock_uow, clock):
    session = _session(clock, is_active=False, expires_at=clock.now() - timedelta(hours=1))
    mock_uow.sessions.get_by_id.return_value = session

    result = await manager.validate(session.id)

    assert result.error.code == "SESSION_REVOKED"


@pytest.mark.asyncio
async def test_validate_expired_session(manager, mock_uow, clock):
    session = _session(clock)
    mock_uow.sessions.get_by_id.return_value = session
    clock.advance(hours=24)

    result = await manager.validate(session.id)

    assert result.error.code == "SESSION_EXPIRED"
    mock_uow.sessions.touch.assert_not_called()


@pytest.mark.asyncio
async def test_validate_hides_other_tenants_sessions(manager, mock_uow, clock):
    session = _session(clock)
    mock_uow.sessions.get_by_id.return_value = session

    result = await manager.validate(session.id, "globex")

    assert result.error.code == "SESSION_NOT_FOUND"


@pytest.mark.asyncio
async def test_revoke_twice_is_a_no_op(manager, mock_uow):
    mock_uow.sessions.revoke_by_id.side_effect = [True, False]
    session_id = uuid4()

    assert await manager.revoke(session_id) is True
    assert await manager.revoke(session_id) is False


@pytest.mark.asyncio
async def test_rotate_swaps_digest(manager, mock_uow, clock):
    session = _session(clock)
    mock_uow.sessions.get_by_refresh_token_hash.return_value = session

    result = await manager.rotate_refresh_token("refresh-1")

    rotated, new_token = result.value
    assert new_token != "refresh-1"
    assert rotated.refresh_token_hash == hash_refresh_token(new_token, SECRET)
    assert rotated.previous_refresh_token_hash == hash_refresh_token("refresh-1", SECRET)
    mock_uow.sessions.replace_refresh_token_hash.assert_awaited_once_with(
        session.id,
        hash_refresh_token("refresh-1", SECRET),
        hash_refresh_token(new_token, SECRET),
        clock.now(),
    )


@pytest.mark.asyncio
async def test_rotate_losing_race_is_invalid(manager, mock_uow, clock):
    mock_uow.sessions.get_by_refresh_token_hash.return_value = _session(clock)
    mock_uow.sessions.replace_refresh_token_hash.return_value = False

    result = await manager.rotate_refresh_token("refresh-1")

    assert result.error.code == "INVALID_TOKEN"


@pytest.mark.asyncio
async def test_rotate_unknown_token(manager, mock_uow):
    mock_uow.sessions.get_by_refresh_token_hash.return_value = None

    result = await manager.rotate_refresh_token("nope")

    assert result.error.code == "INVALID_TOKEN"
    mock_uow.sessions.revoke_by_id.assert_not_called()


@pytest.mark.asyncio
async def test_rotate_rejects_other_client(manager, mock_uow, clock):
    session = _session(clock, client_id="acme-web")
    mock_uow.sessions.get_by_refresh_token_hash.return_value = session

    result = await manager.rotate_refresh_token("refresh-1", client_id="vinc-mobile")

    assert result.error.code == "CLIENT_MISMATCH"
    mock_uow.sessions.replace_refresh_token_hash.assert_not_called()
    mock_uow.sessions.revoke_by_id.assert_awaited_once_with(
        session.id, RevocationReason.client_mismatch.value, clock.now()
    )


@pytest.mark.asyncio
async def test_rotate_replayed_token_revokes_session(manager, mock_uow, clock):
    session = _session(
        clock,
        refresh_token_hash=hash_refresh_token("refresh-2", SECRET),
        previous_refresh_token_hash=hash_refresh_token("refresh-1", SECRET),
    )
    mock_uow.sessions.get_by_refresh_token_hash.return_value = None
    mock_uow.sessions.get_by_previous_refresh_token_hash.return_value = session

    result = await manager.rotate_refresh_token("refresh-1")

    assert result.error.code == "TOKEN_REUSE_DETECTED"
    assert result.error.details == {
        "session_id": str(session.id),
        "tenant_id": "acme",
        "user_id": "u-100",
    }
    mock_uow.sessions.get_by_previous_refresh_token_hash.assert_awaited_once_with(
        hash_refresh_token("refresh-1", SECRET)
    )
    mock_uow.sessions.revoke_by_id.assert_awaited_once_with(
        session.id, RevocationReason.token_reuse_detected.value, clock.now()
    )
    mock_uow.sessions.replace_refresh_token_hash.assert_not_called()
