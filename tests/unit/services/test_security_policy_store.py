from unittest.mock import AsyncMock

import pytest

from src.app.services.security_policy_store import SecurityPolicyStore
from src.domain.entities import SessionLimitPolicy, TenantSecurityConfig


@pytest.fixture
def stored():
    return TenantSecurityConfig(tenant_id="acme")


@pytest.fixture
def store(mock_uow, clock, cache, stored):
    mock_uow.security_configs.get_by_tenant_id = AsyncMock(return_value=stored)
    mock_uow.security_configs.create = AsyncMock(side_effect=lambda c: c)
    mock_uow.security_configs.update = AsyncMock(side_effect=lambda c: c)
    return SecurityPolicyStore(mock_uow, clock, cache, cache_ttl_seconds=60)


@pytest.mark.asyncio
async def test_missing_policy_is_created_with_defaults(store, mock_uow):
    mock_uow.security_configs.get_by_tenant_id.return_value = None

    policy = await store.get_policy("globex")

    assert policy.tenant_id == "globex"
    assert policy.max_sessions_per_user == 5
    assert policy.session_timeout_hours == 24
    assert policy.session_limit_policy == SessionLimitPolicy.evict_oldest
    assert policy.max_login_attempts == 5
    assert policy.lockout_minutes == 15
    mock_uow.security_configs.create.assert_awaited_once()


@pytest.mark.asyncio
async def test_reads_are_cached_until_ttl(store, mock_uow, clock):
    await store.get_policy("acme")
    await store.get_policy("acme")
    assert mock_uow.security_configs.get_by_tenant_id.await_count == 1

    clock.advance(seconds=61)
    await store.get_policy("acme")
    assert mock_uow.security_configs.get_by_tenant_id.await_count == 2


@pytest.mark.asyncio
async def test_update_invalidates_cache(store, mock_uow):
    await store.get_policy("acme")

    result = await store.update_policy("acme", {"max_login_attempts": 3}, updated_by="u-1")
    policy = await store.get_policy("acme")

    assert result.value.max_login_attempts == 3
    assert result.value.updated_by == "u-1"
    assert policy.max_login_attempts == 3
    assert mock_uow.security_configs.get_by_tenant_id.await_count == 3


@pytest.mark.asyncio
async def test_update_coerces_session_limit_policy(store):
    result = await store.update_policy("acme", {"session_limit_policy": "reject_new"})

    assert result.value.session_limit_policy == SessionLimitPolicy.reject_new


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "changes",
    [
        {"tenant_id": "globex"},
        {"max_sessions_per_user": 0},
        {"session_timeout_hours": 721},
        {"max_login_attempts": True},
        {"lockout_minutes": "15"},
        {"session_limit_policy": "newest_wins"},
        {"ip_blacklist": ["300.1.1.1"]},
    ],
)
async def test_invalid_changes_are_rejected(store, mock_uow, changes):
    result = await store.update_policy("acme", changes)

    assert result.error.code == "VALIDATION_ERROR"
    mock_uow.security_configs.update.assert_not_called()


@pytest.mark.asyncio
async def test_password_expiry_can_be_cleared(store):
    result = await store.update_policy("acme", {"password_expiry_days": None})

    assert result.value.password_expiry_days is None
