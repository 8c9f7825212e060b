import pytest
from httpx import AsyncClient

from tests.utils.auth_flows import bearer, login_tokens, owner_tokens


@pytest.mark.asyncio
async def test_defaults_are_created_on_first_read(client: AsyncClient):
    owner = await owner_tokens(client)

    response = await client.get("/security/config", headers=bearer(owner["access_token"]))

    assert response.status_code == 200
    data = response.json()
    assert data["tenant_id"] == "acme"
    assert data["max_sessions_per_user"] == 5
    assert data["session_timeout_hours"] == 24
    assert data["session_limit_policy"] == "evict_oldest"
    assert data["max_login_attempts"] == 5
    assert data["lockout_minutes"] == 15
    assert data["enable_progressive_delay"] is True
    assert data["ip_whitelist"] == []
    assert data["ip_blacklist"] == []


@pytest.mark.asyncio
async def test_customers_cannot_read_policy(client: AsyncClient):
    buyer = await login_tokens(client)

    response = await client.get("/security/config", headers=bearer(buyer["access_token"]))

    assert response.status_code == 403
    assert response.json()["error"]["code"] == "FORBIDDEN"


@pytest.mark.asyncio
async def test_update_policy(client: AsyncClient):
    owner = await owner_tokens(client)

    response = await client.put(
        "/security/config",
        json={"max_login_attempts": 3, "lockout_minutes": 30, "ip_blacklist": ["203.0.113.0/24"]},
        headers=bearer(owner["access_token"]),
    )

    assert response.status_code == 200
    data = response.json()
    assert data["max_login_attempts"] == 3
    assert data["lockout_minutes"] == 30
    assert data["ip_blacklist"] == ["203.0.113.0/24"]
    assert data["updated_by"] == "u-1"
    # Untouched fields keep their values
    assert data["max_sessions_per_user"] == 5


@pytest.mark.asyncio
async def test_new_lockout_threshold_applies_immediately(client: AsyncClient, clock):
    owner = await owner_tokens(client)
    await client.put(
        "/security/config",
        json={"max_login_attempts": 2, "enable_progressive_delay": False},
        headers=bearer(owner["access_token"]),
    )

    for _ in range(2):
        await client.post(
            "/auth/login",
            json={"email": "buyer@acme.com", "password": "nope", "tenant_id": "acme"},
        )
        clock.advance(seconds=1)

    response = await client.post(
        "/auth/login",
        json={"email": "buyer@acme.com", "password": "Correct-Horse-1", "tenant_id": "acme"},
    )

    assert response.status_code == 429
    assert response.json()["error"]["code"] == "ACCOUNT_LOCKED"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "changes",
    [
        {"max_sessions_per_user": 0},
        {"lockout_minutes": 5000},
        {"session_limit_policy": "kick_everyone"},
        {"ip_whitelist": ["10.0.0.0/33"]},
    ],
)
async def test_invalid_policy_values_are_rejected(client: AsyncClient, changes):
    owner = await owner_tokens(client)

    response = await client.put(
        "/security/config", json=changes, headers=bearer(owner["access_token"])
    )

    assert response.status_code == 422
    assert response.json()["error"]["code"] == "VALIDATION_ERROR"


@pytest.mark.asyncio
async def test_unknown_policy_field_is_rejected(client: AsyncClient):
    owner = await owner_tokens(client)

    response = await client.put(
        "/security/config", json={"tenant_id": "globex"}, headers=bearer(owner["access_token"])
    )

    assert response.status_code == 422


@pytest.mark.asyncio
async def test_policy_changes_are_audited(client: AsyncClient):
    owner = await owner_tokens(client)
    headers = bearer(owner["access_token"])
    await client.put("/security/config", json={"lockout_minutes": 20}, headers=headers)

    response = await client.get(
        "/audit", params={"action": "security_config_updated"}, headers=headers
    )

    assert response.status_code == 200
    events = response.json()["events"]
    assert len(events) == 1
    assert events[0]["actor"] == "u-1"
    assert events[0]["metadata"]["changed_fields"] == ["lockout_minutes"]


@pytest.mark.asyncio
async def test_audit_log_records_logins(client: AsyncClient):
    owner = await owner_tokens(client)

    response = await client.get(
        "/audit", params={"action": "login"}, headers=bearer(owner["access_token"])
    )

    assert response.status_code == 200
    events = response.json()["events"]
    assert events[0]["action"] == "login"
    assert events[0]["metadata"]["session_id"] == owner["session_id"]


@pytest.mark.asyncio
async def test_customers_cannot_read_audit_log(client: AsyncClient):
    buyer = await login_tokens(client)

    response = await client.get("/audit", headers=bearer(buyer["access_token"]))

    assert response.status_code == 403
