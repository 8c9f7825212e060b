import pytest
from httpx import AsyncClient

from tests.utils.auth_flows import ADMIN_HEADERS, bearer, login_tokens, owner_tokens

CHROME_ON_WINDOWS = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)


async def _introspect(client: AsyncClient, **payload):
    response = await client.post("/sessions/introspect", json=payload, headers=ADMIN_HEADERS)
    assert response.status_code == 200
    return response.json()


async def _set_policy(client: AsyncClient, **changes):
    owner = await owner_tokens(client)
    response = await client.put(
        "/security/config", json=changes, headers=bearer(owner["access_token"])
    )
    assert response.status_code == 200, response.text
    return owner


@pytest.mark.asyncio
async def test_list_sessions_marks_current_and_captures_device(client: AsyncClient):
    response = await client.post(
        "/auth/login",
        json={"email": "buyer@acme.com", "password": "Correct-Horse-1", "tenant_id": "acme"},
        headers={"User-Agent": CHROME_ON_WINDOWS},
    )
    tokens = response.json()
    other = await login_tokens(client)

    listed = await client.get("/sessions", headers=bearer(tokens["access_token"]))

    assert listed.status_code == 200
    data = listed.json()
    assert data["total"] == 2
    by_id = {s["id"]: s for s in data["sessions"]}
    assert by_id[tokens["session_id"]]["is_current"] is True
    assert by_id[other["session_id"]]["is_current"] is False
    assert by_id[tokens["session_id"]]["browser"] == "Chrome"
    assert by_id[tokens["session_id"]]["os"] == "Windows"
    assert by_id[tokens["session_id"]]["device_type"] == "desktop"


@pytest.mark.asyncio
async def test_introspect_active_session_by_token(client: AsyncClient):
    tokens = await login_tokens(client)

    data = await _introspect(client, token=tokens["access_token"])

    assert data["active"] is True
    assert data["session"]["id"] == tokens["session_id"]
    assert data["session"]["user_id"] == "u-100"


@pytest.mark.asyncio
async def test_introspect_requires_admin_key(client: AsyncClient):
    response = await client.post("/sessions/introspect", json={"session_id": None})

    assert response.status_code == 401


@pytest.mark.asyncio
async def test_introspect_garbage_token_is_inactive(client: AsyncClient):
    data = await _introspect(client, token="not-a-jwt")

    assert data == {"active": False, "reason": "INVALID_TOKEN", "session": None}


@pytest.mark.asyncio
async def test_logout_revokes_session(client: AsyncClient):
    tokens = await login_tokens(client)

    response = await client.post("/auth/logout", headers=bearer(tokens["access_token"]))

    assert response.status_code == 200
    assert response.json()["revoked"] is True
    data = await _introspect(client, session_id=tokens["session_id"])
    assert data["active"] is False
    assert data["reason"] == "SESSION_REVOKED"

    # The access token dies with its session
    again = await client.get("/sessions", headers=bearer(tokens["access_token"]))
    assert again.status_code == 401


@pytest.mark.asyncio
async def test_session_expires_after_policy_timeout(client: AsyncClient, clock):
    tokens = await login_tokens(client)

    clock.advance(hours=24, seconds=1)
    data = await _introspect(client, session_id=tokens["session_id"])

    assert data["active"] is False
    assert data["reason"] == "SESSION_EXPIRED"


@pytest.mark.asyncio
async def test_introspect_other_tenant_is_not_found(client: AsyncClient):
    tokens = await login_tokens(client)

    data = await _introspect(client, session_id=tokens["session_id"], tenant_id="globex")

    assert data["active"] is False
    assert data["reason"] == "SESSION_NOT_FOUND"


@pytest.mark.asyncio
async def test_revoke_specific_session(client: AsyncClient):
    current = await login_tokens(client)
    other = await login_tokens(client)

    response = await client.delete(
        f"/sessions/{other['session_id']}", headers=bearer(current["access_token"])
    )

    assert response.status_code == 200
    assert response.json() == {"session_id": other["session_id"], "revoked": True}
    assert (await _introspect(client, session_id=other["session_id"]))["active"] is False
    assert (await _introspect(client, session_id=current["session_id"]))["active"] is True


@pytest.mark.asyncio
async def test_customer_cannot_revoke_someone_elses_session(client: AsyncClient):
    owner = await owner_tokens(client)
    buyer = await login_tokens(client)

    response = await client.delete(
        f"/sessions/{owner['session_id']}", headers=bearer(buyer["access_token"])
    )

    assert response.status_code == 403


@pytest.mark.asyncio
async def test_admin_revokes_all_sessions_of_a_user(client: AsyncClient):
    first = await login_tokens(client)
    second = await login_tokens(client)
    owner = await owner_tokens(client)

    response = await client.post(
        "/sessions/revoke-all",
        json={"user_id": "u-100"},
        headers=bearer(owner["access_token"]),
    )

    assert response.status_code == 200
    assert response.json() == {"revoked_count": 2, "target_user_id": "u-100"}
    for tokens in (first, second):
        assert (await _introspect(client, session_id=tokens["session_id"]))["active"] is False
    assert (await _introspect(client, session_id=owner["session_id"]))["active"] is True


@pytest.mark.asyncio
async def test_customer_cannot_list_other_users_sessions(client: AsyncClient):
    buyer = await login_tokens(client)

    response = await client.get(
        "/sessions", params={"user_id": "u-1"}, headers=bearer(buyer["access_token"])
    )

    assert response.status_code == 403


@pytest.mark.asyncio
async def test_session_cap_evicts_least_recently_active(client: AsyncClient, clock):
    await _set_policy(client, max_sessions_per_user=2)

    first = await login_tokens(client)
    clock.advance(seconds=5)
    second = await login_tokens(client)
    clock.advance(seconds=5)
    third = await login_tokens(client)

    assert (await _introspect(client, session_id=first["session_id"]))["reason"] == "SESSION_REVOKED"
    assert (await _introspect(client, session_id=second["session_id"]))["active"] is True
    assert (await _introspect(client, session_id=third["session_id"]))["active"] is True


@pytest.mark.asyncio
async def test_session_cap_reject_new(client: AsyncClient, clock):
    await _set_policy(client, max_sessions_per_user=1, session_limit_policy="reject_new")

    await login_tokens(client)
    clock.advance(seconds=5)
    response = await client.post(
        "/auth/login",
        json={"email": "buyer@acme.com", "password": "Correct-Horse-1", "tenant_id": "acme"},
    )

    assert response.status_code == 409
    assert response.json()["error"]["code"] == "SESSION_LIMIT_REACHED"
