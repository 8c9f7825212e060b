import pytest
from httpx import AsyncClient

from tests.utils.auth_flows import ADMIN_HEADERS, bearer, login_tokens, owner_tokens


async def _refresh(client: AsyncClient, refresh_token: str, **extra):
    return await client.post(
        "/oauth/token",
        json={"grant_type": "refresh_token", "refresh_token": refresh_token, **extra},
    )


@pytest.mark.asyncio
async def test_refresh_rotates_token(client: AsyncClient):
    tokens = await login_tokens(client)

    response = await _refresh(client, tokens["refresh_token"])

    assert response.status_code == 200
    data = response.json()
    assert data["session_id"] == tokens["session_id"]
    assert data["refresh_token"] != tokens["refresh_token"]
    assert data["access_token"] != tokens["access_token"]


@pytest.mark.asyncio
async def test_replayed_refresh_token_revokes_session(client: AsyncClient):
    tokens = await login_tokens(client)
    first = await _refresh(client, tokens["refresh_token"])
    assert first.status_code == 200

    replay = await _refresh(client, tokens["refresh_token"])

    assert replay.status_code == 401
    assert replay.json()["error"] == {
        "code": "TOKEN_REUSE_DETECTED",
        "message": "Refresh token has already been used; session revoked",
    }

    # The legitimate holder's rotated token dies with the session
    rotated = await _refresh(client, first.json()["refresh_token"])
    assert rotated.status_code == 401
    assert rotated.json()["error"]["code"] == "SESSION_REVOKED"
    after = await client.post(
        "/sessions/introspect", json={"session_id": tokens["session_id"]}, headers=ADMIN_HEADERS
    )
    assert after.json()["active"] is False
    assert after.json()["reason"] == "SESSION_REVOKED"

    owner = await owner_tokens(client)
    audit = await client.get(
        "/audit", params={"action": "refresh_token_reuse"}, headers=bearer(owner["access_token"])
    )
    events = audit.json()["events"]
    assert len(events) == 1
    assert events[0]["actor"] == "u-100"
    assert events[0]["metadata"]["session_id"] == tokens["session_id"]


@pytest.mark.asyncio
async def test_unknown_refresh_token_leaves_sessions_alone(client: AsyncClient):
    tokens = await login_tokens(client)

    response = await _refresh(client, "never-issued")

    assert response.status_code == 400
    assert response.json()["error"]["code"] == "INVALID_TOKEN"
    assert (await _refresh(client, tokens["refresh_token"])).status_code == 200


@pytest.mark.asyncio
async def test_refresh_after_logout_is_rejected(client: AsyncClient):
    tokens = await login_tokens(client)
    await client.post("/auth/logout", headers=bearer(tokens["access_token"]))

    response = await _refresh(client, tokens["refresh_token"])

    assert response.status_code == 401
    assert response.json()["error"]["code"] == "SESSION_REVOKED"


@pytest.mark.asyncio
async def test_refresh_never_extends_session(client: AsyncClient, clock):
    tokens = await login_tokens(client)

    clock.advance(hours=12)
    refreshed = await _refresh(client, tokens["refresh_token"])
    assert refreshed.status_code == 200

    clock.advance(hours=12, seconds=1)
    expired = await _refresh(client, refreshed.json()["refresh_token"])

    assert expired.status_code == 401
    assert expired.json()["error"]["code"] == "SESSION_EXPIRED"
    after = await client.post(
        "/sessions/introspect", json={"session_id": tokens["session_id"]}, headers=ADMIN_HEADERS
    )
    assert after.json()["reason"] == "SESSION_EXPIRED"


@pytest.mark.asyncio
async def test_refresh_token_bound_to_client(client: AsyncClient):
    tokens = await login_tokens(client, client_id="acme-web")

    response = await _refresh(client, tokens["refresh_token"], client_id="vinc-mobile")

    assert response.status_code == 401
    assert response.json()["error"]["code"] == "CLIENT_MISMATCH"
    # The session is revoked, so the right client cannot use it either
    retry = await _refresh(client, tokens["refresh_token"], client_id="acme-web")
    assert retry.json()["error"]["code"] == "SESSION_REVOKED"


@pytest.mark.asyncio
async def test_refresh_requires_grant_parameters(client: AsyncClient):
    response = await client.post("/oauth/token", json={"grant_type": "refresh_token"})

    assert response.status_code == 400
    assert response.json()["error"]["code"] == "INVALID_REQUEST"
