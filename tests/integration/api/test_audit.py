import pytest
from httpx import AsyncClient

from tests.utils.auth_flows import bearer, login_tokens, owner_tokens


@pytest.mark.asyncio
async def test_pages_do_not_overlap(client: AsyncClient):
    for _ in range(3):
        await login_tokens(client)
    owner = await owner_tokens(client)
    headers = bearer(owner["access_token"])

    first = await client.get("/audit", params={"action": "login", "limit": 2}, headers=headers)
    body = first.json()
    assert len(body["events"]) == 2
    assert body["next_cursor"]

    second = await client.get(
        "/audit",
        params={"action": "login", "limit": 2, "cursor": body["next_cursor"]},
        headers=headers,
    )
    rest = second.json()
    assert len(rest["events"]) == 2
    assert rest["next_cursor"] is None

    ids = [e["id"] for e in body["events"] + rest["events"]]
    assert len(set(ids)) == 4


@pytest.mark.asyncio
async def test_filter_by_actor(client: AsyncClient):
    await login_tokens(client)
    owner = await owner_tokens(client)

    response = await client.get(
        "/audit", params={"actor": "u-100"}, headers=bearer(owner["access_token"])
    )

    events = response.json()["events"]
    assert events
    assert {e["actor"] for e in events} == {"u-100"}


@pytest.mark.asyncio
async def test_malformed_cursor_is_rejected(client: AsyncClient):
    owner = await owner_tokens(client)

    response = await client.get(
        "/audit", params={"cursor": "%%%not-a-cursor"}, headers=bearer(owner["access_token"])
    )

    assert response.status_code == 400
    assert response.json()["error"]["code"] == "INVALID_CURSOR"
