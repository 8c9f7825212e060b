from unittest.mock import AsyncMock

import bcrypt
import pytest

from src.app.services.client_registry import ClientRegistry
from src.domain.entities import AuthClient, ClientApp


@pytest.fixture
def registry(mock_uow, clock):
    mock_uow.auth_clients.get_by_client_id = AsyncMock(return_value=None)
    mock_uow.auth_clients.create = AsyncMock(side_effect=lambda c: c)
    mock_uow.auth_clients.update = AsyncMock(side_effect=lambda c: c)
    return ClientRegistry(mock_uow, clock)


def _client(secret="s3cret", **overrides):
    values = dict(
        client_id="acme-web",
        client_secret_hash=bcrypt.hashpw(secret.encode(), bcrypt.gensalt(4)).decode(),
        name="Acme Storefront",
        redirect_uris=["https://shop.acme.com/auth/callback"],
    )
    values.update(overrides)
    return AuthClient(**values)


@pytest.mark.asyncio
async def test_register_returns_secret_and_stores_hash(registry, mock_uow):
    result = await registry.register(
        "vinc-b2b", "B2B Portal", ["https://b2b.acme.com/callback"]
    )

    client, secret = result.value
    assert client.client_app == ClientApp.b2b
    assert client.client_secret_hash != secret
    assert bcrypt.checkpw(secret.encode(), client.client_secret_hash.encode())


@pytest.mark.asyncio
@pytest.mark.parametrize("client_id", ["ab", "Acme", "acme_web", "a" * 65])
async def test_register_validates_client_id(registry, client_id):
    result = await registry.register(client_id, "Name", ["https://x"])

    assert result.error.code == "VALIDATION_ERROR"


@pytest.mark.asyncio
async def test_register_requires_redirect_uri(registry):
    result = await registry.register("acme-web", "Name", [])

    assert result.error.code == "VALIDATION_ERROR"


@pytest.mark.asyncio
async def test_register_duplicate(registry, mock_uow):
    mock_uow.auth_clients.get_by_client_id.return_value = _client()

    result = await registry.register("acme-web", "Name", ["https://x"])

    assert result.error.code == "CLIENT_ALREADY_EXISTS"


@pytest.mark.asyncio
async def test_redirect_uri_must_match_exactly(registry, mock_uow):
    mock_uow.auth_clients.get_by_client_id.return_value = _client()

    ok = await registry.validate_authorization_request(
        "acme-web", "https://shop.acme.com/auth/callback"
    )
    trailing_slash = await registry.validate_authorization_request(
        "acme-web", "https://shop.acme.com/auth/callback/"
    )

    assert ok.is_ok()
    assert trailing_slash.error.code == "INVALID_CLIENT"


@pytest.mark.asyncio
async def test_inactive_client_cannot_authorize(registry, mock_uow):
    mock_uow.auth_clients.get_by_client_id.return_value = _client(is_active=False)

    result = await registry.validate_authorization_request(
        "acme-web", "https://shop.acme.com/auth/callback"
    )

    assert result.error.code == "INVALID_CLIENT"


@pytest.mark.asyncio
async def test_authenticate(registry, mock_uow):
    mock_uow.auth_clients.get_by_client_id.return_value = _client("s3cret")

    assert (await registry.authenticate("acme-web", "s3cret")).is_ok()
    assert (await registry.authenticate("acme-web", "wrong")).error.code == "INVALID_CLIENT"


@pytest.mark.asyncio
async def test_authenticate_unknown_client(registry):
    result = await registry.authenticate("ghost", "whatever")

    assert result.error.code == "INVALID_CLIENT"


@pytest.mark.asyncio
async def test_regenerate_secret_invalidates_old(registry, mock_uow):
    client = _client("old-secret")
    mock_uow.auth_clients.get_by_client_id.return_value = client

    result = await registry.regenerate_secret("acme-web")

    updated, secret = result.value
    assert not bcrypt.checkpw(b"old-secret", updated.client_secret_hash.encode())
    assert bcrypt.checkpw(secret.encode(), updated.client_secret_hash.encode())


@pytest.mark.asyncio
async def test_deactivate_unknown_client(registry):
    result = await registry.deactivate("ghost")

    assert result.error.code == "CLIENT_NOT_FOUND"
