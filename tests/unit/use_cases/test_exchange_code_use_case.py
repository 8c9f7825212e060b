"""
Unit tests for Exchange Code Use Case
"""

from datetime import timedelta
from unittest.mock import AsyncMock

import bcrypt
import pytest

from src.app.use_cases.auth.dtos import AuthSettings, ClientContext, ExchangeCodeCommand
from src.app.use_cases.auth.exchange_code_use_case import ExchangeCodeUseCase
from src.domain.entities import (
    AuthClient,
    AuthorizationCode,
    CodeChallengeMethod,
    TenantSecurityConfig,
)

REDIRECT_URI = "https://shop.acme.com/auth/callback"
VERIFIER = "dBjftJeZ4CVP-mB92K27uhbUJU1p1r_wW1gFWFOEjXk"
CHALLENGE = "E9Melhoa2OwvFrEMTJguCHaoeK1t8URWbuGJSstw-cM"


def _code(clock, **overrides):
    values = dict(
        code="the-code",
        client_id="acme-web",
        tenant_id="acme",
        user_id="u-100",
        user_email="buyer@acme.com",
        user_role="customer",
        redirect_uri=REDIRECT_URI,
        code_challenge=CHALLENGE,
        code_challenge_method=CodeChallengeMethod.S256,
        profile={"name": "Bea Buyer", "company_name": "Acme Retail"},
        created_at=clock.now(),
        expires_at=clock.now() + timedelta(seconds=120),
        used_at=clock.now(),
    )
    values.update(overrides)
    return AuthorizationCode(**values)


@pytest.fixture
def repos(mock_uow, clock):
    mock_uow.auth_clients.get_by_client_id = AsyncMock(
        return_value=AuthClient(
            client_id="acme-web",
            client_secret_hash=bcrypt.hashpw(b"web-secret", bcrypt.gensalt(4)).decode(),
            name="Acme Storefront",
            redirect_uris=[REDIRECT_URI],
        )
    )
    mock_uow.authorization_codes.consume = AsyncMock(return_value=_code(clock))
    mock_uow.authorization_codes.get_by_code = AsyncMock(return_value=None)
    mock_uow.security_configs.get_by_tenant_id = AsyncMock(
        return_value=TenantSecurityConfig(tenant_id="acme")
    )
    mock_uow.sessions.revoke_all_but_newest = AsyncMock(return_value=0)
    mock_uow.sessions.create = AsyncMock(side_effect=lambda s: s)
    mock_uow.audit_events.create = AsyncMock()
    return mock_uow


@pytest.fixture
def use_case(repos, clock, cache):
    return ExchangeCodeUseCase(repos, clock, cache, AuthSettings(refresh_token_secret="s"))


def _command(**overrides):
    values = dict(
        code="the-code",
        client_id="acme-web",
        redirect_uri=REDIRECT_URI,
        code_verifier=VERIFIER,
        context=ClientContext(ip_address="198.51.100.7"),
    )
    values.update(overrides)
    return ExchangeCodeCommand(**values)


@pytest.mark.asyncio
async def test_pkce_exchange_issues_session_for_code_tenant(use_case, repos):
    result = await use_case.execute(_command())

    tokens = result.value
    assert tokens.tenant_id == "acme"
    assert tokens.user.email == "buyer@acme.com"
    assert tokens.user.name == "Bea Buyer"
    assert tokens.user.company_name == "Acme Retail"
    session = repos.sessions.create.await_args.args[0]
    assert session.client_id == "acme-web"
    repos.commit.assert_awaited_once()


@pytest.mark.asyncio
async def test_wrong_verifier_is_masked_and_code_stays_consumed(use_case, repos):
    result = await use_case.execute(_command(code_verifier="x" * 43))

    assert result.error.code == "INVALID_GRANT"
    repos.commit.assert_awaited_once()
    repos.sessions.create.assert_not_called()


@pytest.mark.asyncio
async def test_already_used_code_is_masked(use_case, repos, clock):
    repos.authorization_codes.consume.return_value = None
    repos.authorization_codes.get_by_code.return_value = _code(clock)

    result = await use_case.execute(_command())

    assert result.error.code == "INVALID_GRANT"
    assert result.error.message == "Invalid or expired authorization code"


@pytest.mark.asyncio
async def test_redirect_uri_must_match(use_case):
    result = await use_case.execute(_command(redirect_uri="https://shop.acme.com/other"))

    assert result.error.code == "INVALID_GRANT"


@pytest.mark.asyncio
async def test_code_bound_to_other_client(use_case, repos, clock):
    repos.authorization_codes.consume.return_value = _code(clock, client_id="vinc-mobile")

    result = await use_case.execute(_command())

    assert result.error.code == "INVALID_GRANT"


@pytest.mark.asyncio
async def test_public_client_without_pkce_is_rejected(use_case, repos, clock):
    repos.authorization_codes.consume.return_value = _code(
        clock, code_challenge=None, code_challenge_method=None
    )

    result = await use_case.execute(_command(code_verifier=None))

    assert result.error.code == "INVALID_CLIENT"


@pytest.mark.asyncio
async def test_confidential_client_wrong_secret(use_case, repos):
    result = await use_case.execute(_command(client_secret="nope"))

    assert result.error.code == "INVALID_CLIENT"
    repos.authorization_codes.consume.assert_not_called()


@pytest.mark.asyncio
async def test_confidential_client_without_pkce(use_case, repos, clock):
    repos.authorization_codes.consume.return_value = _code(
        clock, code_challenge=None, code_challenge_method=None
    )

    result = await use_case.execute(_command(client_secret="web-secret", code_verifier=None))

    assert result.is_ok()
