"""Request helpers shared by the integration tests"""

from typing import Any, Dict, Optional

from httpx import AsyncClient, Response

from config import ApplicationConfig
from src.domain.entities import CodeChallengeMethod
from src.domain.pkce import create_code_challenge, generate_pkce_pair

REDIRECT_URI = "https://shop.acme.com/auth/callback"
ADMIN_HEADERS = {"X-Admin-API-Key": ApplicationConfig.ADMIN_API_KEY}


def bearer(access_token: str) -> Dict[str, str]:
    return {"Authorization": f"Bearer {access_token}"}


async def login(
    client: AsyncClient,
    email: str = "buyer@acme.com",
    password: str = "Correct-Horse-1",
    tenant_id: str = "acme",
    **extra: Any,
) -> Response:
    payload = {"email": email, "password": password, "tenant_id": tenant_id, **extra}
    return await client.post("/auth/login", json=payload)


async def login_tokens(client: AsyncClient, **kwargs: Any) -> Dict[str, Any]:
    response = await login(client, **kwargs)
    assert response.status_code == 200, response.text
    return response.json()


async def owner_tokens(client: AsyncClient) -> Dict[str, Any]:
    return await login_tokens(client, email="owner@acme.com", password="Owner-Pass-1")


async def authorize_with_pkce(
    client: AsyncClient,
    client_id: str = "acme-web",
    state: str = "xyz",
    verifier: Optional[str] = None,
) -> Dict[str, Any]:
    """Log in with response_type=code and an S256 challenge; returns code and verifier"""
    if verifier is None:
        verifier, challenge, method = generate_pkce_pair()
    else:
        method = CodeChallengeMethod.S256
        challenge = create_code_challenge(verifier, method)
    response = await login(
        client,
        response_type="code",
        client_id=client_id,
        redirect_uri=REDIRECT_URI,
        state=state,
        code_challenge=challenge,
        code_challenge_method=method.value,
    )
    assert response.status_code == 200, response.text
    return {**response.json(), "code_verifier": verifier}


async def exchange_code(
    client: AsyncClient, code: str, client_id: str = "acme-web", **extra: Any
) -> Response:
    payload = {
        "grant_type": "authorization_code",
        "code": code,
        "client_id": client_id,
        "redirect_uri": REDIRECT_URI,
        **extra,
    }
    return await client.post("/oauth/token", json=payload)
