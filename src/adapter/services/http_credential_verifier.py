"""
Credential verification against the upstream identity API.

Two calls: POST /api/v1/internal/auth/login exchanges email and password for
an upstream access token, then GET /api/v1/internal/auth/me returns the profile.
"""

import logging
from typing import Optional

import httpx

from libs.result import Error, Result, Return
from src.app.services.credential_verifier import CredentialVerifier
from src.domain.identity import UserIdentity

logger = logging.getLogger(__name__)


class HttpCredentialVerifier(CredentialVerifier):
    def __init__(
        self,
        base_url: str,
        api_key: str = "",
        timeout_seconds: float = 10,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout_seconds = timeout_seconds
        self.transport = transport

    def _headers(self, tenant_id: str) -> dict:
        return {"X-Internal-API-Key": self.api_key, "X-Tenant-ID": tenant_id}

    async def verify(self, tenant_id: str, email: str, password: str) -> Result[UserIdentity]:
        try:
            async with httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout_seconds,
                transport=self.transport,
            ) as client:
                login = await client.post(
                    "/api/v1/internal/auth/login",
                    json={"email": email, "password": password},
                    headers=self._headers(tenant_id),
                )
                if login.status_code != 200:
                    return Return.err(self._map_status(login))

                access_token = login.json()["access_token"]
                me = await client.get(
                    "/api/v1/internal/auth/me",
                    headers={
                        **self._headers(tenant_id),
                        "Authorization": f"Bearer {access_token}",
                    },
                )
                if me.status_code != 200:
                    return Return.err(self._map_status(me))
                profile = me.json()
        except (httpx.HTTPError, KeyError, ValueError) as e:
            logger.error("Identity API call failed for tenant %s: %s", tenant_id, e)
            return Return.err(
                Error(
                    "IDENTITY_PROVIDER_ERROR",
                    "Authentication service unavailable",
                    retryable=True,
                )
            )

        return Return.ok(
            UserIdentity(
                user_id=str(profile.get("id") or profile.get("user_id")),
                email=profile.get("email", email),
                role=profile.get("role", "customer"),
                name=profile.get("name"),
                company_name=self._company_name(profile),
                profile=profile,
            )
        )

    @staticmethod
    def _company_name(profile: dict) -> Optional[str]:
        # Supplier name, else the first customer's business name, else the user name
        customers = profile.get("customers") or []
        return (
            profile.get("supplier_name")
            or (customers[0].get("business_name") if customers else None)
            or profile.get("name")
        )

    @staticmethod
    def _map_status(response: httpx.Response) -> Error:
        if response.status_code == 401:
            return Error("INVALID_CREDENTIALS", "Invalid credentials")
        if response.status_code == 403:
            return Error("USER_BLOCKED", "User account is blocked")
        logger.error(
            "Identity API returned %s: %s", response.status_code, response.text[:200]
        )
        return Error(
            "IDENTITY_PROVIDER_ERROR",
            "Authentication service error",
            retryable=True,
        )
