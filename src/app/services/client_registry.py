"""
Client Registry

Registered relying-party applications and their credentials.
"""

import logging
import re
from typing import List, Optional, Tuple

import bcrypt

from libs.result import Error, Result, Return
from src.app.services.clock import Clock
from src.app.services.unit_of_work import UnitOfWork
from src.domain.entities import CLIENT_ID_PATTERN, AuthClient, AuthClientType, ClientApp
from src.domain.tokens import generate_client_secret

logger = logging.getLogger(__name__)

_CLIENT_ID_RE = re.compile(CLIENT_ID_PATTERN)

# Checked when the client is unknown to keep response timing constant
_DUMMY_SECRET_HASH = bcrypt.hashpw(b"dummy_client_secret", bcrypt.gensalt(10))


class ClientRegistry:
    """
    Business Rules:
    - client_id matches ^[a-z0-9-]{3,64}$ and is unique
    - Secrets are bcrypt-hashed (cost 10) and returned once
    - Authorization requests need an active client and an exactly registered redirect_uri
    - Token requests authenticate with the client secret
    """

    def __init__(self, uow: UnitOfWork, clock: Clock):
        self.uow = uow
        self.clock = clock

    async def register(
        self,
        client_id: str,
        name: str,
        redirect_uris: List[str],
        type: AuthClientType = AuthClientType.web,
        allowed_origins: Optional[List[str]] = None,
        logo_url: Optional[str] = None,
        description: Optional[str] = None,
        is_first_party: bool = False,
    ) -> Result[Tuple[AuthClient, str]]:
        """
        Errors:
            - VALIDATION_ERROR: malformed client_id or no redirect URIs
            - CLIENT_ALREADY_EXISTS
        """
        if not _CLIENT_ID_RE.match(client_id):
            return Return.err(
                Error(
                    "VALIDATION_ERROR",
                    "client_id must be 3-64 lowercase letters, digits or dashes",
                )
            )
        if not redirect_uris:
            return Return.err(Error("VALIDATION_ERROR", "At least one redirect URI is required"))

        if await self.uow.auth_clients.get_by_client_id(client_id) is not None:
            return Return.err(Error("CLIENT_ALREADY_EXISTS", f"Client {client_id} already exists"))

        secret = generate_client_secret()
        now = self.clock.now()
        client = AuthClient(
            client_id=client_id,
            client_secret_hash=self._hash_secret(secret),
            name=name,
            type=type,
            client_app=ClientApp.from_client_id(client_id),
            redirect_uris=list(redirect_uris),
            allowed_origins=list(allowed_origins or []),
            logo_url=logo_url,
            description=description,
            is_first_party=is_first_party,
            is_active=True,
            created_at=now,
            updated_at=now,
        )
        client = await self.uow.auth_clients.create(client)
        logger.info("Registered auth client %s", client_id)
        return Return.ok((client, secret))

    async def validate_authorization_request(
        self, client_id: str, redirect_uri: str
    ) -> Result[AuthClient]:
        """
        Errors:
            - INVALID_CLIENT: unknown/inactive client or unregistered redirect_uri
        """
        client = await self.uow.auth_clients.get_by_client_id(client_id)
        if client is None or not client.is_active:
            return Return.err(Error("INVALID_CLIENT", "Invalid client_id or redirect_uri"))
        if redirect_uri not in (client.redirect_uris or []):
            logger.warning("Unregistered redirect_uri for client %s: %s", client_id, redirect_uri)
            return Return.err(Error("INVALID_CLIENT", "Invalid client_id or redirect_uri"))
        return Return.ok(client)

    async def authenticate(self, client_id: str, client_secret: str) -> Result[AuthClient]:
        """
        Errors:
            - INVALID_CLIENT: unknown/inactive client or wrong secret
        """
        client = await self.uow.auth_clients.get_by_client_id(client_id)
        if client is None:
            bcrypt.checkpw(client_secret.encode(), _DUMMY_SECRET_HASH)
            return Return.err(Error("INVALID_CLIENT", "Invalid client credentials"))

        secret_valid = bcrypt.checkpw(client_secret.encode(), client.client_secret_hash.encode())
        if not secret_valid or not client.is_active:
            return Return.err(Error("INVALID_CLIENT", "Invalid client credentials"))
        return Return.ok(client)

    async def get_active(self, client_id: str) -> Result[AuthClient]:
        client = await self.uow.auth_clients.get_by_client_id(client_id)
        if client is None or not client.is_active:
            return Return.err(Error("INVALID_CLIENT", "Invalid client"))
        return Return.ok(client)

    async def list_clients(self, include_inactive: bool = False) -> List[AuthClient]:
        return await self.uow.auth_clients.list_all(include_inactive=include_inactive)

    async def regenerate_secret(self, client_id: str) -> Result[Tuple[AuthClient, str]]:
        client = await self.uow.auth_clients.get_by_client_id(client_id)
        if client is None:
            return Return.err(Error("CLIENT_NOT_FOUND", "Client not found"))

        secret = generate_client_secret()
        client.client_secret_hash = self._hash_secret(secret)
        client.updated_at = self.clock.now()
        client = await self.uow.auth_clients.update(client)
        logger.info("Regenerated secret for auth client %s", client_id)
        return Return.ok((client, secret))

    async def deactivate(self, client_id: str) -> Result[AuthClient]:
        client = await self.uow.auth_clients.get_by_client_id(client_id)
        if client is None:
            return Return.err(Error("CLIENT_NOT_FOUND", "Client not found"))

        client.is_active = False
        client.updated_at = self.clock.now()
        client = await self.uow.auth_clients.update(client)
        logger.info("Deactivated auth client %s", client_id)
        return Return.ok(client)

    @staticmethod
    def _hash_secret(secret: str) -> str:
        return bcrypt.hashpw(secret.encode(), bcrypt.gensalt(10)).decode()
