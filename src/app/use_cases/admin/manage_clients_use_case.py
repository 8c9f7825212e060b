"""
Use Case: Manage Auth Clients

Registration and lifecycle of OAuth relying-party applications.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel

from libs.result import Result, Return
from src.app.services.client_registry import ClientRegistry
from src.app.services.clock import Clock
from src.app.services.unit_of_work import UnitOfWork
from src.domain.entities import AuditEvent, AuthClient, AuthClientType


class AuthClientResponse(BaseModel):
    """Response DTO for a registered client (never includes the secret hash)"""

    client_id: str
    name: str
    type: str
    client_app: str
    redirect_uris: List[str]
    allowed_origins: List[str]
    logo_url: Optional[str] = None
    description: Optional[str] = None
    is_first_party: bool
    is_active: bool
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_client(cls, client: AuthClient) -> "AuthClientResponse":
        return cls(
            client_id=client.client_id,
            name=client.name,
            type=getattr(client.type, "value", client.type),
            client_app=getattr(client.client_app, "value", client.client_app),
            redirect_uris=list(client.redirect_uris or []),
            allowed_origins=list(client.allowed_origins or []),
            logo_url=client.logo_url,
            description=client.description,
            is_first_party=client.is_first_party,
            is_active=client.is_active,
            created_at=client.created_at,
            updated_at=client.updated_at,
        )


class ClientSecretResponse(BaseModel):
    """Client plus its raw secret; returned only at creation and regeneration"""

    client: AuthClientResponse
    client_secret: str


class RegisterClientCommand(BaseModel):
    client_id: str
    name: str
    redirect_uris: List[str]
    type: AuthClientType = AuthClientType.web
    allowed_origins: List[str] = []
    logo_url: Optional[str] = None
    description: Optional[str] = None
    is_first_party: bool = False


class ManageClientsUseCase:
    """
    Platform-admin operations on auth clients.

    Business Rules:
    - The raw secret is returned once and only its bcrypt hash is stored
    - Deactivated clients can no longer authorize or exchange codes
    - Every change is audit-logged as a platform event (tenant_id=None)
    """

    def __init__(self, uow: UnitOfWork, clock: Clock):
        self.uow = uow
        self.clock = clock

    async def register(
        self, command: RegisterClientCommand, actor: str = "admin_api"
    ) -> Result[ClientSecretResponse]:
        async with self.uow:
            result = await ClientRegistry(self.uow, self.clock).register(
                client_id=command.client_id,
                name=command.name,
                redirect_uris=command.redirect_uris,
                type=command.type,
                allowed_origins=command.allowed_origins,
                logo_url=command.logo_url,
                description=command.description,
                is_first_party=command.is_first_party,
            )
            if result.is_err():
                return Return.err(result.error)

            client, secret = result.value
            await self._audit(actor, "client_registered", client.client_id)
            await self.uow.commit()

            return Return.ok(
                ClientSecretResponse(
                    client=AuthClientResponse.from_client(client), client_secret=secret
                )
            )

    async def list_clients(self, include_inactive: bool = False) -> Result[List[AuthClientResponse]]:
        async with self.uow:
            clients = await ClientRegistry(self.uow, self.clock).list_clients(
                include_inactive=include_inactive
            )
            return Return.ok([AuthClientResponse.from_client(c) for c in clients])

    async def regenerate_secret(
        self, client_id: str, actor: str = "admin_api"
    ) -> Result[ClientSecretResponse]:
        async with self.uow:
            result = await ClientRegistry(self.uow, self.clock).regenerate_secret(client_id)
            if result.is_err():
                return Return.err(result.error)

            client, secret = result.value
            await self._audit(actor, "client_secret_regenerated", client_id)
            await self.uow.commit()

            return Return.ok(
                ClientSecretResponse(
                    client=AuthClientResponse.from_client(client), client_secret=secret
                )
            )

    async def deactivate(self, client_id: str, actor: str = "admin_api") -> Result[AuthClientResponse]:
        async with self.uow:
            result = await ClientRegistry(self.uow, self.clock).deactivate(client_id)
            if result.is_err():
                return Return.err(result.error)

            await self._audit(actor, "client_deactivated", client_id)
            await self.uow.commit()

            return Return.ok(AuthClientResponse.from_client(result.value))

    async def _audit(self, actor: str, action: str, client_id: str) -> None:
        await self.uow.audit_events.create(
            AuditEvent(
                created_at=self.clock.now(),
                tenant_id=None,
                actor=actor,
                action=action,
                event_metadata={"client_id": client_id},
            )
        )
