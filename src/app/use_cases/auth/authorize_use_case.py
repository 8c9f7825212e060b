"""
Authorize Use Case

Validates an OAuth2 authorization request before the login page is shown.
"""

from typing import Optional

from libs.result import Error, Result, Return
from src.app.services.client_registry import ClientRegistry
from src.app.services.clock import Clock
from src.app.services.unit_of_work import UnitOfWork
from src.domain.entities import CodeChallengeMethod
from .dtos import AuthorizeResponse


class AuthorizeUseCase:
    """
    Use case for GET /oauth/authorize.

    Business Rules:
    - Only response_type=code is supported
    - client_id must name an active client with redirect_uri registered exactly
    - code_challenge_method, when given, is plain or S256 and needs a code_challenge
    """

    def __init__(self, uow: UnitOfWork, clock: Clock):
        self.uow = uow
        self.clock = clock

    async def execute(
        self,
        client_id: str,
        redirect_uri: str,
        response_type: str = "code",
        state: Optional[str] = None,
        scope: Optional[str] = None,
        code_challenge: Optional[str] = None,
        code_challenge_method: Optional[str] = None,
    ) -> Result[AuthorizeResponse]:
        """
        Execute authorize use case.

        Returns:
            Result with client display info, or Error
            (INVALID_REQUEST, INVALID_CLIENT)
        """
        if response_type != "code":
            return Return.err(
                Error("INVALID_REQUEST", "Only response_type=code is supported")
            )
        if code_challenge_method is not None:
            if code_challenge_method not in [m.value for m in CodeChallengeMethod]:
                return Return.err(
                    Error("INVALID_REQUEST", "code_challenge_method must be 'plain' or 'S256'")
                )
            if not code_challenge:
                return Return.err(
                    Error("INVALID_REQUEST", "code_challenge_method given without code_challenge")
                )

        async with self.uow:
            registry = ClientRegistry(self.uow, self.clock)
            client_result = await registry.validate_authorization_request(client_id, redirect_uri)
            if client_result.is_err():
                return Return.err(client_result.error)

            client = client_result.value
            return Return.ok(
                AuthorizeResponse(
                    client_id=client.client_id,
                    name=client.name,
                    logo_url=client.logo_url,
                    description=client.description,
                    is_first_party=client.is_first_party,
                    redirect_uri=redirect_uri,
                    state=state,
                    scope=scope,
                )
            )
