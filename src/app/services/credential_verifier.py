from abc import ABC, abstractmethod

from libs.result import Result
from src.domain.identity import UserIdentity


class CredentialVerifier(ABC):
    """
    Port to the identity API that owns user credentials.

    Implementations return:
    - Return.ok(UserIdentity) when the credentials are valid
    - INVALID_CREDENTIALS when they are not
    - USER_BLOCKED when the identity API refuses the account
    - IDENTITY_PROVIDER_ERROR (retryable) when the API cannot answer
    """

    @abstractmethod
    async def verify(self, tenant_id: str, email: str, password: str) -> Result[UserIdentity]:
        pass
