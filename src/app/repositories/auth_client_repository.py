from abc import ABC, abstractmethod
from typing import List, Optional

from src.domain.entities import AuthClient


class IAuthClientRepository(ABC):
    """Auth client repository interface - application layer"""

    @abstractmethod
    async def get_by_client_id(self, client_id: str) -> Optional[AuthClient]:
        """Get client by its public identifier"""
        pass

    @abstractmethod
    async def list_all(self, include_inactive: bool = False) -> List[AuthClient]:
        """List registered clients"""
        pass

    @abstractmethod
    async def create(self, client: AuthClient) -> AuthClient:
        """Register a client"""
        pass

    @abstractmethod
    async def update(self, client: AuthClient) -> AuthClient:
        """Update a client"""
        pass
