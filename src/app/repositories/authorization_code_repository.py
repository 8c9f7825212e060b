from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional

from src.domain.entities import AuthorizationCode


class IAuthorizationCodeRepository(ABC):
    """Authorization code repository interface - application layer"""

    @abstractmethod
    async def create(self, auth_code: AuthorizationCode) -> AuthorizationCode:
        """Persist a freshly issued code"""
        pass

    @abstractmethod
    async def get_by_code(self, code: str) -> Optional[AuthorizationCode]:
        """Get code by value regardless of state (diagnostics only)"""
        pass

    @abstractmethod
    async def consume(self, code: str, now: datetime) -> Optional[AuthorizationCode]:
        """
        Atomically mark an unused, unexpired code as used.

        Returns the consumed code, or None if this call did not win the
        conditional update (missing, expired or already used).
        """
        pass

    @abstractmethod
    async def delete_expired(self, now: datetime) -> int:
        """Physically delete expired codes. Returns count deleted."""
        pass
