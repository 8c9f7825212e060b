from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from src.domain.entities import Session


class ISessionRepository(ABC):
    """Session repository interface - application layer"""

    @abstractmethod
    async def get_by_id(self, session_id: UUID) -> Optional[Session]:
        """Get session by ID regardless of state"""
        pass

    @abstractmethod
    async def get_by_refresh_token_hash(self, token_hash: str) -> Optional[Session]:
        """Find session holding the given refresh token digest"""
        pass

    @abstractmethod
    async def get_by_previous_refresh_token_hash(self, token_hash: str) -> Optional[Session]:
        """Find session whose most recent rotation retired the given digest"""
        pass

    @abstractmethod
    async def create(self, session: Session) -> Session:
        """Create a new session"""
        pass

    @abstractmethod
    async def update(self, session: Session) -> Session:
        """Update existing session"""
        pass

    @abstractmethod
    async def list_active(
        self, tenant_id: str, now: datetime, user_id: Optional[str] = None
    ) -> List[Session]:
        """Active sessions of a tenant (optionally one user), newest activity first"""
        pass

    @abstractmethod
    async def count_active(self, tenant_id: str, user_id: str, now: datetime) -> int:
        """Count active sessions of a user"""
        pass

    @abstractmethod
    async def revoke_all_but_newest(
        self, tenant_id: str, user_id: str, keep: int, reason: str, now: datetime
    ) -> int:
        """
        Revoke every active session of the user except the `keep` most
        recently active ones, in a single statement. Returns count revoked.
        """
        pass

    @abstractmethod
    async def revoke_by_id(self, session_id: UUID, reason: str, now: datetime) -> bool:
        """Revoke one session. True only if this call flipped is_active."""
        pass

    @abstractmethod
    async def revoke_all_by_user(
        self, tenant_id: str, user_id: str, reason: str, now: datetime
    ) -> int:
        """Revoke all active sessions of a user. Returns count revoked."""
        pass

    @abstractmethod
    async def touch(self, session_id: UUID, now: datetime) -> None:
        """Update last_activity"""
        pass

    @abstractmethod
    async def replace_refresh_token_hash(
        self, session_id: UUID, old_hash: str, new_hash: str, now: datetime
    ) -> bool:
        """
        Swap the refresh token digest only if it still equals old_hash and
        the session is active, keeping old_hash as the previous digest.
        True if the swap happened.
        """
        pass

    @abstractmethod
    async def delete_expired(self, now: datetime) -> int:
        """Physically delete expired sessions. Returns count deleted."""
        pass
