"""
List Sessions Use Case

Lists active sessions of a user, or of the whole tenant for admins.
"""

from typing import Optional

from libs.result import Error, Result, Return
from src.app.services.cache import Cache
from src.app.services.clock import Clock
from src.app.services.security_policy_store import SecurityPolicyStore
from src.app.services.session_manager import SessionManager
from src.app.services.unit_of_work import UnitOfWork
from src.domain.identity import is_tenant_admin
from .dtos import ListSessionsResponse, SessionInfo


class ListSessionsUseCase:
    """
    Business Rules:
    - Users see their own active sessions
    - Tenant admins may list another user's sessions or every session in the tenant
    - Ordered by last activity, newest first
    """

    def __init__(self, uow: UnitOfWork, clock: Clock, cache: Cache, refresh_token_secret: str):
        self.uow = uow
        self.clock = clock
        self.cache = cache
        self.refresh_token_secret = refresh_token_secret

    async def execute(
        self,
        requesting_user_id: str,
        requesting_tenant_id: str,
        requesting_role: str,
        current_session_id: Optional[str] = None,
        target_user_id: Optional[str] = None,
        all_users: bool = False,
    ) -> Result[ListSessionsResponse]:
        """
        Args:
            requesting_user_id: Caller from JWT
            requesting_tenant_id: Caller tenant from JWT
            requesting_role: Caller role from JWT
            current_session_id: Caller's session, flagged is_current in the output
            target_user_id: List this user's sessions instead (admins only)
            all_users: List every active session in the tenant (admins only)
        """
        is_admin = is_tenant_admin(requesting_role)
        user_id = target_user_id or requesting_user_id
        if (all_users or user_id != requesting_user_id) and not is_admin:
            return Return.err(
                Error("FORBIDDEN", "Only admins can list other users' sessions")
            )

        async with self.uow:
            session_manager = SessionManager(
                self.uow,
                self.clock,
                SecurityPolicyStore(self.uow, self.clock, self.cache),
                self.refresh_token_secret,
            )
            sessions = await session_manager.list_active(
                requesting_tenant_id, user_id=None if all_users else user_id
            )
            items = [SessionInfo.from_session(s, current_session_id) for s in sessions]
            return Return.ok(ListSessionsResponse(sessions=items, total=len(items)))
