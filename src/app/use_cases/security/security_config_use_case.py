"""
Security Config Use Case

Read and update a tenant's security policy.
"""

from typing import Any, Dict

from libs.result import Error, Result, Return
from src.app.services.cache import Cache
from src.app.services.clock import Clock
from src.app.services.security_policy_store import SecurityPolicyStore
from src.app.services.unit_of_work import UnitOfWork
from src.domain.entities import AuditEvent
from src.domain.identity import is_tenant_admin
from .dtos import SecurityConfigResponse


class SecurityConfigUseCase:
    """
    Business Rules:
    - Only tenant admins can read or change the policy
    - A tenant without a policy gets the defaults, never an error
    - Changes are validated, audit-logged and invalidate the policy cache
    """

    def __init__(self, uow: UnitOfWork, clock: Clock, cache: Cache, cache_ttl_seconds: int = 60):
        self.uow = uow
        self.clock = clock
        self.cache = cache
        self.cache_ttl_seconds = cache_ttl_seconds

    def _store(self) -> SecurityPolicyStore:
        return SecurityPolicyStore(
            self.uow, self.clock, self.cache, cache_ttl_seconds=self.cache_ttl_seconds
        )

    async def get_config(self, tenant_id: str, role: str) -> Result[SecurityConfigResponse]:
        if not is_tenant_admin(role):
            return Return.err(
                Error("FORBIDDEN", "You do not have permission to view security settings")
            )

        async with self.uow:
            config = await self._store().get_policy(tenant_id)
            # Lazy creation of the defaults must persist
            await self.uow.commit()
            return Return.ok(SecurityConfigResponse.from_config(config))

    async def update_config(
        self, tenant_id: str, user_id: str, role: str, changes: Dict[str, Any]
    ) -> Result[SecurityConfigResponse]:
        """
        Apply a partial update.

        Returns:
            Result with the updated policy, or Error (FORBIDDEN, VALIDATION_ERROR)
        """
        if not is_tenant_admin(role):
            return Return.err(
                Error("FORBIDDEN", "You do not have permission to change security settings")
            )

        async with self.uow:
            result = await self._store().update_policy(tenant_id, changes, updated_by=user_id)
            if result.is_err():
                return Return.err(result.error)

            await self.uow.audit_events.create(
                AuditEvent(
                    created_at=self.clock.now(),
                    tenant_id=tenant_id,
                    actor=user_id,
                    action="security_config_updated",
                    event_metadata={"changed_fields": sorted(changes)},
                )
            )
            await self.uow.commit()

            return Return.ok(SecurityConfigResponse.from_config(result.value))
