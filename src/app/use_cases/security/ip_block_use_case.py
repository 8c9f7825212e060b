"""
IP Block Use Case

Tenant-scoped and global IP blocks.
"""

from datetime import timedelta
from typing import Optional

from libs.result import Error, Result, Return
from src.app.services.clock import Clock
from src.app.services.ip_block_registry import IPBlockRegistry
from src.app.services.unit_of_work import UnitOfWork
from src.domain.entities import AuditEvent, BlockReason
from src.domain.identity import is_tenant_admin
from .dtos import BlockedIPInfo, BlockedIPPage, UnblockIPResponse


class IPBlockUseCase:
    """
    Use case for managing IP blocks.

    Business Rules:
    - tenant_id=None targets the global blocklist (platform admins only)
    - Tenant blocks require a tenant admin role
    - Re-blocking an active IP merges into the existing block
    - Block and unblock are audit-logged
    """

    def __init__(self, uow: UnitOfWork, clock: Clock):
        self.uow = uow
        self.clock = clock

    @staticmethod
    def _authorize(tenant_id: Optional[str], role: Optional[str]) -> Optional[Error]:
        if tenant_id is not None and not is_tenant_admin(role):
            return Error("FORBIDDEN", "You do not have permission to manage blocked IPs")
        return None

    async def block_ip(
        self,
        ip_address: str,
        tenant_id: Optional[str],
        actor: str,
        role: Optional[str] = None,
        reason: str = BlockReason.manual_block.value,
        description: Optional[str] = None,
        expires_in_hours: Optional[int] = None,
    ) -> Result[BlockedIPInfo]:
        """
        Args:
            ip_address: IPv4 or IPv6 address
            tenant_id: Tenant scope, None for a global block
            actor: Who is blocking (user id or "admin_api")
            role: Caller role (tenant scope only)
            reason: BlockReason value
            description: Free text shown to admins
            expires_in_hours: None for a permanent block

        Returns:
            Result with the block, or Error (FORBIDDEN, INVALID_IP, VALIDATION_ERROR)
        """
        forbidden = self._authorize(tenant_id, role)
        if forbidden:
            return Return.err(forbidden)
        try:
            block_reason = BlockReason(reason)
        except ValueError:
            return Return.err(Error("VALIDATION_ERROR", f"Invalid block reason: {reason}"))
        if expires_in_hours is not None and expires_in_hours <= 0:
            return Return.err(Error("VALIDATION_ERROR", "expires_in_hours must be positive"))

        async with self.uow:
            expires_at = None
            if expires_in_hours is not None:
                expires_at = self.clock.now() + timedelta(hours=expires_in_hours)

            result = await IPBlockRegistry(self.uow, self.clock).block(
                ip_address,
                tenant_id=tenant_id,
                reason=block_reason,
                description=description,
                expires_at=expires_at,
                blocked_by=actor,
            )
            if result.is_err():
                return Return.err(result.error)

            block = result.value
            await self.uow.audit_events.create(
                AuditEvent(
                    created_at=self.clock.now(),
                    tenant_id=tenant_id,
                    actor=actor,
                    action="ip_blocked",
                    event_metadata={
                        "ip_address": block.ip_address,
                        "scope": "global" if block.is_global else "tenant",
                        "reason": block_reason.value,
                        "attempt_count": block.attempt_count,
                    },
                )
            )
            await self.uow.commit()

            return Return.ok(BlockedIPInfo.from_block(block))

    async def unblock_ip(
        self,
        ip_address: str,
        tenant_id: Optional[str],
        actor: str,
        role: Optional[str] = None,
    ) -> Result[UnblockIPResponse]:
        forbidden = self._authorize(tenant_id, role)
        if forbidden:
            return Return.err(forbidden)

        async with self.uow:
            unblocked = await IPBlockRegistry(self.uow, self.clock).unblock(
                ip_address, tenant_id=tenant_id, by=actor
            )
            if not unblocked:
                return Return.err(Error("BLOCK_NOT_FOUND", "No active block for this IP"))

            await self.uow.audit_events.create(
                AuditEvent(
                    created_at=self.clock.now(),
                    tenant_id=tenant_id,
                    actor=actor,
                    action="ip_unblocked",
                    event_metadata={
                        "ip_address": ip_address,
                        "scope": "tenant" if tenant_id else "global",
                    },
                )
            )
            await self.uow.commit()

            return Return.ok(UnblockIPResponse(ip_address=ip_address, unblocked=True))

    async def list_blocks(
        self,
        tenant_id: Optional[str],
        role: Optional[str] = None,
        include_global: bool = True,
        active_only: bool = True,
        page: int = 1,
        limit: int = 50,
    ) -> Result[BlockedIPPage]:
        forbidden = self._authorize(tenant_id, role)
        if forbidden:
            return Return.err(forbidden)

        async with self.uow:
            blocks, total = await IPBlockRegistry(self.uow, self.clock).list_blocks(
                tenant_id=tenant_id,
                include_global=include_global,
                active_only=active_only,
                page=page,
                limit=limit,
            )
            return Return.ok(
                BlockedIPPage(
                    blocks=[BlockedIPInfo.from_block(b) for b in blocks],
                    total=total,
                    page=page,
                    limit=limit,
                )
            )
