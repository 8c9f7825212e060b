"""
IP Block Registry

Global and per-tenant IP blocklist, consulted before any login attempt.
"""

import ipaddress
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional, Tuple

from libs.result import Error, Result, Return
from src.app.services.clock import Clock
from src.app.services.unit_of_work import UnitOfWork
from src.domain.entities import BlockedIP, BlockReason, TenantSecurityConfig

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BlockMatch:
    """Why an IP is blocked: a stored record or the tenant's IP lists"""

    scope: str  # "global" | "tenant" | "policy"
    reason: str
    expires_at: Optional[datetime] = None
    block: Optional[BlockedIP] = None


def _ip_in_networks(ip_address: str, entries: List[str]) -> bool:
    try:
        ip = ipaddress.ip_address(ip_address)
    except ValueError:
        return False
    for entry in entries:
        try:
            if ip in ipaddress.ip_network(entry, strict=False):
                return True
        except ValueError:
            continue
    return False


class IPBlockRegistry:
    """
    Manages BlockedIP records.

    Business Rules:
    - Global blocks apply to every tenant; tenant blocks only to their tenant
    - Re-blocking an actively blocked IP merges into the existing record
    - Expired blocks stop matching immediately, the sweep deactivates them later
    - Tenant policy ip_blacklist blocks; a non-empty ip_whitelist blocks everything else
    """

    def __init__(self, uow: UnitOfWork, clock: Clock):
        self.uow = uow
        self.clock = clock

    async def check(
        self,
        ip_address: str,
        tenant_id: Optional[str] = None,
        policy: Optional[TenantSecurityConfig] = None,
    ) -> Optional[BlockMatch]:
        ip_address = self._normalize(ip_address) or ip_address
        block = await self.uow.blocked_ips.find_effective(ip_address, tenant_id, self.clock.now())
        if block is not None:
            return BlockMatch(
                scope="global" if block.is_global else "tenant",
                reason=block.reason.value if isinstance(block.reason, BlockReason) else block.reason,
                expires_at=block.expires_at,
                block=block,
            )

        if policy is not None:
            if policy.ip_blacklist and _ip_in_networks(ip_address, policy.ip_blacklist):
                return BlockMatch(scope="policy", reason="tenant_blacklist")
            if policy.ip_whitelist and not _ip_in_networks(ip_address, policy.ip_whitelist):
                return BlockMatch(scope="policy", reason="not_in_tenant_whitelist")
        return None

    async def is_blocked(
        self,
        ip_address: str,
        tenant_id: Optional[str] = None,
        policy: Optional[TenantSecurityConfig] = None,
    ) -> bool:
        return await self.check(ip_address, tenant_id, policy) is not None

    async def block(
        self,
        ip_address: str,
        tenant_id: Optional[str] = None,
        reason: BlockReason = BlockReason.manual_block,
        description: Optional[str] = None,
        expires_at: Optional[datetime] = None,
        blocked_by: Optional[str] = None,
    ) -> Result[BlockedIP]:
        """
        Block an IP globally (tenant_id=None) or for one tenant.

        Errors:
            - INVALID_IP: not an IPv4/IPv6 address
            - VALIDATION_ERROR: expiry already in the past
        """
        normalized = self._normalize(ip_address)
        if normalized is None:
            return Return.err(Error("INVALID_IP", f"Invalid IP address: {ip_address}"))

        now = self.clock.now()
        if expires_at is not None and expires_at <= now:
            return Return.err(Error("VALIDATION_ERROR", "expires_at must be in the future"))

        # Lapsed blocks still flagged active would otherwise sit beside the new one
        await self.uow.blocked_ips.deactivate_expired(now)

        existing = await self.uow.blocked_ips.get_active(normalized, tenant_id, now)
        if existing is not None:
            existing.attempt_count += 1
            existing.reason = reason
            existing.description = description
            existing.expires_at = expires_at
            existing.blocked_by = blocked_by or existing.blocked_by
            block = await self.uow.blocked_ips.update(existing)
            logger.info(
                "Merged block for ip=%s tenant=%s (attempt_count=%s)",
                normalized,
                tenant_id or "global",
                block.attempt_count,
            )
            return Return.ok(block)

        block = await self.uow.blocked_ips.create(
            BlockedIP(
                ip_address=normalized,
                tenant_id=tenant_id,
                is_global=tenant_id is None,
                reason=reason,
                description=description,
                attempt_count=1,
                blocked_at=now,
                blocked_by=blocked_by,
                expires_at=expires_at,
            )
        )
        logger.warning(
            "Blocked ip=%s tenant=%s reason=%s expires_at=%s",
            normalized,
            tenant_id or "global",
            reason.value,
            expires_at,
        )
        return Return.ok(block)

    async def unblock(
        self, ip_address: str, tenant_id: Optional[str] = None, by: Optional[str] = None
    ) -> bool:
        """End the active block for the scope. False (no-op) if none was active."""
        normalized = self._normalize(ip_address) or ip_address
        count = await self.uow.blocked_ips.deactivate(normalized, tenant_id, by, self.clock.now())
        if count:
            logger.info("Unblocked ip=%s tenant=%s by %s", normalized, tenant_id or "global", by)
        return count > 0

    async def list_blocks(
        self,
        tenant_id: Optional[str] = None,
        include_global: bool = True,
        active_only: bool = True,
        page: int = 1,
        limit: int = 50,
    ) -> Tuple[List[BlockedIP], int]:
        return await self.uow.blocked_ips.list_paginated(
            tenant_id,
            include_global,
            self.clock.now(),
            active_only=active_only,
            page=page,
            limit=limit,
        )

    async def deactivate_expired(self) -> int:
        return await self.uow.blocked_ips.deactivate_expired(self.clock.now())

    @staticmethod
    def _normalize(ip_address: str) -> Optional[str]:
        try:
            return str(ipaddress.ip_address(ip_address.strip()))
        except ValueError:
            return None
