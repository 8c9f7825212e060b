"""
Security Policy Store

Per-tenant security configuration, created lazily with defaults.
"""

import ipaddress
import logging
from typing import Any, Dict, Optional

from libs.result import Error, Result, Return
from src.app.services.cache import Cache
from src.app.services.clock import Clock
from src.app.services.unit_of_work import UnitOfWork
from src.domain.entities import SessionLimitPolicy, TenantSecurityConfig

logger = logging.getLogger(__name__)

# field -> (min, max)
_RANGES = {
    "max_sessions_per_user": (1, 100),
    "session_timeout_hours": (1, 720),
    "max_login_attempts": (1, 100),
    "lockout_minutes": (1, 1440),
    "password_expiry_days": (1, 365),
}

_MUTABLE_FIELDS = set(_RANGES) | {
    "session_limit_policy",
    "enable_progressive_delay",
    "require_strong_password",
    "notify_on_new_device",
    "notify_on_suspicious_login",
    "notify_on_password_change",
    "alert_email",
    "ip_whitelist",
    "ip_blacklist",
}


class SecurityPolicyStore:
    """
    Reads and updates TenantSecurityConfig.

    Business Rules:
    - A missing policy is never an error: defaults are created on first access
    - Reads are served from the injected cache; updates invalidate it
    - Only known fields can be changed, numeric fields are range-checked
    """

    CACHE_PREFIX = "security_policy:"

    def __init__(self, uow: UnitOfWork, clock: Clock, cache: Cache, cache_ttl_seconds: int = 60):
        self.uow = uow
        self.clock = clock
        self.cache = cache
        self.cache_ttl_seconds = cache_ttl_seconds

    async def get_policy(self, tenant_id: str) -> TenantSecurityConfig:
        cache_key = self.CACHE_PREFIX + tenant_id
        cached = await self.cache.get(cache_key)
        if cached is not None:
            return TenantSecurityConfig.model_validate(cached)

        config = await self._get_or_create(tenant_id)
        await self.cache.set(cache_key, config.model_dump(), self.cache_ttl_seconds)
        return config

    async def update_policy(
        self, tenant_id: str, changes: Dict[str, Any], updated_by: Optional[str] = None
    ) -> Result[TenantSecurityConfig]:
        """
        Apply a partial update.

        Errors:
            - VALIDATION_ERROR: unknown field or value out of range
        """
        validation = self._validate(changes)
        if validation.is_err():
            return Return.err(validation.error)

        config = await self._get_or_create(tenant_id)
        for field_name, value in validation.value.items():
            setattr(config, field_name, value)
        config.updated_at = self.clock.now()
        config.updated_by = updated_by
        config = await self.uow.security_configs.update(config)

        await self.cache.delete(self.CACHE_PREFIX + tenant_id)
        logger.info(
            "Security policy updated for tenant %s by %s: %s",
            tenant_id,
            updated_by,
            sorted(validation.value),
        )
        return Return.ok(config)

    async def _get_or_create(self, tenant_id: str) -> TenantSecurityConfig:
        config = await self.uow.security_configs.get_by_tenant_id(tenant_id)
        if config is None:
            now = self.clock.now()
            config = await self.uow.security_configs.create(
                TenantSecurityConfig(tenant_id=tenant_id, created_at=now, updated_at=now)
            )
            logger.info("Created default security policy for tenant %s", tenant_id)
        return config

    def _validate(self, changes: Dict[str, Any]) -> Result[Dict[str, Any]]:
        unknown = set(changes) - _MUTABLE_FIELDS
        if unknown:
            return Return.err(
                Error("VALIDATION_ERROR", f"Unknown fields: {', '.join(sorted(unknown))}")
            )

        cleaned: Dict[str, Any] = {}
        for field_name, value in changes.items():
            if field_name in _RANGES:
                if value is None and field_name == "password_expiry_days":
                    cleaned[field_name] = None
                    continue
                low, high = _RANGES[field_name]
                if not isinstance(value, int) or isinstance(value, bool) or not low <= value <= high:
                    return Return.err(
                        Error(
                            "VALIDATION_ERROR",
                            f"{field_name} must be an integer between {low} and {high}",
                        )
                    )
                cleaned[field_name] = value
            elif field_name == "session_limit_policy":
                try:
                    cleaned[field_name] = SessionLimitPolicy(value)
                except ValueError:
                    return Return.err(
                        Error("VALIDATION_ERROR", f"Invalid session_limit_policy: {value}")
                    )
            elif field_name in ("ip_whitelist", "ip_blacklist"):
                entries = list(value or [])
                for entry in entries:
                    try:
                        ipaddress.ip_network(entry, strict=False)
                    except ValueError:
                        return Return.err(
                            Error("VALIDATION_ERROR", f"Invalid IP or CIDR in {field_name}: {entry}")
                        )
                cleaned[field_name] = entries
            else:
                cleaned[field_name] = value
        return Return.ok(cleaned)
