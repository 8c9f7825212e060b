"""
Session Manager

Issues, validates, revokes and expires SSO sessions.
"""

import logging
from datetime import timedelta
from typing import List, Optional, Tuple
from uuid import UUID, uuid4

from sqlalchemy.exc import SQLAlchemyError

from libs.result import Error, Result, Return
from src.app.services.clock import Clock
from src.app.services.security_policy_store import SecurityPolicyStore
from src.app.services.unit_of_work import UnitOfWork
from src.domain.device import DeviceInfo
from src.domain.entities import ClientApp, RevocationReason, Session, SessionLimitPolicy
from src.domain.identity import UserIdentity
from src.domain.tokens import generate_refresh_token, hash_refresh_token

logger = logging.getLogger(__name__)


class SessionManager:
    """
    Authority on whether a bearer may act as a user.

    Business Rules:
    - Raw refresh tokens are never persisted (HMAC-SHA256 digest only)
    - expires_at = creation time + policy.session_timeout_hours, never extended
    - Session cap per user comes from the tenant policy:
      evict_oldest revokes the least recently active sessions in one statement,
      reject_new refuses the login with SESSION_LIMIT_REACHED
    - Revocation is terminal; revoking twice is a no-op
    - Expiry is computed at read time, the purge only reclaims storage
    """

    def __init__(
        self,
        uow: UnitOfWork,
        clock: Clock,
        policy_store: SecurityPolicyStore,
        refresh_token_secret: str,
    ):
        self.uow = uow
        self.clock = clock
        self.policy_store = policy_store
        self.refresh_token_secret = refresh_token_secret

    def hash_token(self, refresh_token: str) -> str:
        return hash_refresh_token(refresh_token, self.refresh_token_secret)

    async def create_session(
        self,
        tenant_id: str,
        user: UserIdentity,
        client_app: ClientApp,
        device_info: DeviceInfo,
        refresh_token: str,
        client_id: Optional[str] = None,
        storefront_id: Optional[str] = None,
        access_token_jti: Optional[str] = None,
        session_id: Optional[UUID] = None,
    ) -> Result[Session]:
        """
        Create an active session, enforcing the tenant's session cap first.

        Errors:
            - SESSION_LIMIT_REACHED: cap reached and policy is reject_new
        """
        policy = await self.policy_store.get_policy(tenant_id)
        now = self.clock.now()
        max_sessions = policy.max_sessions_per_user

        if policy.session_limit_policy == SessionLimitPolicy.reject_new:
            active = await self.uow.sessions.count_active(tenant_id, user.user_id, now)
            if active >= max_sessions:
                return Return.err(
                    Error(
                        "SESSION_LIMIT_REACHED",
                        f"Maximum of {max_sessions} active sessions reached",
                    )
                )
        else:
            evicted = await self.uow.sessions.revoke_all_but_newest(
                tenant_id,
                user.user_id,
                keep=max_sessions - 1,
                reason=RevocationReason.session_limit_exceeded.value,
                now=now,
            )
            if evicted:
                logger.info(
                    "Evicted %s session(s) for user %s in tenant %s (cap %s)",
                    evicted,
                    user.user_id,
                    tenant_id,
                    max_sessions,
                )

        session = Session(
            id=session_id or uuid4(),
            tenant_id=tenant_id,
            user_id=user.user_id,
            user_email=user.email.lower(),
            user_role=user.role,
            company_name=user.company_name,
            profile=user.profile,
            client_app=client_app,
            client_id=client_id,
            storefront_id=storefront_id,
            ip_address=device_info.ip_address,
            country=device_info.country,
            city=device_info.city,
            device_type=device_info.device_type,
            browser=device_info.browser,
            browser_version=device_info.browser_version,
            os=device_info.os,
            os_version=device_info.os_version,
            user_agent=device_info.user_agent,
            device_fingerprint=device_info.device_fingerprint,
            refresh_token_hash=self.hash_token(refresh_token),
            access_token_jti=access_token_jti,
            created_at=now,
            last_activity=now,
            expires_at=now + timedelta(hours=policy.session_timeout_hours),
            is_active=True,
        )
        session = await self.uow.sessions.create(session)
        return Return.ok(session)

    async def validate(
        self, session_id: UUID, tenant_id: Optional[str] = None
    ) -> Result[Session]:
        """
        Check a session is active and record activity.

        Errors:
            - SESSION_NOT_FOUND: unknown id (or other tenant)
            - SESSION_REVOKED
            - SESSION_EXPIRED
        """
        session = await self.uow.sessions.get_by_id(session_id)
        if session is None or (tenant_id is not None and session.tenant_id != tenant_id):
            return Return.err(Error("SESSION_NOT_FOUND", "Session not found"))

        now = self.clock.now()
        if not session.is_active:
            return Return.err(Error("SESSION_REVOKED", "Session has been revoked"))
        if session.expires_at <= now:
            return Return.err(Error("SESSION_EXPIRED", "Session has expired"))

        try:
            await self.uow.sessions.touch(session.id, now)
        except SQLAlchemyError as e:
            logger.warning("Could not record activity for session %s: %s", session.id, e)
        else:
            session.last_activity = now

        return Return.ok(session)

    async def revoke(self, session_id: UUID, reason: str = RevocationReason.manual_revocation.value) -> bool:
        """True if this call revoked the session, False if it was already inactive or unknown."""
        revoked = await self.uow.sessions.revoke_by_id(session_id, reason, self.clock.now())
        if revoked:
            logger.info("Session %s revoked (%s)", session_id, reason)
        return revoked

    async def revoke_all(
        self, tenant_id: str, user_id: str, reason: str = RevocationReason.bulk_revocation.value
    ) -> int:
        count = await self.uow.sessions.revoke_all_by_user(
            tenant_id, user_id, reason, self.clock.now()
        )
        logger.info(
            "Revoked %s session(s) for user %s in tenant %s (%s)", count, user_id, tenant_id, reason
        )
        return count

    async def list_active(self, tenant_id: str, user_id: Optional[str] = None) -> List[Session]:
        return await self.uow.sessions.list_active(tenant_id, self.clock.now(), user_id=user_id)

    async def rotate_refresh_token(
        self, refresh_token: str, client_id: Optional[str] = None
    ) -> Result[Tuple[Session, str]]:
        """
        Exchange a refresh token for a new one (rotation).

        A token retired by the session's last rotation is treated as stolen:
        the session is revoked. So is a session whose token is presented by
        a different client.

        Errors:
            - INVALID_TOKEN: unknown, or lost a concurrent rotation
            - TOKEN_REUSE_DETECTED: already rotated; session revoked
            - CLIENT_MISMATCH: issued to another client; session revoked
            - SESSION_REVOKED
            - SESSION_EXPIRED
        """
        old_hash = self.hash_token(refresh_token)
        session = await self.uow.sessions.get_by_refresh_token_hash(old_hash)
        if session is None:
            retired = await self.uow.sessions.get_by_previous_refresh_token_hash(old_hash)
            if retired is None:
                return Return.err(Error("INVALID_TOKEN", "Invalid refresh token"))
            logger.warning(
                "Rotated refresh token replayed for session %s (user %s, tenant %s)",
                retired.id,
                retired.user_id,
                retired.tenant_id,
            )
            await self.revoke(retired.id, RevocationReason.token_reuse_detected.value)
            return Return.err(
                Error(
                    "TOKEN_REUSE_DETECTED",
                    "Refresh token has already been used; session revoked",
                    details={
                        "session_id": str(retired.id),
                        "tenant_id": retired.tenant_id,
                        "user_id": retired.user_id,
                    },
                )
            )
        if client_id is not None and session.client_id and session.client_id != client_id:
            logger.warning(
                "Refresh token for session %s presented by client %s (issued to %s)",
                session.id,
                client_id,
                session.client_id,
            )
            await self.revoke(session.id, RevocationReason.client_mismatch.value)
            return Return.err(
                Error(
                    "CLIENT_MISMATCH",
                    "Refresh token was issued to another client; session revoked",
                    details={
                        "session_id": str(session.id),
                        "tenant_id": session.tenant_id,
                        "user_id": session.user_id,
                    },
                )
            )

        now = self.clock.now()
        if not session.is_active:
            return Return.err(Error("SESSION_REVOKED", "Session has been revoked"))
        if session.expires_at <= now:
            return Return.err(Error("SESSION_EXPIRED", "Session has expired"))

        new_token = generate_refresh_token()
        new_hash = self.hash_token(new_token)
        swapped = await self.uow.sessions.replace_refresh_token_hash(
            session.id, old_hash, new_hash, now
        )
        if not swapped:
            # Lost a race with a concurrent rotation of the same token
            return Return.err(Error("INVALID_TOKEN", "Invalid refresh token"))

        session.refresh_token_hash = new_hash
        session.previous_refresh_token_hash = old_hash
        session.last_activity = now
        return Return.ok((session, new_token))
