from sqlmodel.ext.asyncio.session import AsyncSession

from src.adapter.repositories.audit_event_repository import AuditEventRepository
from src.adapter.repositories.auth_client_repository import AuthClientRepository
from src.adapter.repositories.authorization_code_repository import AuthorizationCodeRepository
from src.adapter.repositories.blocked_ip_repository import BlockedIPRepository
from src.adapter.repositories.login_attempt_repository import LoginAttemptRepository
from src.adapter.repositories.session_repository import SessionRepository
from src.adapter.repositories.tenant_security_config_repository import (
    TenantSecurityConfigRepository,
)
from src.app.services.unit_of_work import UnitOfWork


class SqlAlchemyUnitOfWork(UnitOfWork):
    """SQLAlchemy implementation of UnitOfWork pattern"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def __aenter__(self):
        # Initialize all repositories with the session
        self.auth_clients = AuthClientRepository(self.session)
        self.authorization_codes = AuthorizationCodeRepository(self.session)
        self.sessions = SessionRepository(self.session)
        self.login_attempts = LoginAttemptRepository(self.session)
        self.blocked_ips = BlockedIPRepository(self.session)
        self.security_configs = TenantSecurityConfigRepository(self.session)
        self.audit_events = AuditEventRepository(self.session)
        return self

    async def __aexit__(self, *args):
        await self.rollback()

    async def commit(self):
        await self.session.commit()

    async def rollback(self):
        await self.session.rollback()
