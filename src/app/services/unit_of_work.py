from abc import ABC, abstractmethod

from src.app.repositories.audit_event_repository import IAuditEventRepository
from src.app.repositories.auth_client_repository import IAuthClientRepository
from src.app.repositories.authorization_code_repository import IAuthorizationCodeRepository
from src.app.repositories.blocked_ip_repository import IBlockedIPRepository
from src.app.repositories.login_attempt_repository import ILoginAttemptRepository
from src.app.repositories.session_repository import ISessionRepository
from src.app.repositories.tenant_security_config_repository import (
    ITenantSecurityConfigRepository,
)


class UnitOfWork(ABC):
    """Abstract UnitOfWork - defines repository access and transaction management"""

    # Repository properties (initialized in __aenter__)
    auth_clients: IAuthClientRepository
    authorization_codes: IAuthorizationCodeRepository
    sessions: ISessionRepository
    login_attempts: ILoginAttemptRepository
    blocked_ips: IBlockedIPRepository
    security_configs: ITenantSecurityConfigRepository
    audit_events: IAuditEventRepository

    @abstractmethod
    async def __aenter__(self):
        pass

    @abstractmethod
    async def __aexit__(self, *args):
        pass

    @abstractmethod
    async def commit(self):
        pass

    @abstractmethod
    async def rollback(self):
        pass
