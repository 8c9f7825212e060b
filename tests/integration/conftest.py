import bcrypt
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

from config import ApplicationConfig
from src.adapter.services.memory_cache import InMemoryCache
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.app.use_cases.auth import AuthSettings
from src.depends import (
    get_auth_settings,
    get_clock,
    get_credential_verifier,
    get_unit_of_work,
)
from src.domain.entities import AuthClient, AuthClientType, ClientApp
from tests.fixtures.json_loader import TestDataLoader
from tests.utils.fakes import FakeClock, FakeCredentialVerifier


@pytest.fixture
def test_data():
    return TestDataLoader()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def verifier(test_data):
    return FakeCredentialVerifier(test_data.get_copy("identities"))


@pytest.fixture
def auth_settings():
    return AuthSettings(refresh_token_secret="test-refresh-secret")


@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine("sqlite+aiosqlite:///./test.db")
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(engine):
    Session = sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with Session() as session:
        yield session


@pytest_asyncio.fixture
async def seeded_clients(db_session, test_data, clock):
    """Register the fixture clients directly (secrets hashed with a low cost)"""
    for record in test_data.get_copy("clients"):
        db_session.add(
            AuthClient(
                client_id=record["client_id"],
                client_secret_hash=bcrypt.hashpw(
                    record["client_secret"].encode(), bcrypt.gensalt(4)
                ).decode(),
                name=record["name"],
                type=AuthClientType(record["type"]),
                client_app=ClientApp.from_client_id(record["client_id"]),
                redirect_uris=record["redirect_uris"],
                allowed_origins=record["allowed_origins"],
                is_first_party=record["is_first_party"],
                created_at=clock.now(),
                updated_at=clock.now(),
            )
        )
    await db_session.commit()


@pytest_asyncio.fixture
async def app(db_session, seeded_clients, clock, verifier, auth_settings):
    from src.api.app import create_app

    app = create_app(ApplicationConfig)
    app.state.cache = InMemoryCache(clock)

    async def override_get_unit_of_work():
        yield SqlAlchemyUnitOfWork(db_session)

    app.dependency_overrides[get_unit_of_work] = override_get_unit_of_work
    app.dependency_overrides[get_clock] = lambda: clock
    app.dependency_overrides[get_credential_verifier] = lambda: verifier
    app.dependency_overrides[get_auth_settings] = lambda: auth_settings
    return app


@pytest_asyncio.fixture
async def client(app):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
