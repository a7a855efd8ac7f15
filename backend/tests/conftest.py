"""
Centralized Test Configuration.
"""

import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import StaticPool

from backend.app.main import app
from backend.app.db.session import get_db, Base
from backend.tests.factories import (
    ADMIN_ID,
    DRIVER_ID,
    OTHER_DRIVER_ID,
    OTHER_USER_ID,
    PICKUP_PAYLOAD,
    USER_ID,
    auth_headers,
)
from backend.app.core.redis_client import get_pickup_store
from backend.app.db.memory_pickup_store import InMemoryPickupStore
from backend.app.models.enums import UserRole

# Setup In-Memory Test Database
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

engine = create_async_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestingSessionLocal = async_sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False
)


@pytest.fixture
def pickup_store():
    return InMemoryPickupStore()


@pytest.fixture(autouse=True)
def apply_overrides(pickup_store):
    """Route the app at the test database and a fresh in-memory pickup store."""

    async def override_get_db():
        async with TestingSessionLocal() as session:
            yield session

    async def override_get_pickup_store():
        return pickup_store

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_pickup_store] = override_get_pickup_store
    yield
    app.dependency_overrides = {}


@pytest.fixture(autouse=True)
async def setup_database():
    """Create tables before each test function and drop after."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture
async def client():
    """Async client for testing."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


@pytest.fixture
async def db_session():
    async with TestingSessionLocal() as session:
        yield session


@pytest.fixture
def user_headers():
    return auth_headers(USER_ID, UserRole.USER)


@pytest.fixture
def other_user_headers():
    return auth_headers(OTHER_USER_ID, UserRole.USER)


@pytest.fixture
def driver_headers():
    return auth_headers(DRIVER_ID, UserRole.DRIVER)


@pytest.fixture
def other_driver_headers():
    return auth_headers(OTHER_DRIVER_ID, UserRole.DRIVER)


@pytest.fixture
def admin_headers():
    return auth_headers(ADMIN_ID, UserRole.ADMIN)


@pytest.fixture
def create_pickup(client, user_headers):
    """Factory: create a pickup as the default user and return its JSON."""

    async def _create(headers=None, **overrides):
        payload = {**PICKUP_PAYLOAD, **overrides}
        response = await client.post("/v1/pickups", json=payload, headers=headers or user_headers)
        assert response.status_code == 201, response.text
        return response.json()

    return _create


@pytest.fixture
def publish_pickup(client, create_pickup, user_headers):
    """Factory: create a pickup and move it to ``available``."""

    async def _publish(**overrides):
        pickup = await create_pickup(**overrides)
        response = await client.put(
            f"/v1/pickups/{pickup['id']}", json={"status": "available"}, headers=user_headers
        )
        assert response.status_code == 200, response.text
        return response.json()

    return _publish
