"""
RequestGraph Backend — Test Configuration (conftest.py)
========================================================

What:  Shared pytest fixtures for the entire test suite.
How:   Every test gets a private in-memory SQLite database (aiosqlite +
       StaticPool, so all sessions share the one connection) with the
       five collections already registered.

Fixture Hierarchy (all function-scoped):
    db_engine         in-memory engine, collections set up
    ├── db_session    AsyncSession bound to db_engine
    ├── store_factory builds CollectionStore instances on db_session
    └── test_client   HTTPX AsyncClient; get_db_session overridden
    mock_db_session   AsyncMock session for pure unit tests
"""

import os

# Override settings for testing BEFORE any app imports
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["ENVIRONMENT"] = "development"
os.environ["COLLECTION_PREFIX"] = ""
os.environ["AUTO_SETUP_COLLECTIONS"] = "false"
os.environ["LOG_LEVEL"] = "WARNING"  # Reduce noise during tests

from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.config import settings
from app.database import get_db_session
from app.models.document import DOCUMENT_KIND, EDGE_KIND
from app.services.collection_admin import setup_collections
from app.storage.collection_store import CollectionStore


@pytest_asyncio.fixture
async def db_engine():
    """Fresh in-memory database with tables and collections created."""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    await setup_collections(engine, settings)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(db_engine):
    session_factory = async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as session:
        yield session


@pytest.fixture
def store_factory(db_session):
    """
    Usage:
        async def test_create(store_factory):
            items = store_factory("items")
            augments = store_factory("augments", EDGE_KIND)
    """

    def _build(name: str, kind: str = DOCUMENT_KIND) -> CollectionStore:
        return CollectionStore(db_session, name, kind)

    return _build


@pytest.fixture
def items_store(store_factory):
    return store_factory("items")


@pytest.fixture
def augments_store(store_factory):
    return store_factory("augments", EDGE_KIND)


@pytest.fixture
def mock_db_session():
    """
    A MagicMock that simulates AsyncSession behavior for tests that must
    not touch a database.
    """
    session = AsyncMock()
    session.execute = AsyncMock()
    session.flush = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    session.add = MagicMock()
    return session


@pytest_asyncio.fixture
async def test_client(db_engine):
    """
    HTTPX AsyncClient talking to the FastAPI app through ASGITransport.

    The session dependency is pointed at the per-test database; the app's
    lifespan does not run under ASGITransport.

    Usage:
        async def test_health(test_client):
            response = await test_client.get("/health")
            assert response.status_code == 200
    """
    from app.main import app

    session_factory = async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)

    async def override_session():
        async with session_factory() as session:
            try:
                yield session
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db_session] = override_session
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()
