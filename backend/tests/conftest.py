"""
OrderDesk Backend: Test Configuration (conftest.py)
===================================================

What:  Shared pytest fixtures for the entire test suite.
How:   pytest auto-discovers conftest.py and makes fixtures available to all
       tests. Database fixtures use an on-disk SQLite file per test (via
       aiosqlite), so no PostgreSQL server is needed.

Fixture Hierarchy (all function-scoped):
    ├── engine            AsyncEngine on tmp_path/orderdesk.db, schema created
    │   └── session_factory
    │       ├── db_session        one open AsyncSession
    │       └── app               create_app() bound to this database
    │           └── client        httpx AsyncClient over ASGITransport
    ├── test_settings     Settings with generous rate limits, no log files
    ├── app_factory       create_app() with selected settings overridden
    └── make_user / make_order    ORM objects with timestamps filled in
"""

import os

# Override settings for testing BEFORE any orderdesk imports: the module-level
# engine and `settings` singleton are built at import time.
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///./orderdesk_test.db"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["LOG_TO_FILE"] = "false"

from datetime import datetime, timezone
from decimal import Decimal

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from orderdesk.config import Settings
from orderdesk.database import Base
from orderdesk.main import create_app
from orderdesk.models.order import Order, OrderStatus
from orderdesk.models.user import User, UserStatus, new_id

import orderdesk.models  # noqa: F401  (registers tables on Base.metadata)


def build_settings(**overrides) -> Settings:
    values = {
        "env": "development",
        "database_url": "sqlite+aiosqlite:///./orderdesk_test.db",
        "cors_origins": "",
        "log_level": "WARNING",
        "log_to_file": False,
        "rate_limit_rps": 1000.0,
        "rate_limit_burst": 1000,
        "request_timeout_seconds": 5.0,
    }
    values.update(overrides)
    return Settings(**values)


@pytest.fixture
def test_settings() -> Settings:
    return build_settings()


@pytest_asyncio.fixture
async def engine(tmp_path):
    """
    A fresh SQLite database file with the full schema.

    NullPool: every session gets its own connection, closed on release, so
    the file is never held open between requests.
    """
    db_engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'orderdesk.db'}",
        poolclass=NullPool,
    )
    async with db_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield db_engine
    await db_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def app(engine, session_factory, test_settings):
    return create_app(test_settings, bind=engine, session_factory=session_factory)


@pytest.fixture
def app_factory(engine, session_factory):
    """Builds an app on the test database with selected settings overridden."""

    def _build(**overrides):
        return create_app(build_settings(**overrides), bind=engine, session_factory=session_factory)

    return _build


@pytest_asyncio.fixture
async def client(app):
    """
    HTTPX AsyncClient talking to the app in-process.

    Usage:
        async def test_live(client):
            response = await client.get("/health/live")
            assert response.status_code == 200
    """
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as http_client:
        yield http_client


@pytest.fixture
def make_user():
    """Factory for detached User rows with every column populated."""

    def _make(**overrides) -> User:
        now = datetime.now(timezone.utc)
        values = {
            "id": new_id(),
            "name": "Ann",
            "email": "ann@example.com",
            "status": int(UserStatus.ACTIVE),
            "created_at": now,
            "updated_at": now,
        }
        values.update(overrides)
        return User(**values)

    return _make


@pytest.fixture
def make_order():
    """Factory for detached Order rows with every column populated."""

    def _make(**overrides) -> Order:
        now = datetime.now(timezone.utc)
        values = {
            "id": new_id(),
            "user_id": new_id(),
            "product_name": "Widget",
            "quantity": 2,
            "amount": Decimal("9.99"),
            "status": int(OrderStatus.PENDING),
            "created_at": now,
            "updated_at": now,
        }
        values.update(overrides)
        return Order(**values)

    return _make


@pytest.fixture
def stamp_timestamps():
    """side_effect for a mocked `repository.create`: mimics the flush defaults."""

    def _stamp(entity, *args, **kwargs):
        now = datetime.now(timezone.utc)
        entity.created_at = now
        entity.updated_at = now

    return _stamp
