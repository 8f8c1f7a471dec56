"""
OrderDesk Backend: Database Session Management
==============================================

What:  Async SQLAlchemy engine, session factory, transaction helper and the
       FastAPI session dependency.
How:   Creates an async engine with connection pooling, provides a session
       dependency that rolls back on error and always closes.
Who:   Route dependencies, capability adapters, health probes, Alembic.
When:  Engine is created at module import; sessions are created per request
       (and per capability call).

Connection Pooling Strategy (PostgreSQL / asyncpg):
    pool_size=20:       Persistent connections for normal load
    max_overflow=10:    Temporary connections for traffic spikes
    pool_pre_ping:      Validates connections before use
    pool_recycle=3600:  Recycles connections every hour

    SQLite (tests, local runs) does not accept these arguments, so they are
    only passed for server databases.
"""

from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Dict

from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase
from starlette.requests import Request

from orderdesk.config import settings


def engine_options(url: str) -> Dict[str, Any]:
    """Pool keyword arguments appropriate for the dialect in `url`."""
    options: Dict[str, Any] = {"echo": settings.log_level == "DEBUG"}
    if not url.startswith("sqlite"):
        options.update(
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            pool_pre_ping=settings.db_pool_pre_ping,
            pool_recycle=3600,
        )
    return options


# ── Engine Configuration ──────────────────────────────────────────────────
engine: AsyncEngine = create_async_engine(
    settings.sqlalchemy_url,
    **engine_options(settings.sqlalchemy_url),
)

# ── Session Factory ───────────────────────────────────────────────────────
# expire_on_commit=False: attributes stay readable after commit, which the
# services rely on when shaping responses from freshly written rows.
async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


# ── Base Model ────────────────────────────────────────────────────────────
class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy ORM models.

    Every model registers with this metadata, which Alembic and the test
    suite use to build the schema.
    """
    pass


# ── Session Dependency ────────────────────────────────────────────────────
async def get_db_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that provides a database session per request.

    The factory comes from `app.state.session_factory` so an application
    built against another database (tests, tooling) needs no overrides.

    How it works:
        1. Creates a new session from the application's factory
        2. Yields it to the route handler
        3. On error: rolls back and re-raises
        4. Always: closes the session (returns connection to pool)

    The session never commits here: code after the yield runs once the
    response is on its way, so every service commits its own writes before
    returning. Anything left pending is discarded by close().
    """
    factory = getattr(request.app.state, "session_factory", async_session_factory)
    async with factory() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


@asynccontextmanager
async def transaction(session: AsyncSession) -> AsyncGenerator[AsyncSession, None]:
    """
    Run a block as one unit of work on `session`.

    Starts a transaction when none is active and commits it when the block
    exits cleanly (rollback on error). When the session is already inside a
    transaction, the block joins it and the pending writes are flushed; the
    owner of the outer transaction decides whether they are committed.
    """
    if session.in_transaction():
        yield session
        await session.flush()
        return
    async with session.begin():
        yield session


async def ping(factory: async_sessionmaker = async_session_factory) -> None:
    """Round-trip `SELECT 1`; raises whatever the driver raises."""
    async with factory() as session:
        await session.execute(text("SELECT 1"))


def pool_status(bind: AsyncEngine = engine) -> Dict[str, Any]:
    """Connection pool counters for the health endpoint (empty when unsupported)."""
    pool = bind.sync_engine.pool
    stats: Dict[str, Any] = {"pool": type(pool).__name__}
    for name in ("size", "checkedin", "checkedout", "overflow"):
        counter = getattr(pool, name, None)
        if callable(counter):
            stats[name] = counter()
    return stats
