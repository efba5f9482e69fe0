"""
RequestGraph Backend — Database Session Management
====================================================

What:  Async SQLAlchemy engine, session factory, and FastAPI dependency.
Why:   Centralizes all database connection logic in one place.
How:   Creates an async engine with connection pooling and provides a
       session-per-request dependency that rolls back on error.
Who:   Used by route handlers via FastAPI's dependency injection system,
       and by the `requestgraph` CLI for collection setup/teardown.

Connection Pooling Strategy:
    pool_size=20:      Persistent connections for normal load
    max_overflow=10:   Temporary connections for traffic spikes (total max = 30)
    pool_pre_ping:     Validates connections before use (catches stale connections)
    pool_recycle=3600: Recycles connections every hour

    SQLite URLs (tests, local runs) skip the sizing arguments; the aiosqlite
    dialect picks its own pool class.
"""

from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from app.config import Settings, settings


def build_engine(config: Settings) -> AsyncEngine:
    """
    What:  Creates an async engine for the configured database URL.
    Why:   The CLI and the app share one construction path; tests build their own.
    """
    if config.database_url.startswith("sqlite"):
        return create_async_engine(
            config.database_url,
            echo=config.log_level == "DEBUG",
        )

    return create_async_engine(
        config.database_url,
        pool_size=config.db_pool_size,
        max_overflow=config.db_max_overflow,
        pool_pre_ping=config.db_pool_pre_ping,
        pool_recycle=3600,
        # SQL echo only in DEBUG
        echo=config.log_level == "DEBUG",
    )


# ── Engine & Session Factory ──────────────────────────────────────────────
# The engine connects lazily; importing this module never opens a connection.
engine = build_engine(settings)

# expire_on_commit=False: stored documents stay readable after the store commits
async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy ORM models.

    Shares a single metadata object used by Alembic migrations and by
    `requestgraph setup` (create_all with checkfirst).
    """
    pass


# ── Session Dependency ────────────────────────────────────────────────────
async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that provides a database session per request.

    How it works:
        1. Creates a new session from the factory
        2. Yields it to the route handler
        3. On error: rolls back anything the handler left pending
        4. Always: closes the session (returns connection to pool)

    Commits are NOT issued here: CollectionStore commits each mutation
    itself so a write is durable before the response is built.

    Example usage in a route:
        @router.get("/api/items")
        async def list_items(db: AsyncSession = Depends(get_db_session)):
            return await CollectionStore(db, "items").list_all()
    """
    async with async_session_factory() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


# ── Lifecycle Helpers ─────────────────────────────────────────────────────
async def dispose_engine() -> None:
    """
    What:  Gracefully closes all connections in the pool.
    When:  Called during application shutdown (lifespan handler).
    """
    await engine.dispose()
