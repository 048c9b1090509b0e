"""
Site Content API — Database Session Management
===============================================

What:  Async SQLAlchemy engine, session factory, declarative base and
       the per-request session dependency.
How:   One engine (connection pool) per process; each request gets its own
       AsyncSession. Writes are committed by the TableGateway; the dependency
       rolls back anything left pending when a request fails.

Connection Pooling Strategy:
    Supabase's Postgres allows a limited number of direct connections, so the
    defaults stay small (pool_size=10, max_overflow=10). SQLite URLs (tests,
    local hacking) use SQLAlchemy's default pool and skip the sizing options.
"""

from typing import Any, AsyncGenerator, Dict

from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from app.config import settings


def _engine_options() -> Dict[str, Any]:
    options: Dict[str, Any] = {
        # Echo SQL queries in DEBUG mode for development visibility
        "echo": settings.log_level == "DEBUG",
    }
    if not settings.is_sqlite:
        options.update(
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            pool_pre_ping=settings.db_pool_pre_ping,
            pool_recycle=3600,
        )
    return options


# ── Engine Configuration ──────────────────────────────────────────────────
engine = create_async_engine(settings.database_url, **_engine_options())

# ── Session Factory ───────────────────────────────────────────────────────
# expire_on_commit=False: rows returned by a write stay readable after commit
async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy ORM models.

    Shares one metadata object between the content models, Alembic and the
    test fixtures that create the schema in SQLite.
    """
    pass


# ── Session Dependency ────────────────────────────────────────────────────
async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that provides a database session per request.

    How it works:
        1. Creates a new session from the factory
        2. Yields it to the route handler
        3. On success: commits whatever is still pending (normally nothing,
           TableGateway commits its own writes)
        4. On error: rolls back
        5. Always: closes the session (returns connection to pool)

    Tests replace this dependency with a session bound to an in-memory
    SQLite engine.
    """
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


# ── Lifecycle Helpers ─────────────────────────────────────────────────────
async def dispose_engine() -> None:
    """Closes all pooled connections. Called from the lifespan on shutdown."""
    await engine.dispose()
