"""
CaterHub Backend — Database Session Management
================================================

What:  Async SQLAlchemy engine, session factory, and FastAPI dependency.
Why:   Centralizes all database connection logic in one place.
How:   A `Database` object owns the engine and session factory; the app
       factory stores it on `app.state.db` and the session dependency
       reads it from there. Each request gets one session, which is one
       transaction: it commits on success and rolls back on any error.
Who:   Used by route handlers via FastAPI's dependency injection system.
When:  Engine is created by `create_app()`; sessions are created per-request.

Transaction Boundary:
    Every validate-then-write sequence (reference checks before an insert,
    ownership check before an update, count-then-update in link-batch)
    runs inside the request session, so the checks and the write commit
    or roll back together.

Connection Pooling Strategy:
    pool_size=20:     Persistent connections for normal load
    max_overflow=10:  Temporary connections for traffic spikes (total max = 30)
    pool_pre_ping:    Validates connections before use (catches stale connections)
    pool_recycle=3600: Recycles connections every hour

    SQLite (tests, local experiments) gets none of the pool arguments and
    has foreign key enforcement switched on per connection.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator, AsyncIterator

from fastapi import Request
from sqlalchemy import event, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from caterhub.config import Settings
from caterhub.exceptions import DatabaseError

logger = logging.getLogger(__name__)


# ── Base Model ────────────────────────────────────────────────────────────
class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy ORM models.

    All models inherit from this class to register with the shared metadata
    (used by Alembic for migrations and by tests for create_all).
    """
    pass


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class Database:
    """
    Owns the async engine and the session factory for one application.

    Attributes:
        engine:           AsyncEngine bound to settings.database_url
        session_factory:  async_sessionmaker producing AsyncSession objects
        is_sqlite:        dialect flag (SQLite lacks row locks and pool sizing)
    """

    def __init__(self, settings: Settings):
        self.is_sqlite = settings.is_sqlite

        engine_kwargs = {
            "echo": settings.log_level == "DEBUG",
        }
        # SQLite doesn't support pool_size
        if not self.is_sqlite:
            engine_kwargs.update(
                pool_size=settings.db_pool_size,
                max_overflow=settings.db_max_overflow,
                pool_pre_ping=settings.db_pool_pre_ping,
                pool_recycle=3600,
            )

        self.engine: AsyncEngine = create_async_engine(settings.database_url, **engine_kwargs)

        if self.is_sqlite:
            event.listen(self.engine.sync_engine, "connect", _enable_sqlite_foreign_keys)

        # expire_on_commit=False: Prevents lazy-loading issues after commit
        self.session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        """
        Yield one session per request.

        How it works:
            1. Creates a new session from the factory
            2. Yields it to the route handler
            3. On success: commits the transaction
            4. On error: rolls back; driver and ORM failures are re-raised
               as DatabaseError so the client gets the generic 500 body
            5. Always: closes the session (returns connection to pool)
        """
        async with self.session_factory() as session:
            try:
                yield session
                await session.commit()
            except SQLAlchemyError as e:
                await session.rollback()
                logger.error("Database error, transaction rolled back: %s", str(e))
                raise DatabaseError(context={"error_type": type(e).__name__}) from e
            except Exception:
                await session.rollback()
                raise
            finally:
                await session.close()

    async def ping(self) -> None:
        """Run SELECT 1; raises if the database is unreachable."""
        async with self.engine.connect() as conn:
            await conn.execute(text("SELECT 1"))

    async def create_all(self) -> None:
        """Create every table registered on Base.metadata (tests, dev bootstrap)."""
        # Import models so every table is registered before create_all
        import caterhub.models  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def drop_all(self) -> None:
        import caterhub.models  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)

    async def dispose(self) -> None:
        """
        What:  Gracefully closes all connections in the pool.
        When:  Called during application shutdown (lifespan handler).
        """
        await self.engine.dispose()


# ── Session Dependency ────────────────────────────────────────────────────
async def get_db_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that provides a database session per request.

    Example usage in a route:
        @router.get("/caterer/dishes")
        async def list_dishes(db: AsyncSession = Depends(get_db_session, scope="function")):
            ...

    scope="function" runs the commit when the endpoint returns, before the
    response is sent, so a failed commit surfaces as a 500 instead of a
    success the client has already received.
    """
    database: Database = request.app.state.db
    async with database.session() as session:
        yield session
