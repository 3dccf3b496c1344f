"""
Blog API — Database Handle and Session Management
==================================================

What:  Owned async SQLAlchemy engine handle, session factory, and FastAPI dependency.
Why:   Keeps the database connection an explicit object with an open/close
       lifecycle instead of module-level state created at import time.
How:   `Database.connect()` builds the async engine and session factory (and
       creates the posts table); `Database.dispose()` closes the pool. The app
       factory stores the handle on `app.state.database` and the request
       dependency opens one session per request from it.
Who:   The lifespan handler (open/close), route handlers via Depends(), tests.
When:  Connected at server startup; sessions are created per request.
"""

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Dict, Optional

from fastapi import Request
from sqlalchemy import text
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from blog_api.config import settings

logger = logging.getLogger(__name__)


# ── Base Model ────────────────────────────────────────────────────────────
class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy ORM models.

    All models inherit from this class to register with the shared metadata
    that `Database.connect()` uses to create tables.
    """
    pass


class Database:
    """
    Explicitly owned connection handle for the persistence layer.

    Lifecycle:
        db = Database(url)
        await db.connect()       # engine + session factory, tables created
        async with db.session() as session:
            ...
        await db.dispose()       # pooled connections closed

    `connect()` is idempotent so an already-open handle can be handed to
    `create_app()` (the test suite does this).
    """

    def __init__(
        self,
        url: str,
        *,
        echo: bool = False,
        create_tables: bool = True,
    ):
        self.url = url
        self.echo = echo
        self.create_tables = create_tables
        self.engine: Optional[AsyncEngine] = None
        self.session_factory: Optional[async_sessionmaker[AsyncSession]] = None

    @property
    def is_connected(self) -> bool:
        return self.engine is not None

    def _engine_options(self) -> Dict[str, Any]:
        options: Dict[str, Any] = {"echo": self.echo}
        # SQLite (tests, local runs) picks its own pool class; pool sizing only
        # applies to server databases
        if make_url(self.url).get_backend_name() != "sqlite":
            options.update(
                pool_size=settings.db_pool_size,
                max_overflow=settings.db_max_overflow,
                pool_pre_ping=settings.db_pool_pre_ping,
                pool_recycle=3600,
            )
        return options

    async def connect(self) -> None:
        """
        Open the engine and session factory.

        expire_on_commit=False: attributes stay readable after commit, which the
        services rely on when serializing a freshly created post.
        """
        if self.engine is not None:
            return

        self.engine = create_async_engine(self.url, **self._engine_options())
        self.session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

        if self.create_tables:
            # Import registers the Post model on Base.metadata
            from blog_api.models import post  # noqa: F401

            async with self.engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)

        logger.info("Database connected: %s", make_url(self.url).render_as_string(hide_password=True))

    async def drop_all(self) -> None:
        """Drop every table registered on the metadata (test teardown)."""
        if self.engine is None:
            raise RuntimeError("Database is not connected")
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)
        logger.warning("Dropped all tables on %s", make_url(self.url).render_as_string(hide_password=True))

    async def dispose(self) -> None:
        """
        What:  Gracefully closes all connections in the pool.
        When:  Called during application shutdown (lifespan handler).
        """
        if self.engine is None:
            return
        await self.engine.dispose()
        self.engine = None
        self.session_factory = None
        logger.info("Database connections closed")

    async def ping(self) -> bool:
        """Run SELECT 1; used by the health check."""
        if self.engine is None:
            return False
        try:
            async with self.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            return True
        except Exception as e:
            logger.warning("Database ping failed: %s", str(e))
            return False

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """
        Provide a transactional session.

        How it works:
            1. Creates a new session from the factory
            2. Yields it to the caller
            3. On success: commits the transaction
            4. On error: rolls back and re-raises
            5. Always: closes the session (returns connection to pool)
        """
        if self.session_factory is None:
            raise RuntimeError("Database is not connected")

        async with self.session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise
            finally:
                await session.close()


# ── Session Dependency ────────────────────────────────────────────────────
async def get_db_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that provides a database session per request.

    The session comes from the `Database` handle owned by the application
    (`app.state.database`), so tests can swap in their own handle.

    Example usage in a route:
        @router.get("/posts")
        async def list_posts(db: AsyncSession = Depends(get_db_session)):
            ...
    """
    database: Database = request.app.state.database
    async with database.session() as session:
        yield session
