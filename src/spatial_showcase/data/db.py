"""Database configuration and session management.

This module provides SQLAlchemy 2.x asyncio ORM infrastructure including:
- A :class:`Database` owning the async engine and its bounded connection pool
- Scoped session acquisition with a per-scope time budget
- Process-wide init/close lifecycle driven by the API lifespan

The database URL comes from the ``DB_URL`` environment variable and defaults
to a SQLite file in the project root (see :mod:`spatial_showcase.config`).
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from sqlalchemy import event
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from spatial_showcase.exceptions import OperationTimeout

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy ORM models."""


def _enable_sqlite_foreign_keys(dbapi_connection: Any, _record: Any) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class Database:
    """Async engine, connection pool and session factory.

    Components receive a ``Database`` explicitly instead of reaching for a
    module global. Every unit of work goes through :meth:`session`, which
    returns the connection to the pool on every exit path.
    """

    def __init__(
        self,
        url: str,
        *,
        pool_size: int = 5,
        max_overflow: int = 10,
        default_timeout: float = 3.0,
        echo: bool = False,
    ) -> None:
        self.url = url
        self.pool_size = pool_size
        self.max_overflow = max_overflow
        self.default_timeout = default_timeout
        self.echo = echo
        self._engine: AsyncEngine | None = None
        self._session_factory: async_sessionmaker[AsyncSession] | None = None

    @property
    def engine(self) -> AsyncEngine:
        if self._engine is None:
            raise RuntimeError("Database is not connected; call connect() first.")
        return self._engine

    @property
    def is_connected(self) -> bool:
        return self._engine is not None

    def connect(self) -> None:
        """Create the engine and pool. Safe to call more than once."""
        if self._engine is not None:
            return

        url = make_url(self.url)
        options: dict[str, Any] = {"echo": self.echo, "pool_pre_ping": True}
        if url.get_backend_name() != "sqlite" or url.database not in (None, "", ":memory:"):
            options["pool_size"] = self.pool_size
            options["max_overflow"] = self.max_overflow

        self._engine = create_async_engine(self.url, **options)
        if url.get_backend_name() == "sqlite":
            event.listen(self._engine.sync_engine, "connect", _enable_sqlite_foreign_keys)

        self._session_factory = async_sessionmaker(
            bind=self._engine,
            autoflush=False,
            expire_on_commit=False,
        )
        logger.info("Database pool created for %s", url.render_as_string(hide_password=True))

    async def create_all(self) -> None:
        """Create all tables defined on the Base metadata.

        Intended for development and tests; production schemas are managed
        outside this package.
        """
        # Import ORM models so their metadata is registered on Base.
        from spatial_showcase.data import models  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def dispose(self) -> None:
        """Drain the pool and forget the engine."""
        if self._engine is None:
            return
        await self._engine.dispose()
        self._engine = None
        self._session_factory = None
        logger.info("Database pool disposed")

    @asynccontextmanager
    async def session(self, timeout: float | None = None) -> AsyncIterator[AsyncSession]:
        """Provide a transactional scope bounded by ``timeout`` seconds.

        The scope commits on success and rolls back on error. Exceeding the
        budget raises :class:`OperationTimeout`; nothing done inside the scope
        is assumed to have been committed.
        """
        if self._session_factory is None:
            raise RuntimeError("Database is not connected; call connect() first.")

        budget = self.default_timeout if timeout is None else timeout
        session = self._session_factory()
        try:
            async with asyncio.timeout(budget):
                yield session
                await session.commit()
        except TimeoutError as exc:
            await session.rollback()
            raise OperationTimeout("Database operation timed out") from exc
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()

    @asynccontextmanager
    async def scope(
        self, session: AsyncSession | None = None, timeout: float | None = None
    ) -> AsyncIterator[AsyncSession]:
        """Reuse the caller's ``session`` if given, otherwise open a new :meth:`session`."""
        if session is not None:
            yield session
            return
        async with self.session(timeout) as own:
            yield own


_database: Database | None = None


def init_db(url: str | None = None) -> Database:
    """Create (or return) the process-wide :class:`Database` and connect it."""
    global _database
    if _database is None:
        from spatial_showcase.config import get_settings

        settings = get_settings()
        _database = Database(
            url or settings.database_url,
            pool_size=settings.pool_size,
            max_overflow=settings.max_overflow,
            default_timeout=settings.query_timeout,
        )
    _database.connect()
    return _database


def get_database() -> Database:
    """Return the process-wide database, connecting it on first use."""
    if _database is None or not _database.is_connected:
        return init_db()
    return _database


async def close_db() -> None:
    """Dispose the process-wide database, if any."""
    global _database
    if _database is not None:
        await _database.dispose()
        _database = None
