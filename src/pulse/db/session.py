"""Engine and session lifecycle for the Pulse event store."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from sqlalchemy import inspect
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from pulse.db.tables import Base

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Iterable

    from sqlalchemy.ext.asyncio import AsyncEngine


class Database:
    """
    Owns the async engine for one event store URL.

    Sessions are short-lived: one per aggregation query. Connections to
    server databases are pre-pinged.
    """

    def __init__(self, url: str, *, echo: bool = False) -> None:
        self._url = url
        self._echo = echo
        self._engine: AsyncEngine | None = None
        self._session_factory: async_sessionmaker[AsyncSession] | None = None

    @property
    def is_sqlite(self) -> bool:
        return self._url.startswith("sqlite")

    def _require_engine(self) -> AsyncEngine:
        if self._engine is None:
            raise RuntimeError("Database not connected. Call connect() first.")
        return self._engine

    async def connect(self) -> None:
        self._engine = create_async_engine(
            self._url, echo=self._echo, pool_pre_ping=not self.is_sqlite
        )
        self._session_factory = async_sessionmaker(
            bind=self._engine, expire_on_commit=False
        )

    async def disconnect(self) -> None:
        if self._engine is not None:
            await self._engine.dispose()
        self._engine = None
        self._session_factory = None

    async def create_tables(self) -> None:
        """Create the event tables if missing (SQLite and tests)."""
        async with self._require_engine().begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def drop_tables(self) -> None:
        async with self._require_engine().begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)

    async def get_missing_tables(self, required_tables: Iterable[str]) -> list[str]:
        """Required table names absent from the connected database, sorted."""
        async with self._require_engine().connect() as conn:
            existing = await conn.run_sync(
                lambda sync_conn: set(inspect(sync_conn).get_table_names())
            )
        return sorted(set(required_tables) - existing)

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        """Session committed on success and rolled back on error."""
        if self._session_factory is None:
            raise RuntimeError("Database not connected. Call connect() first.")

        async with self._session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise


_database: Database | None = None


def get_database() -> Database:
    if _database is None:
        raise RuntimeError("Database not initialized. Call init_database() first.")
    return _database


def init_database(url: str, *, echo: bool = False) -> Database:
    """Replace the process-wide database handle used by routes and the lifespan."""
    global _database
    _database = Database(url, echo=echo)
    return _database
