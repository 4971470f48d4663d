from __future__ import annotations

from typing import Any

from sqlalchemy.engine import Result
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import Executable


class StoreUnavailable(RuntimeError):
    """Raised when the event store cannot answer a query."""


class EventRepository:
    """Shared plumbing for repositories over the append-only event tables."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def _execute(self, query: Executable) -> Result[Any]:
        try:
            return await self._session.execute(query)
        except SQLAlchemyError as exc:
            raise StoreUnavailable(f"Event store query failed: {exc}") from exc

    async def _flush(self) -> None:
        try:
            await self._session.flush()
        except SQLAlchemyError as exc:
            raise StoreUnavailable(f"Event store write failed: {exc}") from exc
