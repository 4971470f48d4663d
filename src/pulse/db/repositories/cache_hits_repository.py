"""Repository for recorded cache interaction events."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from datetime import datetime

from sqlalchemy import case, func, or_, select

from pulse.db.repositories.base import EventRepository
from pulse.db.repositories.models import (
    CacheHitRecordCreate,
    CacheHitTotals,
    CacheKeyInteractionRow,
    as_utc,
)
from pulse.db.tables import PulseCacheHit


def _hits_expr():
    return func.coalesce(func.sum(case((PulseCacheHit.hit.is_(True), 1), else_=0)), 0)


class CacheHitRepository(EventRepository):
    """Repository for cache hit/miss events."""

    async def record_cache_hit(
        self, data: CacheHitRecordCreate | Mapping[str, object]
    ) -> PulseCacheHit:
        """Record a cache interaction event."""
        payload = (
            data
            if isinstance(data, CacheHitRecordCreate)
            else CacheHitRecordCreate.model_validate(data)
        )
        row = PulseCacheHit(**payload.model_dump(mode="python"))
        self._session.add(row)
        await self._flush()
        return row

    async def get_totals(self, *, start_date: datetime) -> CacheHitTotals:
        """Count all interactions and hits since ``start_date``."""
        query = select(
            func.count(PulseCacheHit.id).label("count"),
            _hits_expr().label("hits"),
        ).where(PulseCacheHit.date >= as_utc(start_date))

        result = await self._execute(query)
        row = result.one_or_none()
        if row is None:
            return CacheHitTotals(count=0, hits=0)
        return CacheHitTotals(count=int(row.count or 0), hits=int(row.hits or 0))

    async def get_key_interactions(
        self,
        *,
        start_date: datetime,
        patterns: Sequence[str],
    ) -> list[CacheKeyInteractionRow]:
        """
        Aggregate interactions per key for keys matching any of ``patterns``.

        The patterns are OR-ed into a single regexp predicate so the table is
        scanned once. An empty pattern list matches nothing.
        """
        if not patterns:
            return []

        query = (
            select(
                PulseCacheHit.key,
                func.count(PulseCacheHit.id).label("count"),
                _hits_expr().label("hits"),
            )
            .where(
                PulseCacheHit.date >= as_utc(start_date),
                or_(*(PulseCacheHit.key.regexp_match(pattern) for pattern in patterns)),
            )
            .group_by(PulseCacheHit.key)
            .order_by(PulseCacheHit.key)
        )

        result = await self._execute(query)
        return [
            CacheKeyInteractionRow(
                key=str(row.key),
                count=int(row.count or 0),
                hits=int(row.hits or 0),
            )
            for row in result.all()
        ]
