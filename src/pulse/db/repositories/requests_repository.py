"""Repository for recorded HTTP request events."""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime

from sqlalchemy import func, select

from pulse.db.repositories.base import EventRepository
from pulse.db.repositories.models import RequestRecordCreate, SlowRouteRow, as_utc
from pulse.db.tables import PulseRequest


class RequestRepository(EventRepository):
    """
    Repository for request events.

    Provides the slow routes aggregation and a writer used to seed the table.
    """

    async def record_request(
        self, data: RequestRecordCreate | Mapping[str, object]
    ) -> PulseRequest:
        """
        Record a request event.

        Args:
            data: Typed payload or mapping accepted by RequestRecordCreate

        Returns:
            Created PulseRequest row
        """
        payload = (
            data
            if isinstance(data, RequestRecordCreate)
            else RequestRecordCreate.model_validate(data)
        )
        row = PulseRequest(**payload.model_dump(mode="python"))
        self._session.add(row)
        await self._flush()
        return row

    async def get_slow_routes(
        self,
        *,
        start_date: datetime,
        threshold_ms: int,
    ) -> list[SlowRouteRow]:
        """
        Group requests at or above ``threshold_ms`` since ``start_date`` by route.

        Rows are ordered slowest first; equal maxima fall back to route name so
        the result does not depend on the engine's grouping order.
        """
        slowest = func.max(PulseRequest.duration).label("slowest")
        query = (
            select(
                PulseRequest.route,
                func.count(PulseRequest.id).label("count"),
                slowest,
            )
            .where(
                PulseRequest.date >= as_utc(start_date),
                PulseRequest.duration >= threshold_ms,
            )
            .group_by(PulseRequest.route)
            .order_by(slowest.desc(), PulseRequest.route.asc())
        )

        result = await self._execute(query)
        return [
            SlowRouteRow(
                route=str(row.route),
                count=int(row.count or 0),
                slowest=int(row.slowest or 0),
            )
            for row in result.all()
        ]
