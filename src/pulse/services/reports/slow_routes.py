"""Slow routes report - routes whose requests crossed the slow threshold."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from datetime import datetime

from pydantic import TypeAdapter

from pulse.config import ReportSettings
from pulse.contracts import Period, SlowRoute
from pulse.db.repositories import RequestRepository, SlowRouteRow
from pulse.db.session import Database
from pulse.services.periods import cache_ttl_seconds, window_start
from pulse.services.report_cache import (
    CachedReportEntry,
    Computed,
    ReportCache,
    elapsed_ms_since,
    report_fingerprint,
)
from pulse.services.route_registry import RouteRegistry

logger = logging.getLogger(__name__)

SLOW_ROUTES_REPORT = "slow-routes"

_slow_routes_adapter = TypeAdapter(list[SlowRoute])


@dataclass(frozen=True)
class SlowRoutesResult:
    """Slow routes as seen by the caller. ``slow_routes`` is None on a cold cache."""

    slow_routes: list[SlowRoute] | None
    time: int
    run_at: datetime | None

    @property
    def initial_data_loaded(self) -> bool:
        return self.slow_routes is not None

    @classmethod
    def from_entry(cls, entry: CachedReportEntry | None) -> SlowRoutesResult:
        if entry is None:
            return cls(slow_routes=None, time=0, run_at=None)
        return cls(
            slow_routes=_slow_routes_adapter.validate_python(entry.payload),
            time=entry.compute_time_ms,
            run_at=entry.computed_at,
        )


class SlowRoutesReport:
    """Computes and memoizes the slow routes report per period."""

    def __init__(
        self,
        *,
        database: Database,
        cache: ReportCache,
        settings: ReportSettings,
        routes: RouteRegistry | None = None,
    ) -> None:
        self._database = database
        self._cache = cache
        self._settings = settings
        self._routes = routes or RouteRegistry()

    @staticmethod
    def fingerprint(period: Period) -> str:
        return report_fingerprint(SLOW_ROUTES_REPORT, period)

    async def get(self, period: Period) -> SlowRoutesResult:
        """Return whatever is cached for the period without computing."""
        entry = await self._cache.peek(self.fingerprint(period))
        return SlowRoutesResult.from_entry(entry)

    async def load(self, period: Period) -> SlowRoutesResult:
        """Return the cached report, computing it if absent or expired."""
        entry = await self._cache.get_or_compute(
            self.fingerprint(period),
            cache_ttl_seconds(period),
            lambda now: self.compute(period, now),
        )
        return SlowRoutesResult.from_entry(entry)

    async def compute(self, period: Period, now: datetime) -> Computed[list[dict]]:
        """Run the aggregation for the window ending at ``now``."""
        start_ns = time.perf_counter_ns()

        async with self._database.session() as session:
            rows = await RequestRepository(session).get_slow_routes(
                start_date=window_start(period, now),
                threshold_ms=self._settings.slow_endpoint_threshold,
            )

        slow_routes = [self._to_slow_route(row) for row in rows]
        payload = _slow_routes_adapter.dump_python(slow_routes, mode="json")
        return Computed(payload=payload, elapsed_ms=elapsed_ms_since(start_ns))

    def _to_slow_route(self, row: SlowRouteRow) -> SlowRoute:
        method, _, path = row.route.partition(" ")
        action = self._routes.resolve_handler(method, path) if path else None
        if action is None:
            logger.debug("No handler registered for route %r", row.route)
        return SlowRoute(
            uri=row.route,
            action=action,
            request_count=row.count,
            slowest_duration=row.slowest,
        )
