from __future__ import annotations

import json
from datetime import UTC, datetime, timedelta

import pytest
from fastapi import FastAPI

from pulse.config import ReportSettings
from pulse.contracts import Period, SlowRoute
from pulse.db.repositories import RequestRepository, StoreUnavailable
from pulse.services.report_cache import MemoryReportCacheBackend, ReportCache
from pulse.services.reports import SlowRoutesReport
from pulse.services.route_registry import RouteRegistry

NOW = datetime(2026, 2, 8, 12, 0, 0, tzinfo=UTC)


async def _seed(db, rows: list[tuple[str, int, timedelta]]) -> None:
    async with db.session() as session:
        repo = RequestRepository(session)
        for route, duration, age in rows:
            await repo.record_request(
                {"route": route, "duration": duration, "date": NOW - age}
            )


def _report(db, cache, *, threshold: int = 100, routes=None) -> SlowRoutesReport:
    return SlowRoutesReport(
        database=db,
        cache=cache,
        settings=ReportSettings(slow_endpoint_threshold=threshold),
        routes=routes,
    )


@pytest.mark.asyncio
async def test_load_groups_slow_requests_by_route(sqlite_db, memory_cache) -> None:
    await _seed(
        sqlite_db,
        [
            ("GET /a", 120, timedelta(minutes=1)),
            ("GET /a", 200, timedelta(minutes=2)),
            ("GET /b", 150, timedelta(minutes=3)),
            ("GET /c", 50, timedelta(minutes=4)),
        ],
    )

    result = await _report(sqlite_db, memory_cache).load(Period.ONE_HOUR)

    assert result.slow_routes == [
        SlowRoute(uri="GET /a", action=None, request_count=2, slowest_duration=200),
        SlowRoute(uri="GET /b", action=None, request_count=1, slowest_duration=150),
    ]
    assert result.run_at == NOW
    assert result.time >= 0
    assert result.initial_data_loaded is True


@pytest.mark.asyncio
async def test_get_on_cold_cache_reports_no_data_yet(sqlite_db, memory_cache) -> None:
    report = _report(sqlite_db, memory_cache)

    cold = await report.get(Period.SIX_HOURS)
    assert cold.slow_routes is None
    assert cold.time == 0
    assert cold.run_at is None
    assert cold.initial_data_loaded is False

    await report.load(Period.SIX_HOURS)
    warm = await report.get(Period.SIX_HOURS)
    assert warm.slow_routes == []
    assert warm.initial_data_loaded is True


@pytest.mark.asyncio
async def test_empty_window_is_an_empty_list(sqlite_db, memory_cache) -> None:
    await _seed(sqlite_db, [("GET /a", 500, timedelta(hours=2))])

    result = await _report(sqlite_db, memory_cache).load(Period.ONE_HOUR)

    assert result.slow_routes == []


@pytest.mark.asyncio
async def test_longer_periods_widen_the_window(sqlite_db, memory_cache) -> None:
    await _seed(sqlite_db, [("GET /report", 900, timedelta(days=3))])
    report = _report(sqlite_db, memory_cache)

    assert (await report.load(Period.TWENTY_FOUR_HOURS)).slow_routes == []
    week = await report.load(Period.SEVEN_DAYS)
    assert [route.uri for route in week.slow_routes or []] == ["GET /report"]


@pytest.mark.asyncio
async def test_action_resolved_from_route_registry(sqlite_db, memory_cache) -> None:
    app = FastAPI()

    @app.get("/users/{user_id}")
    async def show_user(user_id: int) -> dict:
        return {}

    await _seed(
        sqlite_db,
        [
            ("GET /users/{user_id}", 400, timedelta(minutes=1)),
            ("GET /unknown", 300, timedelta(minutes=1)),
            ("malformed", 200, timedelta(minutes=1)),
        ],
    )
    routes = RouteRegistry.from_routes(app.routes)

    result = await _report(sqlite_db, memory_cache, routes=routes).load(Period.ONE_HOUR)

    actions = {route.uri: route.action for route in result.slow_routes or []}
    assert actions["GET /users/{user_id}"].endswith(
        "test_action_resolved_from_route_registry.<locals>.show_user"
    )
    assert actions["GET /unknown"] is None
    assert actions["malformed"] is None


@pytest.mark.asyncio
async def test_load_serves_cached_report_until_ttl(sqlite_db) -> None:
    cache = ReportCache(MemoryReportCacheBackend(), now=lambda: NOW)
    report = _report(sqlite_db, cache)

    first = await report.load(Period.ONE_HOUR)
    await _seed(sqlite_db, [("GET /late", 999, timedelta(seconds=1))])
    second = await report.load(Period.ONE_HOUR)

    assert first.slow_routes == []
    assert second == first


@pytest.mark.asyncio
async def test_recompute_is_idempotent_for_same_snapshot(sqlite_db, memory_cache) -> None:
    await _seed(
        sqlite_db,
        [
            ("GET /a", 120, timedelta(minutes=1)),
            ("POST /b", 120, timedelta(minutes=2)),
        ],
    )
    report = _report(sqlite_db, memory_cache)

    first = await report.compute(Period.ONE_HOUR, NOW)
    second = await report.compute(Period.ONE_HOUR, NOW)

    assert json.dumps(first.payload) == json.dumps(second.payload)
    assert [row["uri"] for row in first.payload] == ["GET /a", "POST /b"]


@pytest.mark.asyncio
async def test_store_failure_propagates_and_keeps_cache_cold(sqlite_db, memory_cache) -> None:
    report = _report(sqlite_db, memory_cache)
    await sqlite_db.drop_tables()

    with pytest.raises(StoreUnavailable):
        await report.load(Period.ONE_HOUR)

    assert (await report.get(Period.ONE_HOUR)).slow_routes is None


def test_fingerprint_is_per_period() -> None:
    assert SlowRoutesReport.fingerprint(Period.ONE_HOUR) == "pulse:slow-routes:1_hour"
    assert SlowRoutesReport.fingerprint(Period.SEVEN_DAYS) == "pulse:slow-routes:7_days"
