from __future__ import annotations

from datetime import UTC, datetime, timedelta, timezone

import pytest
from sqlalchemy.exc import OperationalError

from pulse.db.repositories import (
    CacheHitRecordCreate,
    CacheHitRepository,
    RequestRecordCreate,
    RequestRepository,
    SlowRouteRow,
    StoreUnavailable,
)

NOW = datetime(2026, 2, 8, 12, 0, 0, tzinfo=UTC)


def _ago(**kwargs: float) -> datetime:
    return NOW - timedelta(**kwargs)


async def _seed_requests(db, rows: list[tuple[str, int, datetime]]) -> None:
    async with db.session() as session:
        repo = RequestRepository(session)
        for route, duration, date in rows:
            await repo.record_request({"route": route, "duration": duration, "date": date})


async def _seed_cache_hits(db, rows: list[tuple[str, bool, datetime]]) -> None:
    async with db.session() as session:
        repo = CacheHitRepository(session)
        for key, hit, date in rows:
            await repo.record_cache_hit({"key": key, "hit": hit, "date": date})


@pytest.mark.asyncio
async def test_get_slow_routes_groups_and_orders_by_slowest(sqlite_db) -> None:
    await _seed_requests(
        sqlite_db,
        [
            ("GET /a", 120, _ago(minutes=5)),
            ("GET /a", 200, _ago(minutes=10)),
            ("GET /b", 150, _ago(minutes=15)),
            ("GET /c", 50, _ago(minutes=1)),
        ],
    )

    async with sqlite_db.session() as session:
        rows = await RequestRepository(session).get_slow_routes(
            start_date=_ago(hours=1),
            threshold_ms=100,
        )

    assert rows == [
        SlowRouteRow(route="GET /a", count=2, slowest=200),
        SlowRouteRow(route="GET /b", count=1, slowest=150),
    ]


@pytest.mark.asyncio
async def test_get_slow_routes_applies_window_and_threshold_together(sqlite_db) -> None:
    await _seed_requests(
        sqlite_db,
        [
            ("GET /old", 5000, _ago(hours=2)),
            ("GET /fast", 99, _ago(minutes=1)),
            ("GET /edge", 100, _ago(minutes=59)),
        ],
    )

    async with sqlite_db.session() as session:
        rows = await RequestRepository(session).get_slow_routes(
            start_date=_ago(hours=1),
            threshold_ms=100,
        )

    assert rows == [SlowRouteRow(route="GET /edge", count=1, slowest=100)]


@pytest.mark.asyncio
async def test_get_slow_routes_breaks_ties_by_route(sqlite_db) -> None:
    await _seed_requests(
        sqlite_db,
        [
            ("POST /z", 300, _ago(minutes=1)),
            ("GET /m", 300, _ago(minutes=2)),
            ("DELETE /a", 300, _ago(minutes=3)),
        ],
    )

    async with sqlite_db.session() as session:
        rows = await RequestRepository(session).get_slow_routes(
            start_date=_ago(hours=1),
            threshold_ms=0,
        )

    assert [row.route for row in rows] == ["DELETE /a", "GET /m", "POST /z"]


@pytest.mark.asyncio
async def test_get_slow_routes_empty_store_returns_empty_list(sqlite_db) -> None:
    async with sqlite_db.session() as session:
        rows = await RequestRepository(session).get_slow_routes(
            start_date=_ago(hours=1),
            threshold_ms=0,
        )
    assert rows == []


@pytest.mark.asyncio
async def test_record_request_validates_payload(sqlite_db) -> None:
    async with sqlite_db.session() as session:
        repo = RequestRepository(session)
        with pytest.raises(ValueError):
            await repo.record_request({"route": "GET /a", "duration": -1})


@pytest.mark.asyncio
async def test_get_totals_counts_hits_in_window(sqlite_db) -> None:
    await _seed_cache_hits(
        sqlite_db,
        [
            ("api:1", True, _ago(minutes=1)),
            ("api:1", False, _ago(minutes=2)),
            ("sess:1", True, _ago(minutes=3)),
            ("sess:1", True, _ago(hours=3)),
        ],
    )

    async with sqlite_db.session() as session:
        totals = await CacheHitRepository(session).get_totals(start_date=_ago(hours=1))

    assert (totals.count, totals.hits) == (3, 2)


@pytest.mark.asyncio
async def test_get_totals_on_empty_window_is_zero(sqlite_db) -> None:
    async with sqlite_db.session() as session:
        totals = await CacheHitRepository(session).get_totals(start_date=_ago(hours=1))

    assert (totals.count, totals.hits) == (0, 0)


@pytest.mark.asyncio
async def test_get_key_interactions_ors_patterns_and_groups_by_key(sqlite_db) -> None:
    await _seed_cache_hits(
        sqlite_db,
        [
            ("sess:1", True, _ago(minutes=1)),
            ("api:2", False, _ago(minutes=1)),
            ("api:1", True, _ago(minutes=2)),
            ("api:1", False, _ago(minutes=3)),
            ("other:1", True, _ago(minutes=4)),
            ("api:3", True, _ago(hours=5)),
        ],
    )

    async with sqlite_db.session() as session:
        rows = await CacheHitRepository(session).get_key_interactions(
            start_date=_ago(hours=1),
            patterns=["^api:", "^sess:"],
        )

    assert [(row.key, row.count, row.hits) for row in rows] == [
        ("api:1", 2, 1),
        ("api:2", 1, 0),
        ("sess:1", 1, 1),
    ]


@pytest.mark.asyncio
async def test_get_key_interactions_without_patterns_matches_nothing(sqlite_db) -> None:
    await _seed_cache_hits(sqlite_db, [("api:1", True, _ago(minutes=1))])

    async with sqlite_db.session() as session:
        rows = await CacheHitRepository(session).get_key_interactions(
            start_date=_ago(hours=1),
            patterns=[],
        )

    assert rows == []


@pytest.mark.asyncio
async def test_query_failures_surface_as_store_unavailable(sqlite_db) -> None:
    await sqlite_db.drop_tables()

    with pytest.raises(StoreUnavailable, match="Event store query failed") as exc_info:
        async with sqlite_db.session() as session:
            await RequestRepository(session).get_slow_routes(
                start_date=_ago(hours=1),
                threshold_ms=0,
            )

    assert isinstance(exc_info.value.__cause__, OperationalError)


@pytest.mark.asyncio
async def test_offset_timestamps_are_windowed_by_their_utc_instant(sqlite_db) -> None:
    plus_two = timezone(timedelta(hours=2))
    await _seed_requests(
        sqlite_db,
        [
            ("GET /outside", 500, _ago(minutes=90).astimezone(plus_two)),
            ("GET /inside", 500, _ago(minutes=30).astimezone(plus_two)),
        ],
    )
    await _seed_cache_hits(
        sqlite_db,
        [
            ("api:old", True, _ago(minutes=90).astimezone(plus_two)),
            ("api:new", True, _ago(minutes=30).astimezone(plus_two)),
        ],
    )

    async with sqlite_db.session() as session:
        rows = await RequestRepository(session).get_slow_routes(
            start_date=_ago(hours=1).astimezone(plus_two),
            threshold_ms=100,
        )
        totals = await CacheHitRepository(session).get_totals(start_date=_ago(hours=1))

    assert rows == [SlowRouteRow(route="GET /inside", count=1, slowest=500)]
    assert (totals.count, totals.hits) == (1, 1)


def test_record_payload_dates_are_normalized_to_utc() -> None:
    local = datetime(2026, 2, 8, 14, 0, tzinfo=timezone(timedelta(hours=2)))

    aware = RequestRecordCreate(route="GET /a", duration=1, date=local)
    naive = CacheHitRecordCreate(key="api:1", hit=True, date=datetime(2026, 2, 8, 12, 0))

    assert aware.date == NOW
    assert aware.date.tzinfo is UTC
    assert naive.date == NOW
