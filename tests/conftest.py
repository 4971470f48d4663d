from __future__ import annotations

from collections.abc import AsyncIterator
from datetime import UTC, datetime
from pathlib import Path

import pytest
import pytest_asyncio
from fakeredis.aioredis import FakeRedis

import pulse.db.session as session_module
from pulse.config import MonitoredKeyPattern, ReportSettings
from pulse.db.session import Database
from pulse.db.session import init_database as _init_database
from pulse.services.report_cache import MemoryReportCacheBackend, ReportCache

NOW = datetime(2026, 2, 8, 12, 0, 0, tzinfo=UTC)


@pytest_asyncio.fixture
async def fake_redis() -> AsyncIterator[FakeRedis]:
    client = FakeRedis(decode_responses=True)
    try:
        yield client
    finally:
        await client.aclose()


@pytest_asyncio.fixture
async def sqlite_db(tmp_path: Path) -> AsyncIterator[Database]:
    db_path = tmp_path / "pulse-test.db"
    db = _init_database(f"sqlite+aiosqlite:///{db_path}")
    await db.connect()
    await db.create_tables()
    try:
        yield db
    finally:
        await db.disconnect()
        session_module._database = None  # type: ignore[attr-defined]


@pytest.fixture
def memory_cache() -> ReportCache:
    return ReportCache(MemoryReportCacheBackend(), now=lambda: NOW)


@pytest.fixture
def report_settings() -> ReportSettings:
    return ReportSettings(
        slow_endpoint_threshold=100,
        monitored_keys=(
            MonitoredKeyPattern(name="api", pattern="^api:"),
            MonitoredKeyPattern(name="sessions", pattern="^sess:"),
        ),
    )
