"""Cache interactions report - hit rates overall and per monitored key pattern."""

from __future__ import annotations

import logging
import re
import time
from dataclasses import dataclass
from datetime import datetime

from pydantic import TypeAdapter

from pulse.config import MonitoredKeyPattern, ReportSettings
from pulse.contracts import CacheInteractions, MonitoredCacheInteraction, Period
from pulse.db.repositories import CacheHitRepository, CacheKeyInteractionRow
from pulse.db.session import Database
from pulse.services.periods import cache_ttl_seconds, window_start
from pulse.services.report_cache import (
    Computed,
    ReportCache,
    elapsed_ms_since,
    monitored_keys_hash,
    report_fingerprint,
)

logger = logging.getLogger(__name__)

CACHE_ALL_REPORT = "cache-all"
CACHE_MONITORED_REPORT = "cache-monitored"

_monitored_adapter = TypeAdapter(list[MonitoredCacheInteraction])


@dataclass(frozen=True)
class CacheReportResult:
    """Both cache views with their own timing, as cached."""

    all_cache_interactions: CacheInteractions
    all_time: int
    all_run_at: datetime
    monitored_cache_interactions: list[MonitoredCacheInteraction]
    monitored_time: int
    monitored_run_at: datetime


@dataclass
class _Accumulator:
    name: str
    pattern: str
    unique_keys: int = 0
    hits: int = 0
    count: int = 0

    def add(self, row: CacheKeyInteractionRow) -> None:
        self.unique_keys += 1
        self.hits += row.hits
        self.count += row.count


def _first_matching(
    key: str, compiled: list[tuple[MonitoredKeyPattern, re.Pattern[str]]]
) -> MonitoredKeyPattern | None:
    for item, regex in compiled:
        if regex.search(key):
            return item
    return None


class CacheInteractionsReport:
    """Computes and memoizes the cache interaction views per period."""

    def __init__(
        self,
        *,
        database: Database,
        cache: ReportCache,
        settings: ReportSettings,
    ) -> None:
        self._database = database
        self._cache = cache
        self._settings = settings

    @property
    def monitored_keys(self) -> tuple[MonitoredKeyPattern, ...]:
        return self._settings.monitored_keys

    @staticmethod
    def all_fingerprint(period: Period) -> str:
        return report_fingerprint(CACHE_ALL_REPORT, period)

    def monitored_fingerprint(self, period: Period) -> str:
        return report_fingerprint(
            CACHE_MONITORED_REPORT, period, monitored_keys_hash(self.monitored_keys)
        )

    async def get(self, period: Period) -> CacheReportResult:
        """Return both views, computing whichever is absent or expired."""
        ttl = cache_ttl_seconds(period)
        all_entry = await self._cache.get_or_compute(
            self.all_fingerprint(period),
            ttl,
            lambda now: self.compute_all(period, now),
        )
        monitored_entry = await self._cache.get_or_compute(
            self.monitored_fingerprint(period),
            ttl,
            lambda now: self.compute_monitored(period, now),
        )
        return CacheReportResult(
            all_cache_interactions=CacheInteractions.model_validate(all_entry.payload),
            all_time=all_entry.compute_time_ms,
            all_run_at=all_entry.computed_at,
            monitored_cache_interactions=_monitored_adapter.validate_python(
                monitored_entry.payload
            ),
            monitored_time=monitored_entry.compute_time_ms,
            monitored_run_at=monitored_entry.computed_at,
        )

    async def compute_all(self, period: Period, now: datetime) -> Computed[dict]:
        """Total interactions and hits across every key in the window."""
        start_ns = time.perf_counter_ns()

        async with self._database.session() as session:
            totals = await CacheHitRepository(session).get_totals(
                start_date=window_start(period, now)
            )

        payload = CacheInteractions(count=totals.count, hits=totals.hits)
        return Computed(
            payload=payload.model_dump(mode="json"),
            elapsed_ms=elapsed_ms_since(start_ns),
        )

    async def compute_monitored(
        self, period: Period, now: datetime
    ) -> Computed[list[dict]]:
        """
        Bucket per-key interactions into the configured patterns.

        Every pattern is reported, zero-filled when nothing matched, in
        configuration order. A key counts towards the first pattern that
        matches it. Keys the store matched but ``re`` does not are dropped.
        """
        patterns = self.monitored_keys
        if not patterns:
            return Computed(payload=[], elapsed_ms=0)

        interactions = {
            item.name: _Accumulator(name=item.name, pattern=item.pattern)
            for item in patterns
        }
        order = {item.name: index for index, item in enumerate(patterns)}
        compiled = [(item, re.compile(item.pattern)) for item in patterns]

        start_ns = time.perf_counter_ns()

        async with self._database.session() as session:
            rows = await CacheHitRepository(session).get_key_interactions(
                start_date=window_start(period, now),
                patterns=[item.pattern for item in patterns],
            )

        for row in rows:
            matched = _first_matching(row.key, compiled)
            if matched is None:
                logger.debug("Cache key %r matched in store but not by re", row.key)
                continue
            interactions[matched.name].add(row)

        ordered = sorted(interactions.values(), key=lambda acc: order[acc.name])
        payload = _monitored_adapter.dump_python(
            [
                MonitoredCacheInteraction(
                    name=acc.name,
                    pattern=acc.pattern,
                    unique_keys=acc.unique_keys,
                    hits=acc.hits,
                    count=acc.count,
                )
                for acc in ordered
            ],
            mode="json",
        )
        return Computed(payload=payload, elapsed_ms=elapsed_ms_since(start_ns))
