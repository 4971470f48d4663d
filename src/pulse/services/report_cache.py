"""Memoized report cache.

Computed reports are stored under a fingerprint of (report, period, params)
together with how long the computation took and when it ran. Entries expire
after a period-dependent TTL and are recomputed lazily on the next request;
there is no background refresh.

Backends:
    MemoryReportCacheBackend   in-process dict, monotonic-clock expiry
    RedisReportCacheBackend    JSON values with native key expiry (SET EX)
"""

from __future__ import annotations

import asyncio
import hashlib
import json
import logging
import time
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any, Generic, Protocol, TypeVar

from pydantic import BaseModel, ConfigDict, ValidationError

from pulse.config import MonitoredKeyPattern
from pulse.contracts import Period

logger = logging.getLogger(__name__)

FINGERPRINT_PREFIX = "pulse"

PayloadT = TypeVar("PayloadT")


class CachedReportEntry(BaseModel):
    """A computed report as stored in the cache. Never mutated once built."""

    model_config = ConfigDict(frozen=True)

    payload: Any
    compute_time_ms: int
    computed_at: datetime
    expires_at: datetime


@dataclass(frozen=True)
class Computed(Generic[PayloadT]):
    """
    Result of a report computation.

    ``elapsed_ms`` is set when the computation timed its own query phase;
    otherwise the cache's measurement around the whole call is stored.
    """

    payload: PayloadT
    elapsed_ms: int | None = None


ComputeFn = Callable[[datetime], Awaitable[Computed[Any]]]


def elapsed_ms_since(start_ns: int) -> int:
    """Whole milliseconds elapsed since a ``time.perf_counter_ns()`` reading."""
    return max(0, (time.perf_counter_ns() - start_ns) // 1_000_000)


def report_fingerprint(report: str, period: Period, *params: str) -> str:
    """Deterministic cache key for a report over a period."""
    return ":".join((FINGERPRINT_PREFIX, report, period.value, *params))


def monitored_keys_hash(patterns: Iterable[MonitoredKeyPattern]) -> str:
    """Stable hash over the ordered monitored key configuration."""
    ordered = [[item.pattern, item.name] for item in patterns]
    encoded = json.dumps(ordered, separators=(",", ":"), ensure_ascii=False)
    return hashlib.md5(encoded.encode()).hexdigest()


class ReportCacheBackend(Protocol):
    async def get(self, key: str) -> CachedReportEntry | None: ...

    async def put(self, key: str, entry: CachedReportEntry, ttl_seconds: int) -> None: ...

    async def clear(self) -> None: ...


class MemoryReportCacheBackend:
    """In-process backend. Expiry uses a monotonic clock."""

    def __init__(self, *, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._entries: dict[str, tuple[float, CachedReportEntry]] = {}

    async def get(self, key: str) -> CachedReportEntry | None:
        stored = self._entries.get(key)
        if stored is None:
            return None
        deadline, entry = stored
        if self._clock() >= deadline:
            self._entries.pop(key, None)
            return None
        return entry

    async def put(self, key: str, entry: CachedReportEntry, ttl_seconds: int) -> None:
        self._entries[key] = (self._clock() + ttl_seconds, entry)

    async def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)


class RedisReportCacheBackend:
    """Redis backend storing entries as JSON strings with a key TTL."""

    def __init__(self, redis_client: Any) -> None:
        self._redis = redis_client

    async def get(self, key: str) -> CachedReportEntry | None:
        raw = await self._redis.get(key)
        if not raw:
            return None
        if isinstance(raw, bytes):
            raw = raw.decode()
        try:
            return CachedReportEntry.model_validate_json(raw)
        except ValidationError:
            logger.debug("Discarding unreadable report cache entry %s", key)
            return None

    async def put(self, key: str, entry: CachedReportEntry, ttl_seconds: int) -> None:
        await self._redis.set(key, entry.model_dump_json(), ex=max(1, ttl_seconds))

    async def clear(self) -> None:
        cursor = 0
        while True:
            cursor, keys = await self._redis.scan(
                cursor=cursor, match=f"{FINGERPRINT_PREFIX}:*", count=100
            )
            if keys:
                await self._redis.delete(*keys)
            if not cursor:
                break


class ReportCache:
    """
    Get-or-compute cache for report payloads.

    Concurrent misses for one fingerprint in this process wait on a shared
    lock and reuse the first computation. Across processes duplicate work is
    possible and the last write wins.
    """

    def __init__(
        self,
        backend: ReportCacheBackend,
        *,
        now: Callable[[], datetime] = lambda: datetime.now(UTC),
    ) -> None:
        self._backend = backend
        self._now = now
        self._locks: dict[str, asyncio.Lock] = {}

    @property
    def backend(self) -> ReportCacheBackend:
        return self._backend

    async def peek(self, fingerprint: str) -> CachedReportEntry | None:
        """Return the live entry for ``fingerprint`` without computing."""
        try:
            return await self._backend.get(fingerprint)
        except Exception as exc:
            logger.warning(
                "Report cache read failed for %s: %s",
                fingerprint,
                exc,
                extra={"fingerprint": fingerprint},
            )
            return None

    async def get_or_compute(
        self,
        fingerprint: str,
        ttl_seconds: int,
        compute: ComputeFn,
    ) -> CachedReportEntry:
        """
        Return the cached entry, computing and storing it on a miss.

        ``compute`` receives the instant the computation started; the same
        instant is recorded as ``computed_at``. Errors from ``compute``
        propagate and nothing is stored.
        """
        entry = await self.peek(fingerprint)
        if entry is not None:
            logger.debug(
                "Report cache hit: %s",
                fingerprint,
                extra={"fingerprint": fingerprint, "cache": "hit"},
            )
            return entry

        lock = self._locks.setdefault(fingerprint, asyncio.Lock())
        try:
            async with lock:
                entry = await self.peek(fingerprint)
                if entry is not None:
                    return entry
                return await self._compute_and_store(fingerprint, ttl_seconds, compute)
        finally:
            if not lock.locked() and self._locks.get(fingerprint) is lock:
                del self._locks[fingerprint]

    async def _compute_and_store(
        self,
        fingerprint: str,
        ttl_seconds: int,
        compute: ComputeFn,
    ) -> CachedReportEntry:
        computed_at = self._now()
        start_ns = time.perf_counter_ns()
        try:
            result = await compute(computed_at)
        except Exception:
            logger.warning(
                "Report computation failed for %s",
                fingerprint,
                extra={"fingerprint": fingerprint},
            )
            raise
        measured_ms = elapsed_ms_since(start_ns)
        compute_time_ms = (
            result.elapsed_ms if result.elapsed_ms is not None else measured_ms
        )

        entry = CachedReportEntry(
            payload=result.payload,
            compute_time_ms=compute_time_ms,
            computed_at=computed_at,
            expires_at=computed_at + timedelta(seconds=ttl_seconds),
        )
        try:
            await self._backend.put(fingerprint, entry, ttl_seconds)
        except Exception as exc:
            logger.warning(
                "Report cache write failed for %s: %s",
                fingerprint,
                exc,
                extra={"fingerprint": fingerprint},
            )

        logger.debug(
            "Report computed: %s in %dms",
            fingerprint,
            compute_time_ms,
            extra={
                "fingerprint": fingerprint,
                "cache": "miss",
                "compute_time_ms": compute_time_ms,
            },
        )
        return entry

    async def clear(self) -> None:
        await self._backend.clear()
