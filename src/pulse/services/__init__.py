"""Report services layer."""

from pulse.services.periods import (
    DEFAULT_PERIOD,
    InvalidPeriod,
    parse_period,
    period_or_default,
    resolve_period,
)
from pulse.services.redis import close_redis, connect_redis, get_redis
from pulse.services.report_cache import (
    CachedReportEntry,
    Computed,
    MemoryReportCacheBackend,
    RedisReportCacheBackend,
    ReportCache,
)
from pulse.services.route_registry import RouteRegistry

__all__ = [
    # Periods
    "DEFAULT_PERIOD",
    "InvalidPeriod",
    "parse_period",
    "period_or_default",
    "resolve_period",
    # Redis
    "connect_redis",
    "get_redis",
    "close_redis",
    # Report cache
    "CachedReportEntry",
    "Computed",
    "MemoryReportCacheBackend",
    "RedisReportCacheBackend",
    "ReportCache",
    # Routes
    "RouteRegistry",
]
