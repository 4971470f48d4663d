"""Report contract payloads."""

from datetime import datetime

from pydantic import BaseModel, Field

from pulse.contracts.common import Period


class SlowRoute(BaseModel):
    """A route whose requests crossed the slow threshold in the window."""

    uri: str
    action: str | None = None
    request_count: int = Field(ge=0)
    slowest_duration: int = Field(ge=0)


class CacheInteractions(BaseModel):
    """Cache interaction totals across all keys."""

    count: int = Field(default=0, ge=0)
    hits: int = Field(default=0, ge=0)


class MonitoredCacheInteraction(BaseModel):
    """Cache interactions for the keys matched by one monitored pattern."""

    name: str
    pattern: str
    unique_keys: int = Field(default=0, ge=0)
    hits: int = Field(default=0, ge=0)
    count: int = Field(default=0, ge=0)


class SlowRoutesResponse(BaseModel):
    """Slow routes report.

    ``slow_routes`` is null until the report has been computed once for the
    period; an empty list means it was computed and nothing was slow.
    """

    period: Period
    slow_routes: list[SlowRoute] | None = None
    time: int = 0
    run_at: datetime | None = None
    initial_data_loaded: bool = False


class CacheReportResponse(BaseModel):
    """Cache interactions report, both views."""

    period: Period
    all_cache_interactions: CacheInteractions
    all_time: int = 0
    all_run_at: datetime | None = None
    monitored_cache_interactions: list[MonitoredCacheInteraction] = Field(
        default_factory=list
    )
    monitored_time: int = 0
    monitored_run_at: datetime | None = None


__all__ = [
    "CacheInteractions",
    "CacheReportResponse",
    "MonitoredCacheInteraction",
    "SlowRoute",
    "SlowRoutesResponse",
]
