"""API contract models."""

from pulse.contracts.common import ErrorResponse, Period
from pulse.contracts.health import DependencyHealth, HealthResponse, ReadinessMetrics
from pulse.contracts.reports import (
    CacheInteractions,
    CacheReportResponse,
    MonitoredCacheInteraction,
    SlowRoute,
    SlowRoutesResponse,
)

__all__ = [
    # Common
    "ErrorResponse",
    "Period",
    # Health
    "DependencyHealth",
    "HealthResponse",
    "ReadinessMetrics",
    # Reports
    "CacheInteractions",
    "CacheReportResponse",
    "MonitoredCacheInteraction",
    "SlowRoute",
    "SlowRoutesResponse",
]
