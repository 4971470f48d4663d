"""Dashboard report services."""

from dataclasses import dataclass

from pulse.services.reports.cache_interactions import (
    CacheInteractionsReport,
    CacheReportResult,
)
from pulse.services.reports.slow_routes import SlowRoutesReport, SlowRoutesResult


@dataclass(frozen=True)
class Reports:
    """The report services wired for the running application."""

    slow_routes: SlowRoutesReport
    cache_interactions: CacheInteractionsReport


_reports: Reports | None = None


def register_reports(reports: Reports | None) -> None:
    """Store the active report services for route handlers."""
    global _reports
    _reports = reports


def get_reports() -> Reports:
    """Get the active report services."""
    if _reports is None:
        raise RuntimeError("Reports not initialized. Call register_reports() first.")
    return _reports


__all__ = [
    "CacheInteractionsReport",
    "CacheReportResult",
    "Reports",
    "SlowRoutesReport",
    "SlowRoutesResult",
    "get_reports",
    "register_reports",
]
