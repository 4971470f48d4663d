"""Report routes - slow routes and cache interactions."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query

from pulse.contracts import (
    CacheReportResponse,
    ErrorResponse,
    SlowRoutesResponse,
)
from pulse.db.repositories import StoreUnavailable
from pulse.routes.depends import require_reports
from pulse.services.periods import period_or_default
from pulse.services.reports import Reports

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/reports", tags=["reports"])

_UNAVAILABLE = {503: {"model": ErrorResponse, "description": "Event store not available."}}


@router.get(
    "/slow-routes",
    response_model=SlowRoutesResponse,
    responses=_UNAVAILABLE,
)
async def get_slow_routes(
    reports: Annotated[Reports, Depends(require_reports)],
    period: Annotated[str | None, Query()] = None,
    load: Annotated[bool, Query()] = True,
) -> SlowRoutesResponse:
    """
    Routes whose requests crossed the slow threshold in the period.

    With ``load=false`` only the cached report is returned, so a first
    render can show a loading state while a second request computes it.
    """
    resolved = period_or_default(period)
    try:
        if load:
            result = await reports.slow_routes.load(resolved)
        else:
            result = await reports.slow_routes.get(resolved)
    except StoreUnavailable as exc:
        logger.warning("Slow routes report unavailable: %s", exc)
        raise HTTPException(status_code=503, detail=str(exc)) from exc

    return SlowRoutesResponse(
        period=resolved,
        slow_routes=result.slow_routes,
        time=result.time,
        run_at=result.run_at,
        initial_data_loaded=result.initial_data_loaded,
    )


@router.get(
    "/cache",
    response_model=CacheReportResponse,
    responses=_UNAVAILABLE,
)
async def get_cache_report(
    reports: Annotated[Reports, Depends(require_reports)],
    period: Annotated[str | None, Query()] = None,
) -> CacheReportResponse:
    """Cache interactions overall and per monitored key pattern."""
    resolved = period_or_default(period)
    try:
        result = await reports.cache_interactions.get(resolved)
    except StoreUnavailable as exc:
        logger.warning("Cache report unavailable: %s", exc)
        raise HTTPException(status_code=503, detail=str(exc)) from exc

    return CacheReportResponse(
        period=resolved,
        all_cache_interactions=result.all_cache_interactions,
        all_time=result.all_time,
        all_run_at=result.all_run_at,
        monitored_cache_interactions=result.monitored_cache_interactions,
        monitored_time=result.monitored_time,
        monitored_run_at=result.monitored_run_at,
    )
