"""Health check routes."""

import logging

from fastapi import APIRouter, Response, status
from sqlalchemy import text

from pulse.config import get_settings
from pulse.contracts import DependencyHealth, HealthResponse, ReadinessMetrics
from pulse.db.session import get_database
from pulse.services.redis import get_redis

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


async def _check_database_readiness() -> DependencyHealth:
    try:
        db = get_database()
    except RuntimeError as exc:
        return DependencyHealth(status="error", detail=str(exc))

    try:
        async with db.session() as session:
            await session.execute(text("SELECT 1"))
    except Exception as exc:
        logger.warning("Database readiness probe failed: %s", exc)
        return DependencyHealth(
            status="error",
            detail=f"Database readiness probe failed: {exc}",
        )

    return DependencyHealth(status="ok")


async def _check_redis_readiness(
    redis_url: str | None,
    *,
    required: bool,
) -> DependencyHealth:
    if not redis_url:
        return DependencyHealth(
            status="error" if required else "skipped",
            detail="PULSE_REDIS_URL not set",
        )

    try:
        redis_client = await get_redis()
    except RuntimeError as exc:
        return DependencyHealth(status="error", detail=str(exc))

    try:
        pong = await redis_client.ping()  # type: ignore[misc]
    except Exception as exc:
        logger.warning("Redis readiness probe failed: %s", exc)
        return DependencyHealth(status="error", detail=f"Redis ping failed: {exc}")

    if pong is False:
        return DependencyHealth(status="error", detail="Redis ping returned false")

    return DependencyHealth(status="ok")


async def _build_health_response() -> tuple[HealthResponse, bool]:
    settings = get_settings()
    cache_backend = settings.effective_report_cache_backend
    # The report cache cannot work without Redis once it is configured to use it.
    redis_required = settings.readiness_require_redis or cache_backend == "redis"

    db_readiness = await _check_database_readiness()
    redis_readiness = await _check_redis_readiness(
        settings.redis_url,
        required=redis_required,
    )
    if redis_required:
        redis_ready = redis_readiness.status == "ok"
    else:
        redis_ready = redis_readiness.status in {"ok", "skipped"}
    ready = db_readiness.status == "ok" and redis_ready

    payload = HealthResponse(
        status="ok" if ready else "degraded",
        version=settings.version,
        report_cache_backend=cache_backend,
        readiness=ReadinessMetrics(database=db_readiness, redis=redis_readiness),
    )
    return payload, ready


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """
    Liveness endpoint with dependency status details.

    Always returns 200 while the process is alive; see /ready for gating.
    """
    payload, _ = await _build_health_response()
    return payload


@router.get("/ready", response_model=HealthResponse)
async def readiness_check(response: Response) -> HealthResponse:
    """Readiness endpoint for load balancers and traffic gating."""
    payload, ready = await _build_health_response()
    if not ready:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    return payload
