"""Health and readiness contract payloads."""

from pydantic import BaseModel, Field


class DependencyHealth(BaseModel):
    """Readiness status for a dependency."""

    status: str = "ok"
    detail: str | None = None


class ReadinessMetrics(BaseModel):
    """Dependency readiness states surfaced by health endpoints."""

    database: DependencyHealth = Field(default_factory=DependencyHealth)
    redis: DependencyHealth = Field(
        default_factory=lambda: DependencyHealth(
            status="skipped",
            detail="PULSE_REDIS_URL not set",
        )
    )


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = "ok"
    version: str
    report_cache_backend: str
    readiness: ReadinessMetrics = Field(default_factory=ReadinessMetrics)


__all__ = [
    "DependencyHealth",
    "HealthResponse",
    "ReadinessMetrics",
]
