"""Pulse reports API server."""

import logging
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from pulse.config import Settings, get_settings
from pulse.db.session import Database, get_database, init_database
from pulse.logging import configure_logging
from pulse.middleware import RequestIDMiddleware
from pulse.routes import MOUNTED_ROUTERS, health_router, v1_router
from pulse.services.redis import close_redis, connect_redis
from pulse.services.report_cache import (
    MemoryReportCacheBackend,
    RedisReportCacheBackend,
    ReportCache,
)
from pulse.services.reports import (
    CacheInteractionsReport,
    Reports,
    SlowRoutesReport,
    register_reports,
)
from pulse.services.route_registry import RouteRegistry

# Configure logging (supports PULSE_LOG_FORMAT=json for structured output).
_boot_settings = get_settings()
configure_logging(log_format=_boot_settings.log_format, debug=_boot_settings.debug)
logger = logging.getLogger(__name__)

REQUIRED_TABLES = {"pulse_requests", "pulse_cache_hits"}


class AppResponse(BaseModel):
    """App response."""

    name: str = "Pulse Reports API"
    version: str = get_settings().version
    docs: str = "/docs"


def build_report_cache(settings: Settings, redis_client: Any | None) -> ReportCache:
    """Pick the report cache backend for the configured environment."""
    if settings.effective_report_cache_backend == "redis":
        if redis_client is None:
            raise RuntimeError(
                "PULSE_REPORT_CACHE_BACKEND=redis requires PULSE_REDIS_URL to be set."
            )
        return ReportCache(RedisReportCacheBackend(redis_client))
    return ReportCache(MemoryReportCacheBackend())


def build_reports(
    settings: Settings,
    *,
    database: Database,
    cache: ReportCache,
    routes: RouteRegistry,
) -> Reports:
    report_settings = settings.report_settings
    return Reports(
        slow_routes=SlowRoutesReport(
            database=database,
            cache=cache,
            settings=report_settings,
            routes=routes,
        ),
        cache_interactions=CacheInteractionsReport(
            database=database,
            cache=cache,
            settings=report_settings,
        ),
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""

    logger.info("Starting Pulse reports server...")

    settings = get_settings()

    db = init_database(settings.effective_database_url, echo=settings.debug)
    await db.connect()

    if settings.is_sqlite:
        logger.info("Database connected (SQLite)")
        await db.create_tables()
    else:
        logger.info("Database connected")
        missing_tables = await db.get_missing_tables(REQUIRED_TABLES)
        if missing_tables:
            raise RuntimeError(
                "Database schema is missing required tables: "
                + ", ".join(missing_tables)
            )

    redis_client = None
    if settings.redis_url:
        redis_client = await connect_redis(settings.redis_url)
        logger.info("Redis connected")
    else:
        logger.info("Redis not configured (PULSE_REDIS_URL not set)")

    cache = build_report_cache(settings, redis_client)
    logger.info(
        "Report cache backend: %s", settings.effective_report_cache_backend
    )

    routes = RouteRegistry.from_routers(MOUNTED_ROUTERS)
    routes.add_routes(app.routes)
    register_reports(
        build_reports(settings, database=db, cache=cache, routes=routes)
    )
    if settings.cache_keys:
        logger.info("Monitoring %d cache key patterns", len(settings.cache_keys))

    yield

    logger.info("Shutting down Pulse reports server...")

    register_reports(None)

    if redis_client:
        await close_redis()
        logger.info("Redis disconnected")

    db = get_database()
    await db.disconnect()
    logger.info("Database disconnected")


app_settings = get_settings()
app = FastAPI(
    title="Pulse Reports API",
    description="Slow route and cache interaction reports",
    version=app_settings.version,
    lifespan=lifespan,
)

app.add_middleware(RequestIDMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=app_settings.cors_allow_origins_list,
    allow_credentials=False,
    allow_methods=["GET"],
    allow_headers=["*"],
)

app.include_router(health_router)
app.include_router(v1_router)


@app.get("/")
async def root() -> AppResponse:
    """Root endpoint."""
    return AppResponse()


def main():
    """Run the server."""
    import uvicorn

    settings = get_settings()

    uvicorn.run(
        "pulse.main:app",
        host=settings.host,
        port=settings.port,
    )


if __name__ == "__main__":
    main()
