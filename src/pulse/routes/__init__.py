"""API routes."""

from fastapi import APIRouter

from pulse.routes.health import router as health_router
from pulse.routes.reports import router as reports_router

API_V1_PREFIX = "/api/v1"

v1_router = APIRouter(prefix=API_V1_PREFIX)
v1_router.include_router(reports_router)

# Each leaf router with the prefix it is served under, for handler lookup.
MOUNTED_ROUTERS: tuple[tuple[APIRouter, str], ...] = (
    (health_router, ""),
    (reports_router, API_V1_PREFIX),
)

__all__ = [
    "API_V1_PREFIX",
    "MOUNTED_ROUTERS",
    "health_router",
    "v1_router",
]
