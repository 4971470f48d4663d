"""Shared FastAPI dependencies for route handlers."""

from fastapi import HTTPException

from pulse.services.reports import Reports, get_reports


def require_reports() -> Reports:
    """FastAPI dependency that returns the report services or raises 503."""
    try:
        return get_reports()
    except RuntimeError:
        raise HTTPException(status_code=503, detail="Reports not available")
