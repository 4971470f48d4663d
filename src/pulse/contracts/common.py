"""Shared contract enums and error payloads."""

from enum import StrEnum

from pydantic import BaseModel


class Period(StrEnum):
    """Lookback window selectable on the dashboard."""

    ONE_HOUR = "1_hour"
    SIX_HOURS = "6_hours"
    TWENTY_FOUR_HOURS = "24_hours"
    SEVEN_DAYS = "7_days"


class ErrorResponse(BaseModel):
    """Standard API error payload."""

    detail: str


__all__ = [
    "ErrorResponse",
    "Period",
]
