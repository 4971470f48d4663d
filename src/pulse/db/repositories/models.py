"""Typed repository-layer request/response models."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator


def as_utc(value: datetime) -> datetime:
    """Express ``value`` in UTC; naive datetimes are taken to be UTC already.

    SQLite stores the wall-clock part only, so every timestamp written or
    compared against the event tables goes through here first.
    """
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


@dataclass(frozen=True)
class SlowRouteRow:
    """Per-route aggregate of requests above the slow threshold."""

    route: str
    count: int
    slowest: int


@dataclass(frozen=True)
class CacheHitTotals:
    """Window-wide cache interaction totals."""

    count: int
    hits: int


@dataclass(frozen=True)
class CacheKeyInteractionRow:
    """Per-key cache interaction aggregate."""

    key: str
    count: int
    hits: int


class _EventRecordCreate(BaseModel):
    model_config = ConfigDict(extra="ignore")

    date: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @field_validator("date")
    @classmethod
    def _date_in_utc(cls, value: datetime) -> datetime:
        return as_utc(value)


class RequestRecordCreate(_EventRecordCreate):
    """Validated payload for recording a request event."""

    route: str = Field(min_length=1, max_length=255)
    duration: int = Field(ge=0)


class CacheHitRecordCreate(_EventRecordCreate):
    """Validated payload for recording a cache interaction event."""

    key: str = Field(min_length=1, max_length=255)
    hit: bool
