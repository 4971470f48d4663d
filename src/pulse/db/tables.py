"""SQLAlchemy tables for recorded Pulse events."""

from datetime import UTC, datetime

from sqlalchemy import Boolean, DateTime, Index, Integer, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all models."""

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)


class PulseRequest(Base):
    """
    A single handled HTTP request.

    Events are append-only; the slow routes report groups them by ``route``.
    """

    __tablename__ = "pulse_requests"

    date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(UTC),
    )

    # "METHOD /path/{param}" using the route template, not the raw URL.
    route: Mapped[str] = mapped_column(String(255), nullable=False)

    # Milliseconds
    duration: Mapped[int] = mapped_column(Integer, nullable=False)

    __table_args__ = (
        Index("ix_pulse_requests_date", "date"),
        Index("ix_pulse_requests_route_duration", "route", "duration"),
    )

    def __repr__(self) -> str:
        return (
            f"<PulseRequest(route={self.route!r}, duration={self.duration!r}, "
            f"date={self.date!r})>"
        )


class PulseCacheHit(Base):
    """A single cache lookup and whether it hit."""

    __tablename__ = "pulse_cache_hits"

    date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(UTC),
    )
    key: Mapped[str] = mapped_column(String(255), nullable=False)
    hit: Mapped[bool] = mapped_column(Boolean, nullable=False)

    __table_args__ = (
        Index("ix_pulse_cache_hits_date", "date"),
        Index("ix_pulse_cache_hits_key", "key"),
    )

    def __repr__(self) -> str:
        return f"<PulseCacheHit(key={self.key!r}, hit={self.hit!r}, date={self.date!r})>"
