"""Dashboard period selection: lookback windows and report cache TTLs."""

import logging
from datetime import datetime, timedelta

from pulse.contracts import Period

logger = logging.getLogger(__name__)

DEFAULT_PERIOD = Period.ONE_HOUR

# Longer windows scan more rows, so their results are kept for longer.
_LOOKBACK_HOURS: dict[Period, int] = {
    Period.ONE_HOUR: 1,
    Period.SIX_HOURS: 6,
    Period.TWENTY_FOUR_HOURS: 24,
    Period.SEVEN_DAYS: 168,
}
_CACHE_TTL_SECONDS: dict[Period, int] = {
    Period.ONE_HOUR: 5,
    Period.SIX_HOURS: 30,
    Period.TWENTY_FOUR_HOURS: 60,
    Period.SEVEN_DAYS: 600,
}


class InvalidPeriod(ValueError):
    """Raised when a period token is not one of the supported windows."""

    def __init__(self, token: object) -> None:
        supported = ", ".join(period.value for period in Period)
        super().__init__(f"Unsupported period {token!r}. Expected one of: {supported}.")
        self.token = token


def parse_period(token: str | Period) -> Period:
    """Strictly parse a period token."""
    try:
        return Period(token)
    except ValueError:
        raise InvalidPeriod(token) from None


def period_or_default(token: str | Period | None) -> Period:
    """Parse a user supplied token, falling back to the default window."""
    if token is None:
        return DEFAULT_PERIOD
    try:
        return parse_period(token)
    except InvalidPeriod:
        logger.debug("Unknown period %r, using %s", token, DEFAULT_PERIOD.value)
        return DEFAULT_PERIOD


def lookback_hours(period: Period) -> int:
    return _LOOKBACK_HOURS[period]


def cache_ttl_seconds(period: Period) -> int:
    return _CACHE_TTL_SECONDS[period]


def resolve_period(token: str | Period) -> tuple[int, int]:
    """Return ``(lookback_hours, cache_ttl_seconds)`` for a period token."""
    period = parse_period(token)
    return lookback_hours(period), cache_ttl_seconds(period)


def window_start(period: Period, now: datetime) -> datetime:
    """Inclusive lower bound of the period's window ending at ``now``."""
    return now - timedelta(hours=lookback_hours(period))
