from pulse.db.repositories.base import EventRepository, StoreUnavailable
from pulse.db.repositories.cache_hits_repository import CacheHitRepository
from pulse.db.repositories.models import (
    CacheHitRecordCreate,
    CacheHitTotals,
    CacheKeyInteractionRow,
    RequestRecordCreate,
    SlowRouteRow,
)
from pulse.db.repositories.requests_repository import RequestRepository

__all__ = [
    "CacheHitRecordCreate",
    "CacheHitRepository",
    "CacheHitTotals",
    "CacheKeyInteractionRow",
    "EventRepository",
    "RequestRecordCreate",
    "RequestRepository",
    "SlowRouteRow",
    "StoreUnavailable",
]
