"""Database module for the Pulse event store."""

from pulse.db.repositories import CacheHitRepository, RequestRepository, StoreUnavailable
from pulse.db.session import Database, get_database, init_database
from pulse.db.tables import Base, PulseCacheHit, PulseRequest

__all__ = [
    # Models
    "Base",
    "PulseCacheHit",
    "PulseRequest",
    # Database
    "Database",
    "get_database",
    "init_database",
    # Repositories
    "CacheHitRepository",
    "RequestRepository",
    "StoreUnavailable",
]
