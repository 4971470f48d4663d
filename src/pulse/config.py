import re
from dataclasses import dataclass
from enum import StrEnum
from functools import lru_cache
from typing import Literal

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from pulse._version import __version__


class Environments(StrEnum):
    DEV = "dev"
    PROD = "prod"

    def is_production(self) -> bool:
        return self == self.PROD

    def is_development(self) -> bool:
        return self == self.DEV


class MonitoredKeyPattern(BaseModel):
    """A named regular expression bucketing cache keys in the cache report."""

    model_config = ConfigDict(frozen=True)

    name: str
    pattern: str

    @field_validator("pattern")
    @classmethod
    def _pattern_must_compile(cls, value: str) -> str:
        try:
            re.compile(value)
        except re.error as exc:
            raise ValueError(f"Invalid cache key pattern {value!r}: {exc}") from exc
        return value


@dataclass(frozen=True)
class ReportSettings:
    """Configuration consumed by the report aggregation services."""

    slow_endpoint_threshold: int
    monitored_keys: tuple[MonitoredKeyPattern, ...] = ()


def _coerce_cache_keys(value: object) -> object:
    """
    Accept the monitored cache key formats supported in configuration.

    - ``{"^api:": "API"}``: regex to display name, in mapping order
    - ``["^api:"]``: a bare regex is its own display name
    - ``[{"name": "API", "pattern": "^api:"}]``
    """
    if isinstance(value, dict):
        return [{"name": name, "pattern": pattern} for pattern, name in value.items()]
    if isinstance(value, (list, tuple)):
        return [
            {"name": item, "pattern": item} if isinstance(item, str) else item
            for item in value
        ]
    return value


class Settings(BaseSettings):
    """Server configuration."""

    model_config = SettingsConfigDict(
        env_prefix="PULSE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    redis_url: str | None = None
    database_url: str | None = None
    env: Environments = Environments.DEV
    host: str = "0.0.0.0"
    port: int = 8080
    debug: bool = False
    log_format: Literal["text", "json"] = "text"
    cors_allow_origins: str = "*"
    readiness_require_redis: bool = False

    # Where computed reports are memoized. "auto" uses Redis when redis_url is set.
    report_cache_backend: Literal["auto", "memory", "redis"] = "auto"

    # Requests at or above this duration (ms) count towards the slow routes report.
    slow_endpoint_threshold: int = 1000

    # Cache key patterns shown in the monitored cache interactions report.
    cache_keys: list[MonitoredKeyPattern] = []

    version: str = __version__

    @field_validator("env", mode="before")
    @classmethod
    def _normalize_env_aliases(cls, value: object) -> object:
        """Allow long-form env aliases."""
        if isinstance(value, str):
            normalized = value.strip().lower()
            aliases = {
                "development": Environments.DEV.value,
                "production": Environments.PROD.value,
            }
            return aliases.get(normalized, normalized)
        return value

    @field_validator("cache_keys", mode="before")
    @classmethod
    def _normalize_cache_keys(cls, value: object) -> object:
        return _coerce_cache_keys(value)

    @field_validator("cache_keys")
    @classmethod
    def _unique_cache_key_names(
        cls, value: list[MonitoredKeyPattern]
    ) -> list[MonitoredKeyPattern]:
        seen: set[str] = set()
        for item in value:
            if item.name in seen:
                raise ValueError(f"Duplicate cache key name {item.name!r}")
            seen.add(item.name)
        return value

    @field_validator("slow_endpoint_threshold")
    @classmethod
    def _non_negative_threshold(cls, value: int) -> int:
        if value < 0:
            raise ValueError("slow_endpoint_threshold must be >= 0")
        return value

    @property
    def is_production(self) -> bool:
        return self.env.is_production()

    @property
    def is_development(self) -> bool:
        return self.env.is_development()

    @property
    def effective_database_url(self) -> str:
        """Get database URL, defaulting to SQLite if not configured."""
        if self.database_url:
            return self.database_url
        return "sqlite+aiosqlite:///pulse.db"

    @property
    def is_sqlite(self) -> bool:
        """Check if using SQLite database."""
        return self.effective_database_url.startswith("sqlite")

    @property
    def cors_allow_origins_list(self) -> list[str]:
        """Parse comma-delimited CORS origins into a list."""
        origins = [origin.strip() for origin in self.cors_allow_origins.split(",")]
        cleaned = [origin for origin in origins if origin]
        return cleaned or ["*"]

    @property
    def effective_report_cache_backend(self) -> Literal["memory", "redis"]:
        if self.report_cache_backend == "auto":
            return "redis" if self.redis_url else "memory"
        return self.report_cache_backend

    @property
    def report_settings(self) -> ReportSettings:
        return ReportSettings(
            slow_endpoint_threshold=self.slow_endpoint_threshold,
            monitored_keys=tuple(self.cache_keys),
        )


@lru_cache
def get_settings() -> Settings:
    return Settings()
