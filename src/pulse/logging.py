"""Structured logging configuration."""

import json
import logging
from datetime import UTC, datetime

from pulse.middleware import RequestIDFilter

# Report context passed through ``logger.*(..., extra={...})``.
_REPORT_FIELDS = ("fingerprint", "period", "compute_time_ms", "cache")

# Libraries that are chatty at INFO and only useful when debugging queries.
_QUIET_LOGGERS = ("aiosqlite", "sqlalchemy.engine", "uvicorn.access")


class JSONFormatter(logging.Formatter):
    """One JSON object per record, for log shippers."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, object] = {
            "timestamp": datetime.fromtimestamp(record.created, UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for field in _REPORT_FIELDS:
            value = getattr(record, field, None)
            if value is not None:
                entry[field] = value
        request_id = getattr(record, "request_id", None)
        if request_id not in (None, "-"):
            entry["request_id"] = request_id
        if record.exc_info and record.exc_info[1]:
            entry["error"] = {
                "type": type(record.exc_info[1]).__name__,
                "message": str(record.exc_info[1]),
                "stacktrace": self.formatException(record.exc_info),
            }
        return json.dumps(entry, default=str)


def configure_logging(*, log_format: str = "text", debug: bool = False) -> None:
    """Install a single stream handler on the root logger."""
    level = logging.DEBUG if debug else logging.INFO
    root = logging.getLogger()
    root.setLevel(level)

    for handler in root.handlers[:]:
        root.removeHandler(handler)

    handler = logging.StreamHandler()
    handler.setLevel(level)
    handler.addFilter(RequestIDFilter())

    if log_format == "json":
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(
            logging.Formatter(
                "%(asctime)s - %(name)s - %(levelname)s - [%(request_id)s] %(message)s"
            )
        )

    root.addHandler(handler)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.DEBUG if debug else logging.WARNING)
