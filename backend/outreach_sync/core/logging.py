import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, IO, Optional

SERVICE_NAME = "outreach_sync"

# Structured fields sync-layer call sites pass through ``extra=``
CONTEXT_FIELDS = ("actor_id", "role", "operation", "company_id", "status")


def _utc_timestamp(created: float) -> str:
    return (
        datetime.fromtimestamp(created, tz=timezone.utc)
        .isoformat(timespec="milliseconds")
        .replace("+00:00", "Z")
    )


class JsonFormatter(logging.Formatter):
    """One JSON object per line; context fields only when present on the record."""

    def format(self, record: logging.LogRecord) -> str:
        log_record: Dict[str, Any] = {
            "timestamp": _utc_timestamp(record.created),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "service": getattr(record, "service", SERVICE_NAME),
        }
        log_record.update(
            {name: getattr(record, name) for name in CONTEXT_FIELDS if hasattr(record, name)}
        )
        if record.exc_info:
            log_record["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(log_record, default=str)


class _JsonHandler(logging.StreamHandler):
    pass


def configure_logging(level: int | str | None = None, stream: Optional[IO[str]] = None) -> None:
    """
    Route the root logger through a single JSON handler.

    Repeated calls only adjust the level; handlers installed by other code
    are left in place.
    """
    if level is None:
        from .config import get_settings

        level = get_settings().LOG_LEVEL

    root = logging.getLogger()
    root.setLevel(level)
    if any(isinstance(h, _JsonHandler) for h in root.handlers):
        return

    handler = _JsonHandler(stream or sys.stdout)
    handler.setFormatter(JsonFormatter())
    root.addHandler(handler)
