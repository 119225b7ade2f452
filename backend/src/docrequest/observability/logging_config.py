"""Logging setup: one stdout handler, JSON or plain text, request ID on every record.

Anything passed through ``extra=`` lands in the JSON document. Keys that could
carry a portal token are masked before output.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict

from .request_id import get_request_id

# Attributes every LogRecord has; everything else came from extra=
_RESERVED_ATTRS = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", None, None)).keys()
) | {"message", "asctime", "request_id"}

REDACTED_KEYS = frozenset({"token", "raw_token", "authorization", "password", "secret"})

NOISY_LOGGERS = ("uvicorn.access", "sqlalchemy.engine", "botocore", "boto3", "urllib3")


class RequestIDFilter(logging.Filter):

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = get_request_id()
        return True


class JSONFormatter(logging.Formatter):
    """One JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc)
            .isoformat(timespec="milliseconds")
            .replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "request_id": getattr(record, "request_id", None) or get_request_id(),
            "message": record.getMessage(),
        }
        entry.update(_extra_fields(record))

        if record.exc_info:
            entry["error"] = str(record.exc_info[1])
            entry["traceback"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str)


def _extra_fields(record: logging.LogRecord) -> Dict[str, Any]:
    fields = {}
    for key, value in vars(record).items():
        if key in _RESERVED_ATTRS or key.startswith("_"):
            continue
        fields[key] = "[REDACTED]" if key.lower() in REDACTED_KEYS else value
    return fields


def configure_logging(level: str = "INFO", json_format: bool = True) -> None:
    """Replace root handlers with a single stdout handler.

    Args:
        level: Root log level name
        json_format: JSON lines when True, a readable one-line format otherwise
    """
    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        numeric_level = logging.INFO

    handler = logging.StreamHandler(sys.stdout)
    handler.addFilter(RequestIDFilter())
    handler.setFormatter(
        JSONFormatter()
        if json_format
        else logging.Formatter("%(asctime)s %(levelname)-8s [%(request_id)s] %(name)s: %(message)s")
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(numeric_level)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
