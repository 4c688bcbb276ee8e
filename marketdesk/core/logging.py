"""Logging setup for the local service.

One stdout handler on the root logger, formatted as JSON lines or as plain
text (``LOG_FORMAT``). Records carry the API request id when one is active,
and provider credentials are masked before anything is written.
"""

from __future__ import annotations

import json
import logging
import re
import sys
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Optional

from .config import settings


request_id_var: ContextVar[Optional[str]] = ContextVar("request_id", default=None)

# Libraries that log every HTTP call or job tick at INFO
QUIET_LOGGERS = ("uvicorn.access", "httpx", "httpcore", "yfinance", "apscheduler")

_SECRET_NAMES = ("apikey", "api_key", "token", "secret", "authorization", "password")
_SECRET_VALUE = re.compile(
    r"""(?P<key>["']?(?:%s)["']?\s*[=:]\s*["']?)[^\s,&'"}\]]+""" % "|".join(_SECRET_NAMES),
    re.IGNORECASE,
)


def redact(text: str) -> str:
    """Mask the value after any credential-like key (``apikey=...``, ``"token": ...``)."""
    return _SECRET_VALUE.sub(r"\g<key>[REDACTED]", text)


def _timestamp() -> datetime:
    return datetime.now(timezone.utc)


class StructuredFormatter(logging.Formatter):
    """One JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": _timestamp().isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        request_id = request_id_var.get()
        if request_id:
            entry["request_id"] = request_id
        entry.update(getattr(record, "extra_fields", {}))
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        if settings.debug:
            entry["location"] = f"{record.pathname}:{record.lineno}"
        return json.dumps(entry, default=str)


class TextFormatter(logging.Formatter):
    """``2024-11-05 14:03:11 INFO     [1a2b3c4d] marketdesk.x: message``"""

    def format(self, record: logging.LogRecord) -> str:
        request_id = request_id_var.get()
        prefix = f"[{request_id[:8]}] " if request_id else ""
        line = (
            f"{_timestamp():%Y-%m-%d %H:%M:%S} {record.levelname:8} "
            f"{prefix}{record.name}: {record.getMessage()}"
        )
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


class SensitiveDataFilter(logging.Filter):
    """Masks credentials in the rendered message; never drops a record."""

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        masked = redact(message)
        if masked != message:
            record.msg = masked
            record.args = None
        return True


def setup_logging() -> None:
    """Install the stdout handler on the root logger (idempotent)."""
    level = getattr(logging, settings.log_level)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(
        StructuredFormatter() if settings.log_format == "json" else TextFormatter()
    )
    handler.addFilter(SensitiveDataFilter())

    root = logging.getLogger()
    root.setLevel(level)
    for existing in root.handlers[:]:
        root.removeHandler(existing)
    root.addHandler(handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Logger under the ``marketdesk`` namespace."""
    return logging.getLogger(f"marketdesk.{name}")
