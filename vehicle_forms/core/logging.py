"""JSON line logging for the CLI and API, with a per-request correlation id."""

from __future__ import annotations

import json
import logging
import sys
from collections.abc import Sequence
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import IO, Any

CORRELATION_ID_CTX: ContextVar[str] = ContextVar("correlation_id", default="")

# ``extra=`` keys copied into the JSON payload when present.
EXTRA_KEYS = (
    "field",
    "application_type",
    "degradation",
    "path",
    "method",
    "status_code",
)


class JsonLogFormatter(logging.Formatter):
    """One compact JSON object per record."""

    def __init__(self, extra_keys: Sequence[str] = EXTRA_KEYS) -> None:
        super().__init__()
        self._extra_keys = tuple(extra_keys)

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        correlation_id = CORRELATION_ID_CTX.get()
        if correlation_id:
            payload["correlation_id"] = correlation_id
        payload.update(
            {
                key: getattr(record, key)
                for key in self._extra_keys
                if getattr(record, key, None) not in (None, "")
            }
        )
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)


def setup_logging(level: str = "INFO", stream: IO[str] | None = None) -> None:
    """Route the root logger through ``JsonLogFormatter``.

    Logs go to stderr by default so the CLI's JSON summary on stdout stays
    machine-readable.
    """
    handler = logging.StreamHandler(stream=stream or sys.stderr)
    handler.setFormatter(JsonLogFormatter())

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    root_logger.addHandler(handler)


def set_correlation_id(correlation_id: str) -> None:
    CORRELATION_ID_CTX.set(correlation_id)
