"""Structured JSON logging for the SwipeShop taste engine.

Every engine event is logged through :func:`log_event` as one JSON object per
line. Events raised inside one user operation (a feed load, a refill, a room
scan) share a correlation id so they can be stitched together downstream.
"""

from __future__ import annotations

import contextlib
import contextvars
import json
import logging
import os
import re
import uuid
from typing import Any, Dict, Iterator, Optional

_CORRELATION_ID: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar("correlation_id", default=None)

# Attributes every LogRecord carries; anything else on a record came from ``extra``.
_RECORD_ATTRIBUTES = frozenset(logging.makeLogRecord({}).__dict__) | {"message", "asctime", "taskName"}

# Shopper identity, room photos and free text never reach the log stream.
PRIVATE_FIELDS = frozenset(
    {"user_id", "email", "image", "image_base64", "description", "room_text", "purchase_url"}
)
_EMAIL = re.compile(r"[\w.\-]+@[\w.\-]+")
_REDACTED = "[redacted]"


def redact_for_log(value: Any) -> Any:
    """Return ``value`` with private fields, e-mail addresses and inline images masked."""

    if isinstance(value, dict):
        return {key: _REDACTED if key in PRIVATE_FIELDS else redact_for_log(item) for key, item in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [redact_for_log(item) for item in value]
    if isinstance(value, str):
        if value.startswith("data:image"):
            return "[redacted-image]"
        return _EMAIL.sub("[redacted-email]", value)
    if value is None or isinstance(value, (bool, int, float)):
        return value
    return str(value)


class JsonFormatter(logging.Formatter):
    """Render a record and its ``extra`` fields as a single JSON line."""

    def format(self, record: logging.LogRecord) -> str:  # noqa: D401
        message = super().format(record)
        payload: Dict[str, Any] = {
            "timestamp": self.formatTime(record, datefmt="%Y-%m-%dT%H:%M:%S%z"),
            "level": record.levelname,
            "logger": record.name,
            "event": getattr(record, "event", message),
            "message": message,
            "correlation_id": getattr(record, "correlation_id", None) or _CORRELATION_ID.get(),
        }
        extras = {key: value for key, value in record.__dict__.items() if key not in _RECORD_ATTRIBUTES}
        for key, value in redact_for_log(extras).items():
            payload.setdefault(key, value)
        return json.dumps(payload)


def configure_logging(level: int | str | None = None) -> None:
    """Route the root logger to stderr as JSON, at ``level`` or ``$LOG_LEVEL``."""

    handler = logging.StreamHandler()
    handler.setFormatter(JsonFormatter())
    logging.root.handlers.clear()
    logging.basicConfig(level=level or os.getenv("LOG_LEVEL", "INFO"), handlers=[handler])


def get_logger(name: str) -> logging.Logger:
    if not logging.getLogger().handlers:
        configure_logging()
    return logging.getLogger(name)


def current_correlation_id() -> str:
    """Return the active correlation id, starting one if none is set."""

    correlation_id = _CORRELATION_ID.get()
    if correlation_id is None:
        correlation_id = uuid.uuid4().hex
        _CORRELATION_ID.set(correlation_id)
    return correlation_id


def log_event(logger: logging.Logger, level: int, event: str, **fields: Any) -> None:
    """Log ``event`` with ``fields`` as structured, redacted extras."""

    correlation_id = fields.pop("correlation_id", None) or current_correlation_id()
    exc_info = fields.pop("exc_info", None)
    logger.log(
        level,
        event,
        exc_info=exc_info,
        extra={"event": event, "correlation_id": correlation_id, **redact_for_log(fields)},
    )


@contextlib.contextmanager
def operation_context(name: str, **attributes: Any) -> Iterator[str]:
    """Run one named engine operation under its own correlation id.

    A nested operation reuses the id of the operation that encloses it.
    """

    token = _CORRELATION_ID.set(_CORRELATION_ID.get() or uuid.uuid4().hex)
    try:
        correlation_id = _CORRELATION_ID.get()
        log_event(logging.getLogger(__name__), logging.DEBUG, "operation_started", operation=name, **attributes)
        yield correlation_id
    finally:
        _CORRELATION_ID.reset(token)


__all__ = [
    "PRIVATE_FIELDS",
    "JsonFormatter",
    "configure_logging",
    "current_correlation_id",
    "get_logger",
    "log_event",
    "operation_context",
    "redact_for_log",
]
