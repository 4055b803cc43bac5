"""Observability helpers for instrumenting collaborator calls."""

from __future__ import annotations

import inspect
import logging
import time
from functools import wraps
from typing import Any, Callable, TypeVar

from swipe_app.logging_config import current_correlation_id, get_logger, log_event

LOGGER = get_logger(__name__)
F = TypeVar("F", bound=Callable[..., Any])


def _preview_args(args: tuple, kwargs: dict, max_items: int = 6) -> dict:
    """Summarise call arguments for the start event; bytes are reported by size only."""

    preview: dict = {}
    named = [(f"arg{idx}", value) for idx, value in enumerate(args)] + list(kwargs.items())
    for idx, (key, value) in enumerate(named):
        if idx >= max_items:
            preview["truncated"] = True
            break
        if isinstance(value, (bytes, bytearray)):
            value = f"<{len(value)} bytes>"
        elif not isinstance(value, (str, int, float, bool, list, tuple, dict, type(None))):
            value = type(value).__name__
        preview[key] = value
    return preview


class _ToolCall:
    """Start/complete/failure events for one invocation of a collaborator call."""

    def __init__(self, tool_name: str, args: tuple, kwargs: dict) -> None:
        self.tool_name = tool_name
        self.correlation_id = current_correlation_id()
        self.start = time.perf_counter()
        log_event(
            LOGGER,
            logging.INFO,
            "tool_call_started",
            tool=tool_name,
            correlation_id=self.correlation_id,
            call_args=_preview_args(args, kwargs),
        )

    def _duration_ms(self) -> float:
        return round((time.perf_counter() - self.start) * 1000, 2)

    def failed(self) -> None:
        log_event(
            LOGGER,
            logging.ERROR,
            "tool_call_failed",
            tool=self.tool_name,
            correlation_id=self.correlation_id,
            duration_ms=self._duration_ms(),
            exc_info=True,
        )

    def completed(self) -> None:
        log_event(
            LOGGER,
            logging.INFO,
            "tool_call_completed",
            tool=self.tool_name,
            correlation_id=self.correlation_id,
            duration_ms=self._duration_ms(),
        )


def instrument_tool(tool_name: str) -> Callable[[F], F]:
    """Wrap a sync or async callable so each call emits structured start/end logs.

    Decorated callables are methods, so the first positional argument is left
    out of the argument preview. Exceptions are logged with their traceback and
    re-raised unchanged.
    """

    def decorator(func: F) -> F:
        if inspect.iscoroutinefunction(func):

            @wraps(func)
            async def async_wrapper(*args: Any, **kwargs: Any) -> Any:
                call = _ToolCall(tool_name, args[1:], kwargs)
                try:
                    result = await func(*args, **kwargs)
                except Exception:
                    call.failed()
                    raise
                call.completed()
                return result

            return async_wrapper  # type: ignore[return-value]

        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            call = _ToolCall(tool_name, args[1:], kwargs)
            try:
                result = func(*args, **kwargs)
            except Exception:
                call.failed()
                raise
            call.completed()
            return result

        return wrapper  # type: ignore[return-value]

    return decorator


__all__ = ["instrument_tool"]
