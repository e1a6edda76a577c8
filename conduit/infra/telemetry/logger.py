"""
Structured Logger
=================

Event-style logging for the send path. Every call names an event and passes
its data as keywords, and every record picks up the fields of the send it
belongs to (request id, connector class):

    log = get_logger(__name__)
    log.warning("retry_scheduled", attempt=2, delay_ms=200)

Send fields live in a single ContextVar, so concurrent ``asend`` calls on one
event loop each see their own. Records are rendered as one JSON object per
line, or as a ``|``-separated line for terminals.
"""

from __future__ import annotations

import json
import logging
import os
import sys
import traceback
from collections.abc import Mapping
from contextvars import ContextVar, Token
from datetime import UTC, datetime
from types import MappingProxyType
from typing import Any

# ── Send Context ───────────────────────────────────────────────────

_EMPTY: Mapping[str, str] = MappingProxyType({})

_send_context: ContextVar[Mapping[str, str]] = ContextVar("conduit_send_context", default=_EMPTY)

def set_request_context(
    *,
    request_id: str | None = None,
    connector: str | None = None,
) -> Token[Mapping[str, str]]:
    """
    Add fields to the current send context; None leaves a field as it was.

    Returns a token for ``reset_request_context``, which restores the context
    that was active before this call (so a send nested inside another keeps
    the outer send's fields once it finishes).
    """
    updates = {
        key: value
        for key, value in (("request_id", request_id), ("connector", connector))
        if value is not None
    }
    return _send_context.set(MappingProxyType({**_send_context.get(), **updates}))

def reset_request_context(token: Token[Mapping[str, str]]) -> None:
    _send_context.reset(token)

def clear_request_context() -> None:
    _send_context.set(_EMPTY)

def get_request_id() -> str | None:
    return _send_context.get().get("request_id")

# ── Formatting ─────────────────────────────────────────────────────

# Attributes every LogRecord carries; anything else came in through ``extra``.
_RECORD_ATTRS = frozenset(vars(logging.LogRecord("", 0, "", 0, "", (), None))) | {
    "message",
    "asctime",
    "taskName",
}

_SCALARS = (str, int, float, bool, type(None))

def _event_fields(record: logging.LogRecord) -> dict[str, Any]:
    fields = {}
    for key, value in vars(record).items():
        if key in _RECORD_ATTRS or key.startswith("_"):
            continue
        fields[key] = value if isinstance(value, _SCALARS) else str(value)
    return fields

class StructuredFormatter(logging.Formatter):
    """
    Renders records as JSON (default) or as a single human-readable line.

    JSON shape:
        {"timestamp", "level", "logger", "message", "line",
         "context": {...send fields}, "data": {...event fields},
         "exception": {"type", "message", "traceback"}}
    """

    def __init__(self, *, json_output: bool = True, include_traceback: bool = True):
        super().__init__()
        self.json_output = json_output
        self.include_traceback = include_traceback

    def format(self, record: logging.LogRecord) -> str:
        fields = _event_fields(record)
        context = dict(_send_context.get())
        if self.json_output:
            return self._render_json(record, context, fields)
        return self._render_line(record, context, fields)

    def _timestamp(self, record: logging.LogRecord) -> str:
        return datetime.fromtimestamp(record.created, tz=UTC).isoformat()

    def _render_json(
        self,
        record: logging.LogRecord,
        context: dict[str, str],
        fields: dict[str, Any],
    ) -> str:
        entry: dict[str, Any] = {
            "timestamp": self._timestamp(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "line": record.lineno,
            "context": context,
        }
        if fields:
            entry["data"] = fields
        if record.exc_info and self.include_traceback:
            exc_type, exc, tb = record.exc_info
            entry["exception"] = {
                "type": exc_type.__name__ if exc_type else None,
                "message": str(exc) if exc else None,
                "traceback": traceback.format_exception(exc_type, exc, tb) if tb else None,
            }
        return json.dumps(entry, default=str, ensure_ascii=False)

    def _render_line(
        self,
        record: logging.LogRecord,
        context: dict[str, str],
        fields: dict[str, Any],
    ) -> str:
        parts = [
            self._timestamp(record),
            f"{record.levelname:8s}",
            context.get("request_id", "-")[:8],
            f"{record.name}:{record.lineno}",
            record.getMessage(),
        ]
        if fields:
            parts.append(" ".join(f"{k}={v}" for k, v in fields.items()))
        line = " | ".join(parts)
        if record.exc_info and self.include_traceback:
            line += "\n" + "".join(traceback.format_exception(*record.exc_info)).rstrip()
        return line

# ── Loggers ────────────────────────────────────────────────────────

class StructuredLogger:
    """
    Thin wrapper over a stdlib logger that takes an event name plus keyword
    fields. Fields are attached to the record via ``extra``; they must not
    collide with LogRecord attributes (``name``, ``module``, ``message``...).
    """

    __slots__ = ("_fields", "_logger")

    def __init__(self, name: str, fields: Mapping[str, Any] | None = None):
        self._logger = logging.getLogger(name)
        self._fields = dict(fields or {})

    @property
    def name(self) -> str:
        return self._logger.name

    def _emit(
        self,
        level: int,
        event: str,
        fields: dict[str, Any],
        exc_info: BaseException | bool | None = None,
    ) -> None:
        if not self._logger.isEnabledFor(level):
            return
        # stacklevel 3 attributes the record to the caller of debug()/info()/...
        self._logger.log(
            level,
            event,
            extra={**self._fields, **fields},
            exc_info=exc_info,
            stacklevel=3,
        )

    def debug(self, event: str, **fields: Any) -> None:
        self._emit(logging.DEBUG, event, fields)

    def info(self, event: str, **fields: Any) -> None:
        self._emit(logging.INFO, event, fields)

    def warning(self, event: str, **fields: Any) -> None:
        self._emit(logging.WARNING, event, fields)

    def error(self, event: str, exc: BaseException | None = None, **fields: Any) -> None:
        self._emit(logging.ERROR, event, fields, exc_info=exc)

    def exception(self, event: str, **fields: Any) -> None:
        """Log at ERROR with the exception currently being handled."""
        self._emit(logging.ERROR, event, fields, exc_info=True)

    def bind(self, **fields: Any) -> BoundLogger:
        """Logger for the same name that adds ``fields`` to every event."""
        return BoundLogger(self.name, {**self._fields, **fields})

class BoundLogger(StructuredLogger):
    """A StructuredLogger carrying pre-bound event fields."""

    __slots__ = ()

# ── Setup ──────────────────────────────────────────────────────────

_HANDLER_NAME = "conduit.console"

def setup_logging(
    *,
    level: str = "INFO",
    json_output: bool | None = None,
) -> None:
    """
    Attach a console handler to the ``conduit`` logger. Calling it again
    while that handler is installed changes nothing.

    Args:
        level:       Level for ``conduit.*`` loggers
        json_output: JSON lines when True, human lines when False; None picks
                     human lines only when ENVIRONMENT is "development" (the
                     default)
    """
    root = logging.getLogger("conduit")
    if any(handler.get_name() == _HANDLER_NAME for handler in root.handlers):
        return

    if json_output is None:
        json_output = os.getenv("ENVIRONMENT", "development") != "development"

    handler = logging.StreamHandler(sys.stdout)
    handler.set_name(_HANDLER_NAME)
    handler.setFormatter(StructuredFormatter(json_output=json_output))
    root.addHandler(handler)
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    for noisy in ("httpx", "httpcore"):
        logging.getLogger(noisy).setLevel(logging.WARNING)

def get_logger(name: str) -> StructuredLogger:
    return StructuredLogger(name)
