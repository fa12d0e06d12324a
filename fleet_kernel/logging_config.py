"""
Structured logging (``fleet_kernel.logging_config``).

Every fleet_kernel log record is rendered as one JSON object per line.
Operation-scoped fields (correlation id, operation name, trip id, actor)
live in a ContextVar so they follow a request across services and threads
without being passed around; ``LogContext.bind`` scopes them to a block.

Record layout::

    {"ts": ..., "level": ..., "logger": ..., "message": "trip_created",
     "correlation_id": ..., "operation": ..., "trip_id": ...,
     <extra fields>, <exc_* fields>, "traceback": ...}

Messages are short event names (``trip_finalized``); the detail goes in
``extra``.
"""

import json
import logging
import sys
import threading
from collections.abc import Mapping
from contextvars import ContextVar
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from types import MappingProxyType
from typing import Any

__all__ = [
    "LogContext",
    "StructuredFormatter",
    "configure_logging",
    "get_logger",
    "reset_logging",
]

LOGGER_NAMESPACE = "fleet_kernel"

_EMPTY: Mapping[str, str] = MappingProxyType({})

_context: ContextVar[Mapping[str, str]] = ContextVar(
    "fleet_log_context", default=_EMPTY
)


class LogContext:
    """Operation-scoped log fields, safe across threads and tasks."""

    FIELDS = ("correlation_id", "operation", "trip_id", "actor_id")

    @classmethod
    def _merged(cls, fields: dict[str, str | None]) -> Mapping[str, str]:
        unknown = set(fields) - set(cls.FIELDS)
        if unknown:
            raise TypeError(f"unknown log context field(s): {sorted(unknown)}")
        merged = dict(_context.get())
        merged.update({k: v for k, v in fields.items() if v is not None})
        return MappingProxyType(merged)

    @classmethod
    def set(cls, **fields: str | None) -> None:
        """Set fields for the rest of the current context; None leaves a field as is."""
        _context.set(cls._merged(fields))

    @classmethod
    def get_all(cls) -> dict[str, str]:
        return dict(_context.get())

    @classmethod
    def clear(cls) -> None:
        _context.set(_EMPTY)

    @classmethod
    def bind(cls, **fields: str | None) -> "_Binding":
        """
        Set fields for a ``with`` block only.

        Usage:
            with LogContext.bind(trip_id=str(trip.id)):
                logger.info("trip_finalized")
        """
        return _Binding(cls._merged(fields))


class _Binding:
    def __init__(self, fields: Mapping[str, str]):
        self._fields = fields
        self._token = None

    def __enter__(self) -> type[LogContext]:
        self._token = _context.set(self._fields)
        return LogContext

    def __exit__(self, *exc: Any) -> None:
        _context.reset(self._token)


def _json_default(obj: Any) -> Any:
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, Decimal):
        return str(obj)
    if isinstance(obj, datetime):
        return obj.isoformat()
    return str(obj)


# Attributes every LogRecord has; anything else came in through ``extra``
_RECORD_ATTRS = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", (), None))
) | {"message", "asctime", "taskName"}


class StructuredFormatter(logging.Formatter):
    """One JSON line per record."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **LogContext.get_all(),
        }
        entry.update(
            (key, value)
            for key, value in vars(record).items()
            if key not in _RECORD_ATTRS and key not in entry
        )
        if record.exc_info and record.exc_info[1] is not None:
            entry.update(self._exception_fields(record.exc_info[1]))
            entry["traceback"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=_json_default)

    @staticmethod
    def _exception_fields(exc: BaseException) -> dict[str, Any]:
        fields: dict[str, Any] = {
            "exc_type": type(exc).__name__,
            "exc_message": str(exc),
        }
        code = getattr(exc, "code", None)
        if code is not None:
            fields["exc_code"] = code
        kind = getattr(exc, "kind", None)
        if kind is not None:
            fields["exc_kind"] = kind
        # FleetKernelError exposes its structured attributes as ``context``
        context = getattr(exc, "context", None)
        if isinstance(context, Mapping):
            fields.update((f"exc_{k}", v) for k, v in context.items())
        return fields


def get_logger(name: str) -> logging.Logger:
    """Logger named ``fleet_kernel.<name>``."""
    return logging.getLogger(f"{LOGGER_NAMESPACE}.{name}")


_state_lock = threading.Lock()
_handler: logging.Handler | None = None


def configure_logging(
    *,
    level: int | str = logging.INFO,
    stream: Any = None,
    handler: logging.Handler | None = None,
) -> None:
    """
    Attach a JSON handler to the ``fleet_kernel`` logger.

    Only the first call has an effect until ``reset_logging()``.  Records do
    not propagate to the root logger.

    Args:
        level: Level number or name ("debug", "INFO", ...).
        stream: Where the default handler writes; stderr when None.
        handler: Use this handler instead of a StreamHandler.
    """
    global _handler
    with _state_lock:
        if _handler is not None:
            return
        _handler = (
            handler if handler is not None
            else logging.StreamHandler(stream or sys.stderr)
        )

    _handler.setFormatter(StructuredFormatter())
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())

    namespace = logging.getLogger(LOGGER_NAMESPACE)
    namespace.setLevel(level)
    namespace.propagate = False
    namespace.addHandler(_handler)


def reset_logging() -> None:
    """Detach every handler and forget configuration. For tests."""
    global _handler
    with _state_lock:
        _handler = None
    namespace = logging.getLogger(LOGGER_NAMESPACE)
    for h in list(namespace.handlers):
        namespace.removeHandler(h)
    namespace.setLevel(logging.WARNING)
