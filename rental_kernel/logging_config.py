"""
Structured JSON logging for the rental back office.

Every line is one JSON object with a fixed envelope (``ts``, ``level``,
``logger``, ``message``), the record ids bound in ``LogContext`` (the
contract, payment or batch run being worked on), the ``extra`` fields of
the call, and for exceptions the kernel error ``code`` plus each
structured attribute as ``exc_<name>``.
"""

__all__ = [
    "StructuredFormatter",
    "LogContext",
    "get_logger",
    "configure_logging",
    "reset_logging",
]

import json
import logging
import sys
import threading
from contextvars import ContextVar, Token
from datetime import UTC, date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any
from uuid import UUID

# ---------------------------------------------------------------------------
# Context propagation
# ---------------------------------------------------------------------------

CONTEXT_FIELDS: tuple[str, ...] = (
    "correlation_id",
    "actor_id",
    "contract_id",
    "payment_id",
    "batch_run_id",
)

_CONTEXT: dict[str, ContextVar[str | None]] = {
    name: ContextVar(f"rental_log_{name}", default=None) for name in CONTEXT_FIELDS
}


def _check_fields(names) -> None:
    unknown = sorted(set(names) - set(CONTEXT_FIELDS))
    if unknown:
        raise ValueError(f"Unknown log context field(s): {unknown}")


class LogContext:
    """
    Record ids attached to every log line of the current task or thread.

    Services bind the contract or payment they work on; the batch runner
    binds its run id.  Values are stored as strings, so UUIDs can be
    passed directly.
    """

    @classmethod
    def set(cls, **fields: Any) -> None:
        """Set fields for the rest of the context; ``None`` values are ignored."""
        _check_fields(fields)
        for name, value in fields.items():
            if value is not None:
                _CONTEXT[name].set(str(value))

    @classmethod
    def get_all(cls) -> dict[str, str]:
        return {
            name: var.get() for name, var in _CONTEXT.items() if var.get() is not None
        }

    @classmethod
    def clear(cls) -> None:
        for var in _CONTEXT.values():
            var.set(None)

    @classmethod
    def bind(cls, **fields: Any) -> "_BoundContext":
        """Context manager: set ``fields`` on entry, restore previous values on exit."""
        _check_fields(fields)
        return _BoundContext(fields)


class _BoundContext:

    def __init__(self, fields: dict[str, Any]):
        self._fields = fields
        self._tokens: list[tuple[str, Token]] = []

    def __enter__(self) -> type[LogContext]:
        for name, value in self._fields.items():
            if value is not None:
                self._tokens.append((name, _CONTEXT[name].set(str(value))))
        return LogContext

    def __exit__(self, *exc: Any) -> None:
        while self._tokens:
            name, token = self._tokens.pop()
            _CONTEXT[name].reset(token)


# ---------------------------------------------------------------------------
# JSON Formatter
# ---------------------------------------------------------------------------

# Attributes every LogRecord carries; anything else on a record came from ``extra``
_RECORD_ATTRS: frozenset[str] = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", (), None))
) | {"message", "taskName"}


def _json_default(obj: Any) -> Any:
    if isinstance(obj, (UUID, Decimal)):
        return str(obj)
    if isinstance(obj, date):
        return obj.isoformat()
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, (set, frozenset)):
        return sorted(obj, key=str)
    return str(obj)


def _exception_fields(exc: BaseException) -> dict[str, Any]:
    fields: dict[str, Any] = {
        "exc_type": type(exc).__name__,
        "exc_message": str(exc),
    }
    code = getattr(exc, "code", None)
    if code is not None:
        fields["exc_code"] = code
    for name, value in vars(exc).items():
        if not name.startswith("_") and name != "code":
            fields[f"exc_{name}"] = value
    return fields


class StructuredFormatter(logging.Formatter):
    """One JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **LogContext.get_all(),
        }
        for key, value in vars(record).items():
            if key not in _RECORD_ATTRS:
                payload.setdefault(key, value)

        if record.exc_info and record.exc_info[1] is not None:
            payload.update(_exception_fields(record.exc_info[1]))
            payload["traceback"] = self.formatException(record.exc_info)

        return json.dumps(payload, default=_json_default)


# ---------------------------------------------------------------------------
# Logger factory and setup
# ---------------------------------------------------------------------------

_ROOT_LOGGER = "rental_kernel"

_configured = False
_lock = threading.Lock()


def get_logger(name: str) -> logging.Logger:
    """Child of the ``rental_kernel`` logger, e.g. ``get_logger("batch.runner")``."""
    return logging.getLogger(f"{_ROOT_LOGGER}.{name}")


def configure_logging(
    *,
    level: int = logging.INFO,
    stream: Any = None,
    handler: logging.Handler | None = None,
) -> None:
    """
    Attach one JSON handler to the ``rental_kernel`` logger.

    Only the first call has an effect; later calls return immediately.
    """
    global _configured
    with _lock:
        if _configured:
            return
        _configured = True

    root = logging.getLogger(_ROOT_LOGGER)
    root.setLevel(level)
    root.propagate = False

    target = handler if handler is not None else logging.StreamHandler(stream or sys.stderr)
    target.setFormatter(StructuredFormatter())
    root.addHandler(target)


def reset_logging() -> None:
    """Drop handlers and allow ``configure_logging`` again.  Tests only."""
    global _configured
    with _lock:
        _configured = False
    root = logging.getLogger(_ROOT_LOGGER)
    root.handlers.clear()
    root.setLevel(logging.WARNING)
