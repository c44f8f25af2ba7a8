"""
recon_kernel.logging_config -- JSON-line logging for reconciliation runs.

Responsibility:
    Every log line is one JSON object: timestamp, level, logger, the
    snake_case event name as ``message``, the reconciliation scope bound in
    LogContext (period, ledger batch, actor, correlation and trace ids) and
    the event's own ``extra`` fields.  Exceptions are flattened into
    ``exc_*`` fields so a ReconKernelError's code and structured attributes
    are queryable.

Architecture position:
    Kernel -- imported by every layer through ``get_logger(name)``, which
    places loggers under the ``recon_kernel`` namespace.

Invariants enforced:
    - Bound scope wins over an ``extra`` key of the same name.
    - LogContext.bind restores the previous scope on exit, even on error.
    - Decimal quantities and values are logged as strings, never floats.
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
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import UTC, date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, TextIO
from uuid import UUID

LOGGER_NAMESPACE = "recon_kernel"

_SCOPE_FIELDS = (
    "correlation_id",
    "period_id",
    "ledger_batch_id",
    "actor_id",
    "trace_id",
)

_scope: dict[str, ContextVar[str | None]] = {
    name: ContextVar(f"recon_log_{name}", default=None) for name in _SCOPE_FIELDS
}


class LogContext:
    """Reconciliation scope attached to every log line (ContextVar backed)."""

    @staticmethod
    def get_all() -> dict[str, str]:
        return {
            name: value
            for name, var in _scope.items()
            if (value := var.get()) is not None
        }

    @staticmethod
    def clear() -> None:
        for var in _scope.values():
            var.set(None)

    @staticmethod
    @contextmanager
    def bind(**fields: Any) -> Iterator[type["LogContext"]]:
        """
        Bind scope fields for the duration of a block.

        None values leave the current binding alone; values are stored as
        strings so UUIDs can be passed directly.

        Raises:
            KeyError: If a field is not a known scope field.
        """
        tokens = [
            (_scope[name], _scope[name].set(str(value)))
            for name, value in fields.items()
            if value is not None
        ]
        try:
            yield LogContext
        finally:
            for var, token in reversed(tokens):
                var.reset(token)


# Attributes every LogRecord has; anything else on a record came from extra=
_RECORD_ATTRS = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", (), None))
) | {"message", "taskName"}


def _json_default(value: Any) -> Any:
    if isinstance(value, (UUID, Decimal)):
        return str(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (set, frozenset)):
        return sorted(str(v) for v in value)
    return str(value)


class StructuredFormatter(logging.Formatter):
    """One JSON object per record."""

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
            payload.update(self._exception_fields(record.exc_info[1]))
            payload["traceback"] = self.formatException(record.exc_info)

        return json.dumps(payload, default=_json_default)

    @staticmethod
    def _exception_fields(exc: BaseException) -> dict[str, Any]:
        fields: dict[str, Any] = {
            "exc_type": type(exc).__name__,
            "exc_message": str(exc),
        }
        code = getattr(exc, "code", None)
        if code is not None:
            fields["exc_code"] = code
        # ReconKernelError subclasses keep their context as public attributes
        for name, value in vars(exc).items():
            if not name.startswith("_") and name != "code":
                fields[f"exc_{name}"] = value
        return fields


def get_logger(name: str) -> logging.Logger:
    """Logger for a component, e.g. get_logger("services.period")."""
    return logging.getLogger(f"{LOGGER_NAMESPACE}.{name}")


_configured = False


def configure_logging(
    *,
    level: int = logging.INFO,
    stream: TextIO | None = None,
) -> None:
    """Attach one JSON handler to the recon_kernel namespace (idempotent)."""
    global _configured
    if _configured:
        return
    _configured = True

    namespace = logging.getLogger(LOGGER_NAMESPACE)
    namespace.setLevel(level)
    namespace.propagate = False
    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(StructuredFormatter())
    namespace.addHandler(handler)


def reset_logging() -> None:
    """Drop handlers and allow configure_logging to run again (tests)."""
    global _configured
    _configured = False
    namespace = logging.getLogger(LOGGER_NAMESPACE)
    namespace.handlers.clear()
    namespace.setLevel(logging.WARNING)
