"""Structured logging setup with correlation context propagation.

Every record emitted while a turn is streaming, or while an approval is being
decided, carries the ids of that turn/approval so the operator audit trail can
be reassembled from logs alone.
"""

from __future__ import annotations

import contextvars
import json
import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import UTC, datetime

from opentelemetry import trace


@dataclass(frozen=True, slots=True)
class CorrelationContext:
    turn_id: str | None = None
    approval_id: str | None = None


_EMPTY_CONTEXT = CorrelationContext()
_CORRELATION_CONTEXT: contextvars.ContextVar[CorrelationContext | None] = contextvars.ContextVar(
    "skyops_correlation_context",
    default=None,
)


def get_correlation_context() -> CorrelationContext:
    """Return correlation IDs for the active execution context."""

    context = _CORRELATION_CONTEXT.get()
    if context is None:
        return _EMPTY_CONTEXT
    return context


def _current_trace_id() -> str:
    ctx = trace.get_current_span().get_span_context()
    if ctx.is_valid:
        return format(ctx.trace_id, "032x")
    return ""


class CorrelationFilter(logging.Filter):
    """Inject correlation fields into every ``LogRecord`` before formatting."""

    def filter(self, record: logging.LogRecord) -> bool:
        context = get_correlation_context()
        record.turn_id = context.turn_id
        record.approval_id = context.approval_id
        record.otel_trace_id = _current_trace_id()
        return True


class _JsonFormatter(logging.Formatter):
    """Render logs as compact JSON for machine-readable ingestion."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, object | None] = {
            "timestamp": datetime.fromtimestamp(record.created, UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "turn_id": getattr(record, "turn_id", None),
            "approval_id": getattr(record, "approval_id", None),
            "trace_id": getattr(record, "otel_trace_id", None),
        }
        if record.exc_info is not None:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=True)


def setup_logging(level: int | str = logging.INFO, json_output: bool = False) -> None:
    """Configure root logging once with correlation-aware handlers."""

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()
    root_logger.filters.clear()

    # stderr keeps streamed reply text on stdout readable in the CLI.
    handler = logging.StreamHandler(stream=sys.stderr)
    if json_output:
        formatter: logging.Formatter = _JsonFormatter()
    else:
        formatter = logging.Formatter(
            "%(asctime)s %(levelname)s %(name)s "
            "turn_id=%(turn_id)s approval_id=%(approval_id)s "
            "%(message)s",
        )
    handler.setFormatter(formatter)

    correlation_filter = CorrelationFilter()
    handler.addFilter(correlation_filter)
    root_logger.addFilter(correlation_filter)
    root_logger.addHandler(handler)


@contextmanager
def correlation_scope(
    *,
    turn_id: str | None = None,
    approval_id: str | None = None,
) -> Iterator[None]:
    """Temporarily apply correlation IDs; nested scopes inherit outer values."""

    current = get_correlation_context()
    updated = CorrelationContext(
        turn_id=current.turn_id if turn_id is None else turn_id,
        approval_id=current.approval_id if approval_id is None else approval_id,
    )
    token = _CORRELATION_CONTEXT.set(updated)
    try:
        yield
    finally:
        _CORRELATION_CONTEXT.reset(token)


__all__ = [
    "CorrelationContext",
    "CorrelationFilter",
    "correlation_scope",
    "get_correlation_context",
    "setup_logging",
]
