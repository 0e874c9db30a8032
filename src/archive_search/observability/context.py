"""Trace context shared between spans and log records."""

from __future__ import annotations

from contextvars import ContextVar
from typing import TYPE_CHECKING
from uuid import uuid4


if TYPE_CHECKING:
    from opentelemetry.trace import Span

trace_context: ContextVar[dict | None] = ContextVar("trace_context", default=None)


def generate_trace_id() -> str:
    """Generate a 32-char hex trace ID."""
    return uuid4().hex


def generate_span_id() -> str:
    """Generate a 16-char hex span ID."""
    return uuid4().hex[:16]


def get_trace_context() -> dict:
    """Return the active context, starting a fresh trace when none is set."""
    ctx = trace_context.get()
    if ctx is None or not ctx.get("trace_id"):
        ctx = {"trace_id": generate_trace_id(), "span_id": generate_span_id()}
        trace_context.set(ctx)
    return ctx


def set_trace_context(trace_id: str, span_id: str, **extra: object) -> None:
    trace_context.set({"trace_id": trace_id, "span_id": span_id, **extra})


def bind_span(span: Span) -> dict:
    """Point the log context at ``span`` and return the new context.

    Extra keys already bound (``corpus`` for example) are preserved.
    """
    span_ctx = span.get_span_context()
    current = trace_context.get() or {}
    if not span_ctx.is_valid:
        # No SDK provider configured: keep the trace, mint a local span id.
        ctx = {**get_trace_context(), **current, "span_id": generate_span_id()}
        trace_context.set(ctx)
        return ctx
    ctx = {
        **current,
        "trace_id": format(span_ctx.trace_id, "032x"),
        "span_id": format(span_ctx.span_id, "016x"),
    }
    trace_context.set(ctx)
    return ctx
