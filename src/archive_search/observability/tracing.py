"""OpenTelemetry tracing for index builds and queries."""

from __future__ import annotations

from contextlib import contextmanager
import logging
from typing import TYPE_CHECKING, Any

from opentelemetry import trace
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.trace import SpanKind, Status, StatusCode

from archive_search.observability.context import bind_span, trace_context


if TYPE_CHECKING:
    from collections.abc import Generator

    from opentelemetry.trace import Span, Tracer

logger = logging.getLogger(__name__)

SERVICE_NAME = "archive-search"

# Module-level tracer storage
_tracer_holder: dict[str, Any] = {"tracer": None, "provider": None}


def init_tracing(
    service_name: str = SERVICE_NAME,
    resource_attributes: dict[str, str] | None = None,
    provider: TracerProvider | None = None,
) -> TracerProvider:
    """Initialize OpenTelemetry tracing once per process.

    Pass ``provider`` to install an already configured provider (tests attach
    an in-memory exporter this way).
    """
    if provider is None and isinstance(_tracer_holder["provider"], TracerProvider):
        return _tracer_holder["provider"]
    if provider is None:
        attributes = {"service.name": service_name}
        if resource_attributes:
            attributes.update(resource_attributes)
        provider = TracerProvider(resource=Resource.create(attributes))
        trace.set_tracer_provider(provider)
    _tracer_holder["provider"] = provider
    _tracer_holder["tracer"] = provider.get_tracer(__name__)
    logger.debug("Tracing initialized for service: %s", service_name)
    return provider


def get_tracer() -> Tracer:
    """Get the configured tracer."""
    if _tracer_holder["tracer"] is None:
        _tracer_holder["tracer"] = trace.get_tracer(__name__)
    return _tracer_holder["tracer"]


@contextmanager
def create_span(
    name: str,
    kind: SpanKind = SpanKind.INTERNAL,
    attributes: dict[str, Any] | None = None,
) -> Generator[Span, None, None]:
    """Create a traced span and bind it to the log context for its duration."""
    tracer = get_tracer()
    token = trace_context.set(trace_context.get())
    with tracer.start_as_current_span(name, kind=kind, record_exception=False) as span:
        if attributes:
            for key, value in attributes.items():
                span.set_attribute(key, value)
        bind_span(span)

        try:
            yield span
        except Exception as exc:
            span.set_status(Status(StatusCode.ERROR, str(exc)))
            span.record_exception(exc)
            raise
        finally:
            trace_context.reset(token)
