"""OpenTelemetry tracing for reconcile passes.

Spans are only recorded once ``initialize_tracing`` has installed an OTLP
exporter. Until then ``trace_span`` yields None and records nothing.
"""

from __future__ import annotations

import logging
import os
from contextlib import contextmanager
from typing import Any, Iterator

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from opentelemetry.trace import Span, Tracer

from . import __version__
from .constants import CONTROLLER_NAME
from .utils.context import get_correlation_id

logger = logging.getLogger(__name__)

_tracer: Tracer | None = None
_provider: TracerProvider | None = None


def tracing_enabled() -> bool:
    return os.getenv("OTEL_TRACES_ENABLED", "true").lower() not in ("false", "0", "no")


def initialize_tracing(service_name: str = CONTROLLER_NAME) -> None:
    """Export spans over OTLP/gRPC.

    Reads ``OTEL_TRACES_ENABLED``, ``OTEL_SERVICE_NAME`` and
    ``OTEL_EXPORTER_OTLP_ENDPOINT`` (default ``http://localhost:4317``).
    """
    global _tracer, _provider

    if not tracing_enabled():
        logger.info("Tracing disabled")
        return

    endpoint = os.getenv("OTEL_EXPORTER_OTLP_ENDPOINT", "http://localhost:4317")
    resource = Resource.create({
        "service.name": os.getenv("OTEL_SERVICE_NAME", service_name),
        "service.version": __version__,
    })
    provider = TracerProvider(resource=resource)
    provider.add_span_processor(BatchSpanProcessor(OTLPSpanExporter(endpoint=endpoint)))
    trace.set_tracer_provider(provider)

    _provider = provider
    _tracer = provider.get_tracer("ocm_agent_operator", __version__)
    logger.info("Tracing enabled, exporting to %s", endpoint)


def shutdown_tracing() -> None:
    """Flush pending spans and stop the exporter."""
    global _tracer, _provider

    if _provider is not None:
        _provider.shutdown()
    _tracer = None
    _provider = None


@contextmanager
def trace_span(
    name: str,
    kind: str | None = None,
    attributes: dict[str, Any] | None = None,
) -> Iterator[Span | None]:
    """Trace the enclosed block as ``name``.

    ``kind`` is the kind of resource the block works on. The active
    correlation ID is attached so spans can be matched with log lines.
    Exceptions are recorded on the span and mark it as failed.
    """
    if _tracer is None:
        yield None
        return

    attrs = dict(attributes or {})
    if kind:
        attrs["resource.kind"] = kind
    corr_id = get_correlation_id()
    if corr_id:
        attrs["correlation_id"] = corr_id

    with _tracer.start_as_current_span(name, attributes=attrs) as span:
        yield span
