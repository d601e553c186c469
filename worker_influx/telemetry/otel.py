"""OpenTelemetry tracing around InfluxDB writes.

Enabled with TELEMETRY_ENABLED=true and TELEMETRY_BACKEND=otel|hybrid. When
tracing is off, start_span() yields a span object whose methods do nothing.

Exporters (OTEL_EXPORTER):
- console: Print spans to stdout (local dev)
- otlp: Send spans to OTEL_ENDPOINT
- none: No export
"""

from __future__ import annotations

import logging
import os
from contextlib import contextmanager
from typing import Any, Iterator

_LOG = logging.getLogger(__name__)

_TRACER: Any | None = None


def _is_enabled() -> bool:
    """Check if OTel tracing is enabled via environment variables."""
    enabled = str(os.getenv("TELEMETRY_ENABLED", "false")).lower() in {"1", "true", "yes"}
    backend = os.getenv("TELEMETRY_BACKEND", "noop").lower()
    return enabled and backend in {"otel", "hybrid"}


class _DisabledSpan:
    def set_attribute(self, key: str, value: Any) -> None:
        pass

    def set_status(self, status: Any) -> None:
        pass

    def record_exception(self, exc: BaseException) -> None:
        pass


def init_tracer(service_name: str | None = None) -> None:
    """Initialize the tracer if enabled.

    Environment variables:
    - OTEL_EXPORTER: console|otlp|none (default: console)
    - OTEL_ENDPOINT: OTLP endpoint URL (e.g., http://tempo:4317)
    - OTEL_SERVICE_NAME: Service name (default: worker-influx)
    - OTEL_TRACE_SAMPLE: Sample rate 0.0-1.0 (default: 0.02)

    Safe to call multiple times (idempotent).

    Args:
        service_name: Override service name
    """
    global _TRACER

    if not _is_enabled():
        _LOG.debug("OTel tracing disabled (TELEMETRY_ENABLED=false or backend!=otel)")
        return

    if _TRACER is not None:
        _LOG.debug("OTel tracer already initialized")
        return

    from opentelemetry import trace
    from opentelemetry.sdk.resources import Resource
    from opentelemetry.sdk.trace import TracerProvider
    from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter
    from opentelemetry.sdk.trace.sampling import ParentBasedTraceIdRatio

    service = service_name or os.getenv("OTEL_SERVICE_NAME", "worker-influx")
    exporter_type = os.getenv("OTEL_EXPORTER", "console").lower()
    sample_rate = float(os.getenv("OTEL_TRACE_SAMPLE", "0.02"))

    provider = TracerProvider(
        resource=Resource.create({"service.name": service}),
        sampler=ParentBasedTraceIdRatio(sample_rate),
    )

    if exporter_type == "otlp" and os.getenv("OTEL_ENDPOINT"):
        from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter

        provider.add_span_processor(BatchSpanProcessor(OTLPSpanExporter(endpoint=os.getenv("OTEL_ENDPOINT"))))
    elif exporter_type == "none":
        pass
    else:
        if exporter_type != "console":
            _LOG.warning("OTEL_EXPORTER=%s without usable settings, using console", exporter_type)
        provider.add_span_processor(BatchSpanProcessor(ConsoleSpanExporter()))

    trace.set_tracer_provider(provider)
    _TRACER = trace.get_tracer(__name__)
    _LOG.info("OTel tracer initialized: exporter=%s, sample_rate=%.2f", exporter_type, sample_rate)


@contextmanager
def start_span(name: str, attributes: dict[str, Any] | None = None) -> Iterator[Any]:
    """Run a block inside a span.

    Args:
        name: Span name (e.g., "influxdb.write")
        attributes: Span attributes

    Yields:
        Span instance (inert when tracing is disabled)
    """
    if _TRACER is None:
        yield _DisabledSpan()
        return

    from opentelemetry.trace import Status, StatusCode

    with _TRACER.start_as_current_span(name, attributes=attributes or {}) as span:
        try:
            yield span
        except Exception as exc:
            span.set_status(Status(StatusCode.ERROR, str(exc)))
            span.record_exception(exc)
            raise
