"""Self-telemetry for the InfluxDB sink (off by default).

Backends (TELEMETRY_BACKEND):
- noop: Nothing recorded (default)
- prom: Prometheus counters/histograms for sink writes
- otel: OpenTelemetry spans around sink writes
- hybrid: Both
"""

from __future__ import annotations

import logging
import os

_LOG = logging.getLogger(__name__)


def init_telemetry() -> None:
    """Initialize the telemetry backend from the environment.

    Environment variables:
    - TELEMETRY_ENABLED: Enable/disable telemetry (default: false)
    - TELEMETRY_BACKEND: noop|prom|otel|hybrid (default: noop)

    Safe to call multiple times (idempotent).
    """
    enabled = str(os.getenv("TELEMETRY_ENABLED", "false")).lower() in {"1", "true", "yes"}

    if not enabled:
        _LOG.debug("Telemetry disabled (TELEMETRY_ENABLED=false)")
        return

    backend = os.getenv("TELEMETRY_BACKEND", "noop").lower()

    if backend in {"prom", "hybrid"}:
        from .prom import init_prometheus

        init_prometheus()

    if backend in {"otel", "hybrid"}:
        from .otel import init_tracer

        init_tracer()

    if backend not in {"prom", "otel", "hybrid", "noop"}:
        _LOG.warning("Unknown telemetry backend '%s', using noop", backend)
        return

    _LOG.info("Telemetry initialized: backend=%s", backend)


__all__ = ["init_telemetry"]
