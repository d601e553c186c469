"""Prometheus metrics about the plugin's own writes.

Collected behind the TELEMETRY_ENABLED flag; until init_prometheus() runs with
the flag set, every record call is a no-op.

Metrics:
- influxdb_points_total: points handed to the sink, by status (written/failed)
- influxdb_write_seconds: duration of the HTTP write
"""

from __future__ import annotations

import logging
import os

_LOG = logging.getLogger(__name__)

_METRICS_INITIALIZED = False

# Metric instances (populated on init)
_points_total = None
_write_seconds = None


def _is_enabled() -> bool:
    """Check if telemetry is enabled via environment variable."""
    return str(os.getenv("TELEMETRY_ENABLED", "false")).lower() in {"1", "true", "yes"}


def init_prometheus() -> None:
    """Register the write metrics if telemetry is enabled.

    Safe to call multiple times (idempotent).
    """
    global _METRICS_INITIALIZED, _points_total, _write_seconds

    if not _is_enabled():
        _LOG.debug("Telemetry disabled, skipping Prometheus init")
        return

    if _METRICS_INITIALIZED:
        _LOG.debug("Prometheus metrics already initialized")
        return

    from prometheus_client import Counter, Histogram

    _points_total = Counter(
        "influxdb_points_total",
        "Job metric points handed to the InfluxDB sink",
        ["status"],  # written | failed
    )

    _write_seconds = Histogram(
        "influxdb_write_seconds",
        "InfluxDB write latency in seconds",
        buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0],
    )

    _METRICS_INITIALIZED = True
    _LOG.info("Prometheus metrics initialized")


def record_point_write(status: str, duration_seconds: float) -> None:
    """Record one sink write.

    Args:
        status: 'written' or 'failed'
        duration_seconds: Time spent in the write call
    """
    if not _METRICS_INITIALIZED:
        return

    try:
        _points_total.labels(status=status).inc()
        _write_seconds.observe(duration_seconds)
    except Exception as exc:
        _LOG.warning("Failed to record point write metric: %s", exc)


def generate_metrics_text() -> str:
    """Render the default registry in the Prometheus text format.

    Returns:
        Metrics text, or empty string if metrics are not initialized
    """
    if not _METRICS_INITIALIZED:
        return ""

    from prometheus_client import REGISTRY, generate_latest

    return generate_latest(REGISTRY).decode("utf-8")
