"""Job-queue worker metrics for InfluxDB.

Hooks into a worker's lifecycle events and writes one timing/status point per
finished or failed job, using the InfluxDB line protocol over HTTP.

Modules:
- clock: Nanosecond timestamp source (swappable for tests)
- jobs: Job records and metric field extraction
- point: Metric points and line protocol serialization
- config: Sink configuration and INFLUXDB_* environment overrides
- sink: Fire-and-forget point delivery
- events: Lifecycle event names and an in-process event bus
- hooks: JobMetrics, the lifecycle event adapter
"""

from .config import ConfigError, SinkConfig
from .events import EventRegistry
from .hooks import JobMetrics
from .jobs import JobRecord, job_fields
from .point import MetricPoint, PointError, build_point
from .sink import MetricSink

__all__ = [
    "ConfigError",
    "EventRegistry",
    "JobMetrics",
    "JobRecord",
    "MetricPoint",
    "MetricSink",
    "PointError",
    "SinkConfig",
    "build_point",
    "job_fields",
]
