"""Worker lifecycle hooks that emit job metrics to InfluxDB.

Usage:
    from worker_influx import EventRegistry, JobMetrics

    metrics = JobMetrics()
    metrics.set_host("influx.internal", 8086, "writer", "secret")
    metrics.set_default_tags({"env": "production"})
    metrics.register(bus)

Each finished or failed job produces one point in the configured measurement:

    resque,class=SendWelcome,queue=emails,status=finished start_time=...i,...

Failed jobs add an "exception" tag with the error's type name and an "error"
field with its message.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Optional

from . import events
from .clock import NANOS_PER_SECOND
from .config import SinkConfig
from .jobs import job_fields
from .sink import MetricSink

_LOG = logging.getLogger(__name__)

STATUS_FINISHED = "finished"
STATUS_FAILED = "failed"


class JobMetrics:
    """Event adapter between a worker's lifecycle events and the metric sink."""

    def __init__(
        self,
        config: Optional[SinkConfig] = None,
        logger: Optional[Any] = None,
        session: Optional[Any] = None,
        clock: Optional[Callable[[], int]] = None,
    ):
        self.sink = MetricSink(config, logger=logger, session=session, clock=clock)

    @property
    def config(self) -> SinkConfig:
        return self.sink.config

    def register(self, bus: events.EventBus) -> None:
        """Bind the lifecycle callbacks on an event bus."""
        bus.listen(events.AFTER_ENQUEUE, self.after_enqueue)
        bus.listen(events.BEFORE_FORK, self.before_fork)
        bus.listen(events.AFTER_PERFORM, self.after_perform)
        bus.listen(events.ON_FAILURE, self.on_failure)
        bus.listen(events.AFTER_SCHEDULE, self.after_schedule)

    # Configuration

    def set_host(self, host: str, port: int, username: str = "", password: str = "") -> None:
        """Set the InfluxDB host, port and credentials."""
        self.config.host = host
        self.config.port = port
        self.config.user = username
        self.config.password = password

    def set_db(self, database: str) -> None:
        self.config.database = database

    def set_retention_policy(self, retention_policy: str) -> None:
        self.config.retention_policy = retention_policy

    def set_measurement_name(self, name: str) -> None:
        self.config.measurement = name

    def set_default_tags(self, tags: dict[str, str]) -> None:
        """Tags added to every point; call-site tags take precedence."""
        self.config.default_tags = tags

    def set_logger(self, logger: Any) -> None:
        """Logger told about failed writes (anything with error(message))."""
        self.sink.logger = logger

    def set_session(self, session: Any) -> None:
        """HTTP transport used for writes (requests.Session-compatible)."""
        self.sink.session = session

    # Lifecycle callbacks

    def after_enqueue(self, class_name: str, args: Any, queue: str) -> None:
        """Job pushed to a queue; nothing is recorded yet."""

    def after_schedule(self, at: Any, queue: str, class_name: str, args: Any) -> None:
        """Job scheduled for later; nothing is recorded yet."""

    def before_fork(self, job: Any) -> None:
        """Stamp the start time before forking, if the worker has not.

        Starting here counts fork time and beforePerform hooks as execution.
        """
        if getattr(job, "start_time", None) is None:
            job.start_time = self._now_seconds()

    def _now_seconds(self) -> int:
        return self.sink.now() // NANOS_PER_SECOND

    def _stamp_end_time(self, job: Any) -> None:
        if getattr(job, "end_time", None) is None:
            job.end_time = self._now_seconds()

    def after_perform(self, job: Any) -> bool:
        """Emit metrics for a job that finished successfully.

        The end time is stamped now if the worker has not set one.
        """
        self._stamp_end_time(job)
        return self.sink.write(
            job_fields(job),
            {
                "class": job.class_name,
                "queue": job.queue,
                "status": STATUS_FINISHED,
            },
        )

    def on_failure(self, error: BaseException, job: Any) -> bool:
        """Emit metrics for a job that raised."""
        _LOG.debug("Job %s failed with %s", getattr(job, "job_id", None), type(error).__name__)
        self._stamp_end_time(job)
        return self.sink.write(
            job_fields(job, error),
            {
                "class": job.class_name,
                "queue": job.queue,
                "exception": type(error).__name__,
                "status": STATUS_FAILED,
            },
        )
