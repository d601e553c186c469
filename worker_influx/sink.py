"""Metric sink: delivers job metric points to InfluxDB.

Points are written through the InfluxDB 1.x client as line protocol:

    POST http://<host>:<port>/write?db=<database>&precision=n[&rp=<policy>]

Delivery is fire-and-forget. A failed write is reported once to the injected
logger and then dropped; it is never retried and never raised into the job
being measured. Malformed points are programming errors and do raise.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Callable, Mapping, Optional

import requests
from influxdb import InfluxDBClient
from influxdb.exceptions import InfluxDBClientError, InfluxDBServerError

from .clock import now_ns
from .config import ConfigError, SinkConfig, resolve_connection
from .point import MetricPoint, build_point
from .telemetry.otel import start_span
from .telemetry.prom import record_point_write

_LOG = logging.getLogger(__name__)

PRECISION_NANOSECONDS = "n"

# Failures that count as a lost point rather than a bug
WRITE_ERRORS = (InfluxDBClientError, InfluxDBServerError, requests.RequestException, ConfigError)


def url_host(host: str) -> str:
    """Bracket IPv6 literals so they can carry a port in a URL."""
    if ":" in host and not host.startswith("["):
        return f"[{host}]"
    return host


class MetricSink:
    """Writes single points to the configured InfluxDB database.

    One client is kept per effective target and rebuilt only when the
    configuration or INFLUXDB_* environment changes, so the HTTP connection
    pool is reused across jobs.
    """

    def __init__(
        self,
        config: Optional[SinkConfig] = None,
        logger: Optional[Any] = None,
        session: Optional[Any] = None,
        clock: Optional[Callable[[], int]] = None,
    ):
        """
        Initialize the sink.

        Args:
            config: Target settings (defaults to SinkConfig())
            logger: Object with error(message), told about failed writes
            session: requests.Session-compatible transport for the client;
                     owned by the caller and never closed by the sink
            clock: Callable returning nanoseconds (defaults to the process clock)
        """
        self.config = config if config is not None else SinkConfig()
        self.logger = logger
        self.session = session
        self._clock = clock
        self._client: Optional[InfluxDBClient] = None
        self._client_key: Optional[tuple] = None
        self._owns_session = False

    def now(self) -> int:
        return self._clock() if self._clock is not None else now_ns()

    def write_params(self) -> dict[str, str]:
        """Query parameters for a nanosecond-precision write."""
        params = {"db": self.config.database, "precision": PRECISION_NANOSECONDS}
        if self.config.retention_policy:
            params["rp"] = self.config.retention_policy
        return params

    def client(self) -> InfluxDBClient:
        """Client for the effective target, environment overrides applied.

        Raises:
            ConfigError: If the resolved settings are unusable
        """
        params = resolve_connection(self.config)
        key = (params, self.config.database, self.config.timeout, self.config.ssl, self.session)

        if self._client is None or key != self._client_key:
            self.close()
            self._client = InfluxDBClient(
                host=url_host(params.host),
                port=params.port,
                username=params.user,
                password=params.password,
                database=self.config.database,
                ssl=self.config.ssl,
                verify_ssl=self.config.ssl,
                timeout=self.config.timeout,
                retries=1,
                session=self.session,
            )
            self._client_key = key
            self._owns_session = self.session is None
            _LOG.debug("Created InfluxDB client for %s:%d/%s", params.host, params.port, self.config.database)

        return self._client

    def close(self) -> None:
        """Release the cached client and the session the sink created."""
        if self._client is not None and self._owns_session:
            self._client.close()
        self._client = None
        self._client_key = None

    def build(self, fields: Mapping[str, Any], tags: Mapping[str, str]) -> MetricPoint:
        """Build a point with the configured measurement, default tags and clock."""
        return build_point(
            self.config.measurement,
            fields,
            tags,
            self.now(),
            default_tags=self.config.default_tags,
        )

    def send(self, point: MetricPoint) -> bool:
        """Write one point.

        Args:
            point: Point to deliver

        Returns:
            True if the store accepted the point, False otherwise
        """
        start = time.perf_counter()
        line = point.to_line_protocol()

        try:
            with start_span(
                "influxdb.write",
                {"db.name": self.config.database, "influxdb.measurement": point.measurement},
            ):
                self.client().write(line, params=self.write_params(), protocol="line")
        except WRITE_ERRORS as exc:
            _LOG.debug("Dropping point after failed write: %s (%s)", line, exc)
            if self.logger is not None:
                self.logger.error(str(exc))
            record_point_write("failed", time.perf_counter() - start)
            return False

        record_point_write("written", time.perf_counter() - start)
        return True

    def write(self, fields: Mapping[str, Any], tags: Mapping[str, str]) -> bool:
        """Build a point from fields and tags, then send it.

        Raises:
            PointError: If the fields cannot form a valid point
        """
        return self.send(self.build(fields, tags))
