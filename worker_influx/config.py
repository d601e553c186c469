"""Sink configuration.

SinkConfig holds the configured InfluxDB target. Connection settings may be
overridden per write through environment variables (non-empty values only):

- INFLUXDB_HOST: host name, or "host:port"
- INFLUXDB_PORT: port number
- INFLUXDB_USERNAME: user for basic auth
- INFLUXDB_PASSWORD: password for basic auth
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

_LOG = logging.getLogger(__name__)

ENV_HOST = "INFLUXDB_HOST"
ENV_PORT = "INFLUXDB_PORT"
ENV_USERNAME = "INFLUXDB_USERNAME"
ENV_PASSWORD = "INFLUXDB_PASSWORD"


class ConfigError(ValueError):
    """Raised when the resolved connection settings are unusable."""


class SinkConfig(BaseModel):
    """Where and how job metrics are written.

    Example:
        config = SinkConfig(host="influx.internal", database="workers")
        config.retention_policy = "autogen"
    """

    model_config = ConfigDict(validate_assignment=True)

    host: str = Field("localhost", description="InfluxDB host name or IP", min_length=1)
    port: int = Field(8086, description="InfluxDB HTTP port")
    user: str = Field("", description="Basic auth user (empty disables auth)")
    password: str = Field("", description="Basic auth password")
    database: str = Field("resque", description="Target database", min_length=1)
    retention_policy: Optional[str] = Field(None, description="Retention policy; None uses the database default")
    default_tags: dict[str, str] = Field(default_factory=dict, description="Tags added to every point")
    measurement: str = Field("resque", description="Measurement name", min_length=1)
    timeout: float = Field(5.0, description="HTTP timeout in seconds", gt=0)
    ssl: bool = Field(False, description="Use https for the write endpoint")

    @field_validator("port")
    @classmethod
    def validate_port(cls, v: int) -> int:
        """Validate port is in the TCP range."""
        if not 0 < v < 65536:
            raise ValueError(f"port must be between 1 and 65535, got: {v}")
        return v

    @field_validator("retention_policy")
    @classmethod
    def validate_retention_policy(cls, v: Optional[str]) -> Optional[str]:
        """Treat an empty retention policy as the database default."""
        return v or None


@dataclass(frozen=True)
class ConnectionParams:
    """Effective connection settings for one write."""

    host: str
    port: int
    user: str
    password: str


def _parse_port(value: object) -> int:
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"Invalid InfluxDB port: {value!r}") from exc


def resolve_connection(config: SinkConfig, environ: Optional[Mapping[str, str]] = None) -> ConnectionParams:
    """Overlay INFLUXDB_* environment variables onto the configured target.

    A host containing exactly one colon is split into host and port. Hosts
    with more colons (IPv6 literals) are passed through untouched.

    Args:
        config: Configured sink settings
        environ: Environment mapping (defaults to os.environ)

    Returns:
        ConnectionParams

    Raises:
        ConfigError: If the resolved port is not a number
    """
    env = os.environ if environ is None else environ

    host = env.get(ENV_HOST) or config.host
    port: object = env.get(ENV_PORT) or config.port
    user = env.get(ENV_USERNAME) or config.user
    password = env.get(ENV_PASSWORD) or config.password

    if host.count(":") == 1:
        host, port = host.split(":")

    params = ConnectionParams(host=host, port=_parse_port(port), user=user, password=password)
    _LOG.debug("Resolved InfluxDB target %s:%d (auth=%s)", params.host, params.port, bool(params.user))
    return params
