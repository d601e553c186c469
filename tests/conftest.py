"""Global pytest configuration and fixtures."""

from unittest.mock import Mock

import pytest


@pytest.fixture(autouse=True)
def _isolate_environment(monkeypatch):
    """
    Clear environment overrides and restore the process clock for every test.

    INFLUXDB_* variables override the configured target at write time and
    TELEMETRY_* variables switch on self-telemetry, so a developer shell must
    not leak into test results.
    """
    for name in (
        "INFLUXDB_HOST",
        "INFLUXDB_PORT",
        "INFLUXDB_USERNAME",
        "INFLUXDB_PASSWORD",
        "TELEMETRY_ENABLED",
        "TELEMETRY_BACKEND",
    ):
        monkeypatch.delenv(name, raising=False)

    yield

    from worker_influx import clock

    clock.reset_clock()


@pytest.fixture
def mock_session():
    """
    Fixture for a requests.Session stand-in.

    request() returns a 204 response, which InfluxDB sends for accepted writes.
    Tests can override request.return_value or request.side_effect.

    Example:
        def test_example(mock_session):
            mock_session.request.side_effect = requests.ConnectionError("refused")
    """
    session = Mock()
    session.request.return_value = Mock(status_code=204, content=b"", headers={})
    return session


@pytest.fixture
def mock_logger():
    """Fixture for a logger receiving delivery failures."""
    return Mock()


@pytest.fixture
def fixed_clock():
    """Clock pinned to 1552482605 ns."""
    return lambda: 1552482605


@pytest.fixture
def finished_job():
    """
    Job record as popped and run by a worker, without an enqueue time.

    Returns:
        JobRecord: queue "queue", class "SomeClass", id "abc123"
    """
    from worker_influx.jobs import JobRecord

    return JobRecord.from_payload(
        "queue",
        {"class": "SomeClass", "id": "abc123"},
        pop_time=1552481650,
        start_time=1552481660,
        end_time=1552481960,
    )


@pytest.fixture
def queued_job():
    """Same job as finished_job, with an enqueue time 1000s before the pop."""
    from worker_influx.jobs import JobRecord

    return JobRecord.from_payload(
        "queue",
        {"class": "SomeClass", "id": "abc123", "queue_time": 1552480650},
        pop_time=1552481650,
        start_time=1552481660,
        end_time=1552481960,
    )
