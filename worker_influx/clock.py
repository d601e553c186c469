"""Nanosecond timestamp source for metric points.

The process clock is swappable so tests can pin "now" to a constant:

    from worker_influx import clock

    clock.set_clock(lambda: 1552482605)
    ...
    clock.reset_clock()
"""

from __future__ import annotations

import logging
import time
from typing import Callable

_LOG = logging.getLogger(__name__)

NANOS_PER_SECOND = 1_000_000_000


class Clock:
    """Wall clock in nanoseconds since the epoch.

    If the OS clock call fails, the last good reading plus one nanosecond is
    returned instead (0 if the clock was never read), so a point always
    carries a timestamp.
    """

    def __init__(self, source: Callable[[], int] = time.time_ns):
        self._source = source
        self._last = 0

    def __call__(self) -> int:
        try:
            value = int(self._source())
        except OSError as exc:
            value = self._last + 1
            _LOG.warning("Clock read failed, using fallback timestamp %d: %s", value, exc)
        self._last = value
        return value


_CLOCK: Callable[[], int] = Clock()


def now_ns() -> int:
    """Current time in nanoseconds from the process clock."""
    return _CLOCK()


def now_seconds() -> int:
    """Current time in whole epoch seconds from the process clock."""
    return now_ns() // NANOS_PER_SECOND


def set_clock(source: Callable[[], int]) -> None:
    """Replace the process clock with a callable returning nanoseconds."""
    global _CLOCK
    _CLOCK = source


def reset_clock() -> None:
    """Restore the system wall clock."""
    global _CLOCK
    _CLOCK = Clock()
