"""Worker lifecycle events.

JobMetrics.register() accepts any bus with a listen(event, callback) method.
EventRegistry is an in-process implementation for workers that do not bring
their own.

Callback signatures:
- after_enqueue(class_name, args, queue)
- after_schedule(at, queue, class_name, args)
- before_fork(job)
- after_perform(job)
- on_failure(error, job)
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Protocol

_LOG = logging.getLogger(__name__)

AFTER_ENQUEUE = "after_enqueue"
BEFORE_FORK = "before_fork"
AFTER_PERFORM = "after_perform"
ON_FAILURE = "on_failure"
AFTER_SCHEDULE = "after_schedule"

LIFECYCLE_EVENTS = (AFTER_ENQUEUE, BEFORE_FORK, AFTER_PERFORM, ON_FAILURE, AFTER_SCHEDULE)

Callback = Callable[..., Any]


class EventBus(Protocol):
    def listen(self, event: str, callback: Callback) -> None: ...


def _check_event(event: str) -> None:
    if event not in LIFECYCLE_EVENTS:
        raise ValueError(f"Unknown lifecycle event '{event}', expected one of: {', '.join(LIFECYCLE_EVENTS)}")


class EventRegistry:
    """Synchronous event bus keyed by lifecycle event name."""

    def __init__(self) -> None:
        self._listeners: dict[str, list[Callback]] = {event: [] for event in LIFECYCLE_EVENTS}

    def listen(self, event: str, callback: Callback) -> None:
        """Register a callback for an event."""
        _check_event(event)
        self._listeners[event].append(callback)

    def stop_listening(self, event: str, callback: Callback) -> bool:
        """Remove a callback; returns False if it was not registered."""
        _check_event(event)
        try:
            self._listeners[event].remove(callback)
        except ValueError:
            return False
        return True

    def listeners(self, event: str) -> list[Callback]:
        _check_event(event)
        return list(self._listeners[event])

    def trigger(self, event: str, *args: Any) -> None:
        """Invoke every callback for an event in registration order.

        Exceptions raised by callbacks propagate to the caller.
        """
        _check_event(event)
        for callback in list(self._listeners[event]):
            _LOG.debug("Dispatching %s to %r", event, callback)
            callback(*args)

    def clear(self) -> None:
        for callbacks in self._listeners.values():
            callbacks.clear()
