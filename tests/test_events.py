"""Tests for the in-process lifecycle event bus."""

from unittest.mock import Mock

import pytest

from worker_influx.events import AFTER_PERFORM, BEFORE_FORK, ON_FAILURE, EventRegistry


class TestEventRegistry:
    """Test EventRegistry listen/trigger behavior."""

    def test_trigger_passes_arguments(self):
        """Callbacks receive the trigger arguments."""
        bus = EventRegistry()
        callback = Mock()
        bus.listen(ON_FAILURE, callback)

        error = RuntimeError("boom")
        bus.trigger(ON_FAILURE, error, "job")

        callback.assert_called_once_with(error, "job")

    def test_trigger_in_registration_order(self):
        """Callbacks run in the order they were registered."""
        bus = EventRegistry()
        calls = []
        bus.listen(BEFORE_FORK, lambda job: calls.append("first"))
        bus.listen(BEFORE_FORK, lambda job: calls.append("second"))

        bus.trigger(BEFORE_FORK, object())

        assert calls == ["first", "second"]

    def test_trigger_only_matching_event(self):
        """Other events' callbacks are not invoked."""
        bus = EventRegistry()
        callback = Mock()
        bus.listen(AFTER_PERFORM, callback)

        bus.trigger(BEFORE_FORK, object())

        callback.assert_not_called()

    def test_callback_exception_propagates(self):
        """Errors raised by callbacks reach the caller."""
        bus = EventRegistry()
        bus.listen(AFTER_PERFORM, Mock(side_effect=ValueError("bad hook")))

        with pytest.raises(ValueError, match="bad hook"):
            bus.trigger(AFTER_PERFORM, object())

    def test_unknown_event_rejected(self):
        """Only lifecycle event names are accepted."""
        bus = EventRegistry()

        with pytest.raises(ValueError, match="Unknown lifecycle event"):
            bus.listen("afterPerform", Mock())

        with pytest.raises(ValueError):
            bus.trigger("beforePerform")

    def test_stop_listening(self):
        """Removed callbacks are no longer invoked."""
        bus = EventRegistry()
        callback = Mock()
        bus.listen(AFTER_PERFORM, callback)

        assert bus.stop_listening(AFTER_PERFORM, callback) is True
        assert bus.stop_listening(AFTER_PERFORM, callback) is False

        bus.trigger(AFTER_PERFORM, object())
        callback.assert_not_called()

    def test_clear(self):
        """clear() drops every listener."""
        bus = EventRegistry()
        bus.listen(AFTER_PERFORM, Mock())
        bus.listen(ON_FAILURE, Mock())

        bus.clear()

        assert bus.listeners(AFTER_PERFORM) == []
        assert bus.listeners(ON_FAILURE) == []
