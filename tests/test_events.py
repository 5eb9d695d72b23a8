# ============================================================================
# EVENT BUS TESTS
# ============================================================================
# EPOCH: 1 - HEALTH KERNEL
# STATUS: Tests - Kernel publish/subscribe
# PURPOSE: Verify ordering, once(), off() and handler fault isolation
# CREATED: 17 OCT 2026
# ============================================================================
"""
Event Bus Tests

Run with:
    pytest tests/test_events.py -v
"""

import pytest
from unittest.mock import MagicMock

from kernel.events import EventBus, KernelEvent, event_key


# ============================================================================
# FIXTURES
# ============================================================================

@pytest.fixture
def bus():
    return EventBus()


class TestEventKey:
    """Enum members and strings address the same handlers."""

    def test_enum_and_string_equivalent(self, bus):
        handler = MagicMock()
        bus.on(KernelEvent.PROBE_COMPLETED, handler)

        assert bus.emit("probe:completed", {"name": "db"}) == 1
        handler.assert_called_once_with({"name": "db"})

    def test_event_key(self):
        assert event_key(KernelEvent.STATUS_CHANGED) == "status:changed"
        assert event_key("custom") == "custom"


class TestSubscription:
    """on(), once(), off()."""

    def test_handlers_run_in_subscription_order(self, bus):
        calls = []
        bus.on("tick", lambda payload: calls.append("first"))
        bus.on("tick", lambda payload: calls.append("second"))

        bus.emit("tick")

        assert calls == ["first", "second"]

    def test_duplicate_subscription_ignored(self, bus):
        handler = MagicMock()
        bus.on("tick", handler)
        bus.on("tick", handler)

        assert bus.listener_count("tick") == 1
        assert bus.emit("tick", 1) == 1

    def test_once_fires_one_time(self, bus):
        handler = MagicMock()
        bus.once("tick", handler)

        bus.emit("tick", 1)
        bus.emit("tick", 2)

        handler.assert_called_once_with(1)
        assert bus.listener_count("tick") == 0

    def test_on_and_once_of_same_handler_both_fire(self, bus):
        handler = MagicMock()
        bus.on("tick", handler)
        bus.once("tick", handler)

        assert bus.listener_count("tick") == 2
        assert bus.emit("tick", 1) == 2
        assert bus.emit("tick", 2) == 1
        assert handler.call_count == 3

    def test_duplicate_once_ignored(self, bus):
        handler = MagicMock()
        bus.once("tick", handler)
        bus.once("tick", handler)

        assert bus.listener_count("tick") == 1

    def test_off(self, bus):
        handler = MagicMock()
        bus.on("tick", handler)

        assert bus.off("tick", handler) is True
        assert bus.off("tick", handler) is False
        assert bus.emit("tick") == 0
        handler.assert_not_called()

    def test_off_removes_once_handler(self, bus):
        handler = MagicMock()
        bus.once("tick", handler)

        assert bus.off("tick", handler) is True
        bus.emit("tick")
        handler.assert_not_called()

    def test_handler_removed_mid_emit_is_skipped(self, bus):
        second = MagicMock()
        bus.on("tick", lambda payload: bus.off("tick", second))
        bus.on("tick", second)

        assert bus.emit("tick") == 1
        second.assert_not_called()

    def test_clear(self, bus):
        bus.on("a", MagicMock())
        bus.on("b", MagicMock())
        bus.clear()

        assert bus.listener_count("a") == 0
        assert bus.emit("b") == 0


class TestFaultIsolation:
    """A raising handler never reaches the emitter."""

    def test_raising_handler_does_not_stop_others(self, bus, caplog):
        after = MagicMock()
        bus.on("tick", MagicMock(side_effect=RuntimeError("handler broke")))
        bus.on("tick", after)

        assert bus.emit("tick", "payload") == 2
        after.assert_called_once_with("payload")
        assert "handler broke" in caplog.text

    def test_coroutine_handler_is_reported(self, bus, caplog):
        async def handler(payload):
            return None

        bus.on("tick", handler)
        assert bus.emit("tick") == 1
        assert "handlers must be synchronous" in caplog.text
