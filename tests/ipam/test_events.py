# tests/ipam/test_events.py
"""
Unit Tests for the EventBus and EventRecorder
"""

import logging
import threading

from lb_ipam.core.event_handlers import audit_handler, register_all_handlers
from lb_ipam.core.events import (
    ALL_EVENTS,
    Event,
    EventBus,
    EventPriority,
    EventSeverity,
)


class TestEventBus:
    """Tests for subscribe/publish/history"""

    def test_handlers_run_in_priority_order(self, bus):
        calls = []
        bus.subscribe("IPAllocated", lambda e: calls.append("low"), priority=EventPriority.LOW)
        bus.subscribe(ALL_EVENTS, lambda e: calls.append("high"), priority=EventPriority.HIGH)
        bus.subscribe("IPAllocated", lambda e: calls.append("normal"))

        bus.publish(Event(reason="IPAllocated", severity=EventSeverity.NORMAL, message="m"))

        assert calls == ["high", "normal", "low"]

    def test_failing_handler_does_not_stop_others(self, bus):
        calls = []

        def broken(event):
            raise RuntimeError("boom")

        bus.subscribe("AllocationFailed", broken, priority=EventPriority.HIGH)
        bus.subscribe("AllocationFailed", lambda e: calls.append(e.reason))

        bus.publish(Event(reason="AllocationFailed", severity=EventSeverity.WARNING, message="m"))

        assert calls == ["AllocationFailed"]

    def test_unsubscribe(self, bus):
        def handler(event):
            pass

        bus.subscribe("IPAllocated", handler)
        assert bus.get_subscriptions() == {"IPAllocated": 1}
        assert bus.unsubscribe("IPAllocated", handler)
        assert not bus.unsubscribe("IPAllocated", handler)
        assert not bus.unsubscribe("Unknown", handler)

    def test_history_is_bounded_and_filterable(self):
        bus = EventBus(max_history_size=3)
        for n in range(5):
            bus.publish(Event(reason="IPAllocated" if n % 2 else "AllocationFailed",
                              severity=EventSeverity.NORMAL, message=str(n), key=f"ns/s{n}"))

        assert [e.message for e in bus.get_history()] == ["2", "3", "4"]
        assert [e.message for e in bus.get_history(reason="IPAllocated")] == ["3"]
        assert [e.message for e in bus.get_history(key="ns/s4")] == ["4"]
        assert [e.message for e in bus.get_history(limit=1)] == ["4"]

    def test_concurrent_publishers_lose_no_events(self):
        """History keeps every event when several threads publish at once"""
        bus = EventBus(max_history_size=10000)

        def worker(n):
            for i in range(200):
                bus.publish(Event(reason="AllocationFailed", severity=EventSeverity.WARNING,
                                  message=f"{n}-{i}", key=f"ns/s{n}"))

        threads = [threading.Thread(target=worker, args=(n,)) for n in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(bus.get_history(limit=10000)) == 1600
        assert len(bus.get_history(key="ns/s3", limit=10000)) == 200

    def test_clear(self, bus):
        bus.subscribe("IPAllocated", lambda e: None)
        bus.publish(Event(reason="IPAllocated", severity=EventSeverity.NORMAL, message="m"))
        bus.clear()
        assert bus.get_history() == []
        assert bus.get_subscriptions() == {}

    def test_event_to_dict(self):
        event = Event(reason="IPAllocated", severity=EventSeverity.NORMAL, message="m", key="ns/a")
        data = event.to_dict()
        assert data["reason"] == "IPAllocated"
        assert data["severity"] == "Normal"
        assert data["key"] == "ns/a"
        assert data["event_id"]


class TestEventRecorder:
    """Tests for eventf"""

    def test_formats_message_and_uses_service_key(self, bus, recorder, make_service):
        svc = make_service("web", namespace="prod")
        event = recorder.eventf(svc, EventSeverity.NORMAL, "IPAllocated", "Assigned IP %r", "10.0.0.1", pool="p")

        assert event.message == "Assigned IP '10.0.0.1'"
        assert event.key == "prod/web"
        assert event.payload["pool"] == "p"
        assert event.payload["source"] == "lb-ipam-controller"
        assert bus.get_history() == [event]

    def test_message_without_args_is_literal(self, recorder, make_service):
        event = recorder.eventf(make_service("a"), EventSeverity.WARNING, "InternalError", "100% broken")
        assert event.message == "100% broken"


class TestAuditHandler:
    """Tests for the default audit handler"""

    def test_registered_for_all_events(self, bus):
        register_all_handlers(bus)
        assert bus.get_subscriptions() == {ALL_EVENTS: 1}

    def test_warning_events_logged_as_warning(self, caplog):
        event = Event(reason="AllocationFailed", severity=EventSeverity.WARNING, message="no room", key="ns/a")
        with caplog.at_level(logging.INFO, logger="lb_ipam.core.event_handlers"):
            audit_handler(event)

        assert caplog.records[-1].levelno == logging.WARNING
        assert "AllocationFailed" in caplog.text
        assert "service=ns/a" in caplog.text
