"""
Event bus unit tests
"""
import pytest
from datetime import datetime

from guestdesk.models.events import EventType
from guestdesk.services.event_bus import EventBus, Event


class TestEventBus:
    """Event bus tests"""

    @pytest.fixture
    def event_bus(self):
        """Fresh event bus state"""
        bus = EventBus()
        bus.clear_subscribers()
        bus.clear_history()
        yield bus
        bus.clear_subscribers()
        bus.clear_history()

    @pytest.fixture
    def sample_event(self):
        return Event(
            event_type=EventType.SERVICE_REQUEST_ASSIGNED,
            timestamp=datetime.now(),
            data={"request_id": "r-1", "staff_id": "s-1"},
            source="test"
        )

    def test_singleton(self):
        assert EventBus() is EventBus()

    def test_subscribe_and_publish(self, event_bus, sample_event):
        received_events = []

        def handler(event):
            received_events.append(event)

        event_bus.subscribe(EventType.SERVICE_REQUEST_ASSIGNED, handler)
        event_bus.publish(sample_event)

        assert len(received_events) == 1
        assert received_events[0].data["staff_id"] == "s-1"

    def test_enum_and_string_topics_match(self, event_bus, sample_event):
        received_events = []

        def handler(event):
            received_events.append(event)

        event_bus.subscribe("service_request.assigned", handler)
        event_bus.publish(sample_event)

        assert len(received_events) == 1

    def test_handlers_run_in_subscription_order(self, event_bus, sample_event):
        calls = []

        def first(event):
            calls.append("first")

        def second(event):
            calls.append("second")

        event_bus.subscribe(EventType.SERVICE_REQUEST_ASSIGNED, first)
        event_bus.subscribe(EventType.SERVICE_REQUEST_ASSIGNED, second)
        event_bus.publish(sample_event)

        assert calls == ["first", "second"]

    def test_subscribe_twice_registers_once(self, event_bus, sample_event):
        calls = []

        def handler(event):
            calls.append(event)

        event_bus.subscribe(EventType.SERVICE_REQUEST_ASSIGNED, handler)
        event_bus.subscribe(EventType.SERVICE_REQUEST_ASSIGNED, handler)
        event_bus.publish(sample_event)

        assert len(calls) == 1

    def test_unsubscribe(self, event_bus, sample_event):
        received_events = []

        def handler(event):
            received_events.append(event)

        event_bus.subscribe(EventType.SERVICE_REQUEST_ASSIGNED, handler)
        event_bus.unsubscribe(EventType.SERVICE_REQUEST_ASSIGNED, handler)
        event_bus.publish(sample_event)

        assert received_events == []

    def test_other_topics_not_delivered(self, event_bus, sample_event):
        received_events = []

        def handler(event):
            received_events.append(event)

        event_bus.subscribe(EventType.SERVICE_REQUEST_REASSIGNED, handler)
        event_bus.publish(sample_event)

        assert received_events == []

    def test_handler_exception_isolation(self, event_bus, sample_event):
        successful_calls = []

        def failing_handler(event):
            raise ValueError("Test error")

        def successful_handler(event):
            successful_calls.append(event)

        event_bus.subscribe(EventType.SERVICE_REQUEST_ASSIGNED, failing_handler)
        event_bus.subscribe(EventType.SERVICE_REQUEST_ASSIGNED, successful_handler)

        # Must not raise
        event_bus.publish(sample_event)

        assert len(successful_calls) == 1

    def test_event_history(self, event_bus):
        for i in range(5):
            event_bus.publish(Event(
                event_type=EventType.SERVICE_REQUEST_ASSIGNED,
                timestamp=datetime.now(),
                data={"index": i},
                source="test"
            ))

        history = event_bus.get_history()
        assert len(history) == 5

        # Newest first
        assert history[0].data["index"] == 4

    def test_event_history_filter(self, event_bus):
        for event_type in (EventType.SERVICE_REQUEST_ASSIGNED, EventType.SERVICE_REQUEST_REASSIGNED):
            event_bus.publish(Event(
                event_type=event_type,
                timestamp=datetime.now(),
                data={},
                source="test"
            ))

        history = event_bus.get_history(event_type=EventType.SERVICE_REQUEST_REASSIGNED)

        assert len(history) == 1
        assert history[0].event_type == EventType.SERVICE_REQUEST_REASSIGNED

    def test_event_ids_are_unique(self):
        first = Event(event_type="a", timestamp=datetime.now(), data={}, source="test")
        second = Event(event_type="a", timestamp=datetime.now(), data={}, source="test")
        assert first.event_id != second.event_id
