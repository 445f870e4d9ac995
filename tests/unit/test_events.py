"""Unit tests for Event system."""

import pytest
from multitranslate.core.events import (
    EventBus,
    Event,
    EventType,
    create_chunk_translated_event,
    create_fallback_event,
)


class TestEventBus:
    """Test EventBus functionality."""

    def test_subscribe_and_publish(self):
        """Subscribe to event and receive it when published."""
        bus = EventBus()
        received_events = []

        bus.subscribe(EventType.CHUNK_TRANSLATED, received_events.append)
        bus.publish(Event(type=EventType.CHUNK_TRANSLATED, data={"language": "spanish"}))

        assert len(received_events) == 1
        assert received_events[0].data["language"] == "spanish"

    def test_subscribe_multiple(self):
        """Subscribe to multiple event types with same handler."""
        bus = EventBus()
        received_events = []

        bus.subscribe_multiple([
            EventType.LANGUAGE_STARTED,
            EventType.LANGUAGE_COMPLETED,
            EventType.LANGUAGE_FAILED
        ], received_events.append)

        bus.publish(Event(type=EventType.LANGUAGE_STARTED))
        bus.publish(Event(type=EventType.LANGUAGE_COMPLETED))
        bus.publish(Event(type=EventType.LANGUAGE_FAILED))
        bus.publish(Event(type=EventType.CHUNK_RETRY))  # Not subscribed

        assert len(received_events) == 3

    def test_subscribe_all(self):
        bus = EventBus()
        received = []
        bus.subscribe_all(received.append)

        for event_type in EventType:
            bus.publish(Event(type=event_type))

        assert len(received) == len(EventType)

    def test_unsubscribe(self):
        """Unsubscribe from event type."""
        bus = EventBus()
        received_count = [0]

        def handler(event: Event):
            received_count[0] += 1

        bus.subscribe(EventType.CHUNK_TRANSLATED, handler)
        bus.publish(Event(type=EventType.CHUNK_TRANSLATED))
        bus.unsubscribe(EventType.CHUNK_TRANSLATED, handler)
        bus.publish(Event(type=EventType.CHUNK_TRANSLATED))

        assert received_count[0] == 1

    def test_unsubscribe_unknown_handler_is_noop(self):
        bus = EventBus()
        bus.unsubscribe(EventType.CHUNK_TRANSLATED, lambda e: None)

    def test_failing_listener_does_not_break_publisher(self):
        """A listener exception is logged, other listeners still run."""
        bus = EventBus()
        received = []

        def broken(event):
            raise RuntimeError("listener bug")

        bus.subscribe(EventType.TRANSLATION_STARTED, broken)
        bus.subscribe(EventType.TRANSLATION_STARTED, received.append)
        bus.publish(Event(type=EventType.TRANSLATION_STARTED))

        assert len(received) == 1

    def test_event_history(self):
        """Test event history recording."""
        bus = EventBus()

        # History disabled by default
        bus.publish(Event(type=EventType.CHUNK_STARTED))
        assert len(bus.get_history()) == 0

        bus.enable_history()
        bus.publish(Event(type=EventType.CHUNK_STARTED))
        bus.publish(Event(type=EventType.CHUNK_TRANSLATED))
        assert [e.type for e in bus.get_history()] == [EventType.CHUNK_STARTED, EventType.CHUNK_TRANSLATED]
        assert len(bus.get_events_by_type(EventType.CHUNK_TRANSLATED)) == 1

        bus.clear_history()
        assert bus.get_history() == []

        bus.disable_history()
        bus.publish(Event(type=EventType.CHUNK_STARTED))
        assert bus.get_history() == []

    def test_emit_builds_event(self):
        bus = EventBus()
        received = []
        bus.subscribe(EventType.FALLBACK_USED, received.append)

        event = bus.emit(EventType.FALLBACK_USED, source="test", language="french")

        assert received == [event]
        assert event.source == "test"
        assert event.data == {"language": "french"}


class TestEventBuilders:
    """Test convenience event constructors."""

    def test_chunk_translated_event_progress(self):
        event = create_chunk_translated_event("spanish", chunk_index=1, total_chunks=4)
        assert event.type == EventType.CHUNK_TRANSLATED
        assert event.data["chunks_completed"] == 2
        assert event.data["progress"] == pytest.approx(0.5)

    def test_chunk_translated_event_zero_total(self):
        event = create_chunk_translated_event("spanish", chunk_index=0, total_chunks=0)
        assert event.data["progress"] == 0

    def test_fallback_event_truncates_preview(self):
        event = create_fallback_event("x" * 200, "google", "openai", "429", language="arabic")
        assert event.type == EventType.FALLBACK_USED
        assert len(event.data["chunk_preview"]) == 50
        assert event.data["secondary"] == "openai"
        assert event.source == "fallback_provider"
