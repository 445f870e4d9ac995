"""
Event system for translation observability.

Provides decoupled event publishing and subscription so front ends can show
progress and debug output without hooking into the orchestrator's control
flow.
"""

import logging
import time
from enum import Enum
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

logger = logging.getLogger(__name__)


class EventType(Enum):
    """Translation event types."""

    # Whole-request events
    TRANSLATION_STARTED = "translation_started"
    TRANSLATION_COMPLETED = "translation_completed"
    TRANSLATION_PARTIAL = "translation_partial"
    TRANSLATION_FAILED = "translation_failed"

    # Language-level events
    LANGUAGE_STARTED = "language_started"
    LANGUAGE_STATUS_CHANGED = "language_status_changed"
    LANGUAGE_COMPLETED = "language_completed"
    LANGUAGE_FAILED = "language_failed"

    # Chunk-level events
    CHUNK_STARTED = "chunk_started"
    CHUNK_TRANSLATED = "chunk_translated"
    CHUNK_RETRY = "chunk_retry"

    # Provider fallback
    FALLBACK_USED = "fallback_used"


@dataclass
class Event:
    """Translation event.

    Attributes:
        type: Event type
        data: Event-specific data dictionary
        timestamp: Unix timestamp when event occurred
        source: Optional source identifier (e.g., "orchestrator")
    """
    type: EventType
    data: Dict[str, Any] = field(default_factory=dict)
    timestamp: float = field(default_factory=time.time)
    source: str = "unknown"


class EventBus:
    """Central event bus for translation events."""

    def __init__(self):
        self._listeners: Dict[EventType, List[Callable]] = {}
        self._history: List[Event] = []
        self._record_history = False

    def subscribe(self, event_type: EventType, callback: Callable[[Event], None]) -> None:
        """Subscribe to an event type.

        Args:
            event_type: Type of event to listen for
            callback: Function to call when event occurs (receives Event object)
        """
        self._listeners.setdefault(event_type, []).append(callback)

    def subscribe_multiple(
        self,
        event_types: List[EventType],
        callback: Callable[[Event], None]
    ) -> None:
        for event_type in event_types:
            self.subscribe(event_type, callback)

    def subscribe_all(self, callback: Callable[[Event], None]) -> None:
        self.subscribe_multiple(list(EventType), callback)

    def unsubscribe(self, event_type: EventType, callback: Callable) -> None:
        """Unsubscribe from an event type.

        Args:
            event_type: Event type
            callback: Previously registered callback
        """
        if event_type in self._listeners:
            try:
                self._listeners[event_type].remove(callback)
            except ValueError:
                pass  # Callback not found

    def publish(self, event: Event) -> None:
        """Publish an event to all subscribers.

        Listener failures are logged and never reach the publisher.
        """
        if self._record_history:
            self._history.append(event)

        for listener in list(self._listeners.get(event.type, [])):
            try:
                listener(event)
            except Exception as e:
                logger.exception(f"Event listener failed for {event.type.value}: {e}")

    def emit(self, event_type: EventType, source: str = "unknown", **data: Any) -> Event:
        """Build and publish an event in one call."""
        event = Event(type=event_type, data=data, source=source)
        self.publish(event)
        return event

    def enable_history(self) -> None:
        self._record_history = True

    def disable_history(self) -> None:
        self._record_history = False

    def get_history(self) -> List[Event]:
        """Get recorded event history in chronological order."""
        return self._history.copy()

    def clear_history(self) -> None:
        self._history.clear()

    def get_events_by_type(self, event_type: EventType) -> List[Event]:
        """Get all events of a specific type from history."""
        return [e for e in self._history if e.type == event_type]


# === Convenience Event Builders ===

def create_chunk_translated_event(
    language: str,
    chunk_index: int,
    total_chunks: int,
    source: str = "orchestrator"
) -> Event:
    """Create chunk translation progress event.

    Args:
        language: Language key
        chunk_index: Index of translated chunk
        total_chunks: Total number of chunks for the language

    Returns:
        Event object
    """
    completed = chunk_index + 1
    return Event(
        type=EventType.CHUNK_TRANSLATED,
        data={
            "language": language,
            "chunk_index": chunk_index,
            "total_chunks": total_chunks,
            "chunks_completed": completed,
            "progress": completed / total_chunks if total_chunks > 0 else 0
        },
        source=source
    )


def create_fallback_event(chunk_preview: str, primary: str, secondary: str,
                          reason: str, language: Optional[str] = None) -> Event:
    """Create fallback usage event."""
    return Event(
        type=EventType.FALLBACK_USED,
        data={
            "language": language,
            "primary": primary,
            "secondary": secondary,
            "reason": reason,
            "chunk_preview": chunk_preview[:50],
        },
        source="fallback_provider"
    )
