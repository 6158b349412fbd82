"""In-process event channel for UI-facing state changes."""

from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Optional

from app.infrastructure.logging.logger import logger

APPOINTMENTS_CHANGED = "appointments.changed"
MERGE_COMPLETED = "appointments.merge_completed"
SYNC_STATUS_CHANGED = "sync.status_changed"
AUTH_STATE_CHANGED = "auth.state_changed"
ALL_TOPICS = "*"


@dataclass(frozen=True)
class Event:
    """Event published on the channel."""

    topic: str
    payload: dict[str, Any] = field(default_factory=dict)
    occurred_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


Handler = Callable[[Event], None]


class EventChannel:
    """Topic-routed publish/subscribe channel.

    Handlers run synchronously in publish order; a failing handler is logged
    and does not stop delivery to the others.
    """

    def __init__(self) -> None:
        """Initialize with no subscribers."""
        self._subscribers: dict[str, list[Handler]] = defaultdict(list)
        self._history: list[Event] = []
        self._history_limit = 100

    def subscribe(self, topic: str, handler: Handler) -> Callable[[], None]:
        """
        Subscribe a handler to a topic ("*" for all).

        Args:
            topic: Topic name
            handler: Callback receiving each event

        Returns:
            Function that removes the subscription
        """
        self._subscribers[topic].append(handler)

        def _unsubscribe() -> None:
            if handler in self._subscribers.get(topic, []):
                self._subscribers[topic].remove(handler)

        return _unsubscribe

    def publish(self, topic: str, payload: Optional[dict[str, Any]] = None) -> Event:
        """
        Publish an event to a topic.

        Args:
            topic: Topic name
            payload: Event fields

        Returns:
            The published event
        """
        event = Event(topic=topic, payload=payload or {})
        self._history.append(event)
        if len(self._history) > self._history_limit:
            self._history.pop(0)

        handlers = list(self._subscribers.get(topic, []))
        handlers.extend(self._subscribers.get(ALL_TOPICS, []))
        for handler in handlers:
            try:
                handler(event)
            except Exception as exc:
                logger.error(f"EventChannel handler failed for topic '{topic}': {exc}")
        return event

    def recent(self, topic: Optional[str] = None) -> list[Event]:
        """Recently published events, optionally filtered by topic."""
        if topic is None:
            return list(self._history)
        return [event for event in self._history if event.topic == topic]
