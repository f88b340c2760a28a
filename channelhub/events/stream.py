"""
Event Stream for Publish/Subscribe

In-process pub/sub used by the stores to announce committed mutations.
Supports multiple subscribers, polymorphic subscription by event base class,
bounded history and replay.
"""

from abc import ABC, abstractmethod
from collections import defaultdict
from datetime import datetime
from typing import TypeVar

import structlog

from channelhub.events.base import Event

logger = structlog.get_logger(__name__)

TEvent = TypeVar("TEvent", bound=Event)


class EventSubscriber(ABC):
    """
    Abstract base class for event subscribers.

    Subscribers implement this interface to receive events from streams.
    """

    @abstractmethod
    async def handle_event(self, event: Event) -> None:
        """
        Handle an event.

        Args:
            event: Event to handle
        """


class EventRecorder(EventSubscriber):
    """Subscriber that keeps every event it receives, in order."""

    def __init__(self):
        self.events: list[Event] = []

    async def handle_event(self, event: Event) -> None:
        self.events.append(event)

    def of_type(self, event_type: type[TEvent]) -> list[TEvent]:
        return [e for e in self.events if isinstance(e, event_type)]


class EventStream:
    """
    Event stream for publish/subscribe pattern.

    Publishing never fails because of a subscriber: handler errors are
    logged and the remaining subscribers are still notified.
    """

    def __init__(self, stream_id: str, max_history: int | None = 10_000):
        """
        Initialize event stream.

        Args:
            stream_id: Unique stream identifier
            max_history: Events kept for replay (None = unlimited)
        """
        self.stream_id = stream_id
        self._subscribers: dict[type[Event], list[EventSubscriber]] = defaultdict(list)
        self._event_history: list[Event] = []
        self._max_history = max_history
        logger.info("Event stream created", stream_id=stream_id)

    def subscribe(self, event_type: type[TEvent], subscriber: EventSubscriber) -> None:
        """
        Subscribe to events of a specific type (and its subclasses).

        Args:
            event_type: Event type class to subscribe to
            subscriber: Subscriber instance
        """
        if subscriber not in self._subscribers[event_type]:
            self._subscribers[event_type].append(subscriber)
            logger.info(
                "Subscriber registered",
                stream_id=self.stream_id,
                event_type=event_type.__name__,
                subscriber=subscriber.__class__.__name__,
            )

    def unsubscribe(self, event_type: type[TEvent], subscriber: EventSubscriber) -> None:
        """Remove a subscriber for an event type."""
        if subscriber in self._subscribers[event_type]:
            self._subscribers[event_type].remove(subscriber)
            logger.info(
                "Subscriber unregistered",
                stream_id=self.stream_id,
                event_type=event_type.__name__,
            )

    def _subscribers_for(self, event: Event) -> list[EventSubscriber]:
        notified: list[EventSubscriber] = []
        for base_type in type(event).__mro__:
            if isinstance(base_type, type) and issubclass(base_type, Event):
                for subscriber in self._subscribers.get(base_type, []):
                    if subscriber not in notified:
                        notified.append(subscriber)
        return notified

    async def publish(self, event: Event) -> None:
        """
        Publish an event to all subscribers.

        Args:
            event: Event to publish
        """
        self._event_history.append(event)
        if self._max_history is not None and len(self._event_history) > self._max_history:
            self._event_history = self._event_history[-self._max_history:]

        subscribers = self._subscribers_for(event)
        for subscriber in subscribers:
            try:
                await subscriber.handle_event(event)
            except Exception as e:
                logger.error(
                    "Subscriber error",
                    stream_id=self.stream_id,
                    event_type=event.get_event_type(),
                    subscriber=subscriber.__class__.__name__,
                    error=str(e),
                )

        logger.debug(
            "Event published",
            stream_id=self.stream_id,
            event_type=event.get_event_type(),
            subscribers_notified=len(subscribers),
        )

    def get_event_history(
        self,
        event_type: type[Event] | None = None,
        start_time: datetime | None = None,
    ) -> list[Event]:
        """
        Get event history with optional filters.

        Args:
            event_type: Optional event type filter
            start_time: Optional start time filter

        Returns:
            List of matching events, oldest first
        """
        events = list(self._event_history)
        if event_type:
            events = [e for e in events if isinstance(e, event_type)]
        if start_time:
            events = [e for e in events if e.metadata.timestamp >= start_time]
        return events

    async def replay_events(
        self,
        subscriber: EventSubscriber,
        event_type: type[Event] | None = None,
    ) -> int:
        """
        Replay historical events to a subscriber.

        Returns:
            Number of events replayed
        """
        events = self.get_event_history(event_type=event_type)
        for event in events:
            try:
                await subscriber.handle_event(event)
            except Exception as e:
                logger.error(
                    "Replay error",
                    stream_id=self.stream_id,
                    event_type=event.get_event_type(),
                    error=str(e),
                )

        logger.info("Events replayed", stream_id=self.stream_id, count=len(events))
        return len(events)
