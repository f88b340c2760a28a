"""
Event System

Domain events and in-process publish/subscribe.
"""

from channelhub.events.base import DomainEvent, Event, EventMetadata
from channelhub.events.platform_events import (
    AnnouncementPublishedEvent,
    ChannelCreatedEvent,
    ChannelDeletedEvent,
    ChannelSubscribedEvent,
    ChannelUnsubscribedEvent,
    ContentAddedEvent,
    MessageSentEvent,
    ProfessorFollowToggledEvent,
    RatingsRecomputedEvent,
    UserRegisteredEvent,
)
from channelhub.events.stream import EventRecorder, EventStream, EventSubscriber

__all__ = [
    # Base Events
    "Event",
    "DomainEvent",
    "EventMetadata",
    # Platform Events
    "UserRegisteredEvent",
    "ChannelCreatedEvent",
    "ChannelDeletedEvent",
    "ContentAddedEvent",
    "ChannelSubscribedEvent",
    "ChannelUnsubscribedEvent",
    "ProfessorFollowToggledEvent",
    "RatingsRecomputedEvent",
    "MessageSentEvent",
    "AnnouncementPublishedEvent",
    # Streaming
    "EventStream",
    "EventSubscriber",
    "EventRecorder",
]
