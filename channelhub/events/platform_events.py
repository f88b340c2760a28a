"""
Platform Domain Events

Events for identity, channel, subscription, reputation and messaging
operations.
"""

from typing import ClassVar
from uuid import UUID

from pydantic import Field

from channelhub.events.base import DomainEvent, Event


class UserRegisteredEvent(DomainEvent):
    """Emitted when a user account is created."""

    EVENT_TYPE: ClassVar[str] = "identity.user.registered"

    aggregate_type: str = "User"
    role: str = Field(...)
    email: str = Field(...)


class ChannelCreatedEvent(DomainEvent):
    """Emitted when a professor opens a channel."""

    EVENT_TYPE: ClassVar[str] = "channels.channel.created"

    aggregate_type: str = "Channel"
    professor_id: UUID = Field(...)
    name: str = Field(...)


class ChannelDeletedEvent(DomainEvent):
    """Emitted after a channel and its subscriptions have been removed."""

    EVENT_TYPE: ClassVar[str] = "channels.channel.deleted"

    aggregate_type: str = "Channel"
    professor_id: UUID = Field(...)
    retracted_subscribers: int = Field(..., ge=0)


class ContentAddedEvent(DomainEvent):
    """Emitted when content is appended to a channel."""

    EVENT_TYPE: ClassVar[str] = "channels.content.added"

    aggregate_type: str = "Channel"
    content_id: UUID = Field(...)
    content_type: str = Field(...)


class ChannelSubscribedEvent(DomainEvent):
    """
    Emitted on a first-time subscription.

    Carries the aggregates as they stood when the subscription committed.
    """

    EVENT_TYPE: ClassVar[str] = "subscriptions.channel.subscribed"

    aggregate_type: str = "Channel"
    student_id: UUID = Field(...)
    professor_id: UUID = Field(...)
    subscriber_count: int = Field(..., ge=0)
    professor_stars: float | None = Field(default=None)


class ChannelUnsubscribedEvent(DomainEvent):
    """Emitted when a student leaves a channel."""

    EVENT_TYPE: ClassVar[str] = "subscriptions.channel.unsubscribed"

    aggregate_type: str = "Channel"
    student_id: UUID = Field(...)
    subscriber_count: int = Field(..., ge=0)


class ProfessorFollowToggledEvent(DomainEvent):
    """Emitted whenever a student follows or unfollows a professor."""

    EVENT_TYPE: ClassVar[str] = "subscriptions.professor.follow_toggled"

    aggregate_type: str = "User"
    professor_id: UUID = Field(...)
    following: bool = Field(...)


class RatingsRecomputedEvent(Event):
    """Emitted at the end of a rating sweep."""

    EVENT_TYPE: ClassVar[str] = "reputation.ratings.recomputed"

    channels_updated: int = Field(..., ge=0)
    professors_updated: int = Field(..., ge=0)


class MessageSentEvent(DomainEvent):
    """Emitted when a direct message is appended to the log."""

    EVENT_TYPE: ClassVar[str] = "messaging.message.sent"

    aggregate_type: str = "ChatMessage"
    sender_id: UUID = Field(...)
    receiver_id: UUID = Field(...)


class AnnouncementPublishedEvent(DomainEvent):
    """Emitted when a professor publishes an announcement."""

    EVENT_TYPE: ClassVar[str] = "announcements.announcement.published"

    aggregate_type: str = "Announcement"
    professor_id: UUID = Field(...)
    title: str = Field(...)
