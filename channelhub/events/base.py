"""
Base Event Classes

Domain events emitted by the core after a mutation has committed. Events are
facts: frozen, timestamped, and addressed to the entity they concern.
"""

from abc import ABC
from datetime import datetime
from typing import Any, ClassVar
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field

from channelhub.domain.entities import utcnow


class EventMetadata(BaseModel):
    """Event metadata for tracking and correlation."""

    model_config = ConfigDict(frozen=True)

    event_id: UUID = Field(default_factory=uuid4, description="Unique event ID")
    timestamp: datetime = Field(default_factory=utcnow, description="Event occurrence time")
    correlation_id: UUID = Field(
        default_factory=uuid4, description="Correlation ID for request tracking"
    )
    actor_id: UUID | None = Field(default=None, description="User who triggered the event")
    source: str = Field(default="channelhub", description="Originating component")


class Event(BaseModel, ABC):
    """
    Abstract base event class.

    All events in the core inherit from this class.
    """

    model_config = ConfigDict(frozen=True)

    metadata: EventMetadata = Field(default_factory=EventMetadata)

    EVENT_TYPE: ClassVar[str] = "base.event"

    @classmethod
    def get_event_type(cls) -> str:
        """Get the event type identifier."""
        return cls.EVENT_TYPE

    def get_aggregate_id(self) -> UUID | None:
        """
        Get the ID of the entity this event concerns.

        Subclasses override to provide the specific entity ID.
        """
        return None

    def to_dict(self) -> dict[str, Any]:
        """Convert event to dictionary for serialization."""
        return {
            "event_type": self.get_event_type(),
            "metadata": self.metadata.model_dump(mode="json"),
            "payload": self.model_dump(mode="json", exclude={"metadata"}),
        }


class DomainEvent(Event, ABC):
    """Event attached to one aggregate (a user or a channel)."""

    aggregate_id: UUID = Field(..., description="ID of the entity concerned")
    aggregate_type: str = Field(..., description="Type of entity (e.g., 'Channel', 'User')")

    def get_aggregate_id(self) -> UUID | None:
        """Get the aggregate root ID."""
        return self.aggregate_id
