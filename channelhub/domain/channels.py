"""
Channel Domain Models

Channels are professor-owned subscription feeds; Content items are appended
to a channel and never edited afterwards.
"""

from datetime import datetime
from enum import Enum
from typing import ClassVar
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator

from channelhub.domain.entities import AbstractEntity, utcnow


class ContentType(str, Enum):
    """Kind of material attached to a channel."""

    DOCUMENT = "document"
    IMAGE = "image"
    VIDEO = "video"


class Content(BaseModel):
    """
    Immutable content item.

    The owning channel is implicit: content only exists inside
    ``Channel.content``.
    """

    model_config = ConfigDict(frozen=True)

    id: UUID = Field(default_factory=uuid4)
    type: ContentType = Field(..., description="document, image or video")
    title: str = Field(..., min_length=1, max_length=300)
    url: str = Field(..., min_length=1, description="Location reference (URI)")
    uploaded_at: datetime = Field(default_factory=utcnow)


class Channel(AbstractEntity):
    """
    Subscription channel.

    ``subscriber_count`` and ``star_rating`` are aggregates owned by the
    subscription engine; the registry refuses to change them through a
    regular update.
    """

    professor_id: UUID = Field(..., description="Owning professor (immutable)")
    name: str = Field(..., min_length=1, max_length=200)
    department: str = Field(..., min_length=1, max_length=200)
    description: str = Field(default="", max_length=5000)
    meeting_link: str | None = Field(default=None, description="Optional live meeting URI")
    content: list[Content] = Field(default_factory=list)
    star_rating: float = Field(default=0.0, ge=0.0, le=5.0)
    subscriber_count: int = Field(default=0, ge=0)
    price: int = Field(..., ge=0, description="Fixed subscription price")

    IMMUTABLE_FIELDS: ClassVar[frozenset[str]] = frozenset(
        {"id", "created_at", "professor_id", "content", "price"}
    )
    AGGREGATE_FIELDS: ClassVar[frozenset[str]] = frozenset({"subscriber_count", "star_rating"})

    @field_validator("name", "department")
    @classmethod
    def strip_text(cls, v: str) -> str:
        """Reject names that are only whitespace."""
        v = v.strip()
        if not v:
            raise ValueError("Value cannot be blank")
        return v

    def validate_business_rules(self) -> bool:
        """Validate channel business rules."""
        if self.subscriber_count < 0:
            raise ValueError("Subscriber count cannot be negative")
        if not 0.0 <= self.star_rating <= 5.0:
            raise ValueError("Star rating must be between 0 and 5")
        return True

    def append_content(self, item: Content) -> None:
        """Append a content item; the list is append-only."""
        self.content = [*self.content, item]
        self.mark_updated()
