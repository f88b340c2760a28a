"""
Messaging Domain Models

Direct chat messages and professor announcements. Both are append-only
records: frozen once created.
"""

from datetime import datetime
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator

from channelhub.domain.entities import utcnow


class ChatMessage(BaseModel):
    """A single direct message between two users."""

    model_config = ConfigDict(frozen=True)

    id: UUID = Field(default_factory=uuid4)
    sender_id: UUID
    receiver_id: UUID
    body: str = Field(..., min_length=1, max_length=10000)
    created_at: datetime = Field(default_factory=utcnow)

    @field_validator("body")
    @classmethod
    def strip_body(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Message body cannot be empty")
        return v

    def involves(self, user_a: UUID, user_b: UUID) -> bool:
        """True when the message belongs to the {user_a, user_b} thread."""
        return {self.sender_id, self.receiver_id} == {user_a, user_b}


class Announcement(BaseModel):
    """Professor-authored broadcast post."""

    model_config = ConfigDict(frozen=True)

    id: UUID = Field(default_factory=uuid4)
    professor_id: UUID
    title: str = Field(..., min_length=1, max_length=300)
    body: str = Field(..., min_length=1, max_length=10000)
    created_at: datetime = Field(default_factory=utcnow)
