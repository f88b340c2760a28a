"""
Operation Outcomes

Normal results of the subscription operations. Idempotent repeats and
unresolvable identifiers are reported here rather than raised.
"""

from enum import Enum
from uuid import UUID

from pydantic import BaseModel, Field


class SubscriptionOutcome(str, Enum):
    """Result of ``subscribe``."""

    SUBSCRIBED = "subscribed"
    ALREADY_SUBSCRIBED = "already_subscribed"
    NOT_FOUND = "not_found"


class UnsubscriptionOutcome(str, Enum):
    """Result of ``unsubscribe``."""

    UNSUBSCRIBED = "unsubscribed"
    NOT_SUBSCRIBED = "not_subscribed"
    NOT_FOUND = "not_found"


class RatingsReport(BaseModel):
    """Summary of one rating sweep."""

    skipped: bool = Field(default=False, description="True if another sweep was in flight")
    channel_ratings: dict[UUID, float] = Field(default_factory=dict)
    professor_stars: dict[UUID, float] = Field(default_factory=dict)

    @property
    def channels_updated(self) -> int:
        return len(self.channel_ratings)

    @property
    def professors_updated(self) -> int:
        return len(self.professor_stars)
