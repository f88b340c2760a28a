"""
Announcement Store

Append-only professor broadcasts.
"""

from uuid import UUID

import pydantic
import structlog

from channelhub.domain.exceptions import ValidationError
from channelhub.domain.messaging import Announcement
from channelhub.events.platform_events import AnnouncementPublishedEvent
from channelhub.events.stream import EventStream
from channelhub.stores.identity import IdentityStore

logger = structlog.get_logger(__name__)


class AnnouncementStore:
    """In-memory announcement log."""

    def __init__(self, identity: IdentityStore, events: EventStream):
        self.identity = identity
        self.events = events
        self._announcements: list[Announcement] = []

    async def publish(self, professor_id: UUID, title: str, body: str) -> Announcement:
        """
        Publish an announcement.

        Raises:
            EntityNotFoundError: professor_id does not name a Professor
            ValidationError: Empty title or body
        """
        await self.identity.get_professor(professor_id)

        try:
            announcement = Announcement(professor_id=professor_id, title=title, body=body)
        except pydantic.ValidationError as e:
            raise ValidationError.from_pydantic(e, "announcement") from e

        self._announcements.append(announcement)

        logger.info(
            "Announcement published",
            announcement_id=str(announcement.id),
            professor_id=str(professor_id),
        )

        await self.events.publish(
            AnnouncementPublishedEvent(
                aggregate_id=announcement.id, professor_id=professor_id, title=announcement.title
            )
        )
        return announcement

    async def list_by_professor(self, professor_id: UUID) -> list[Announcement]:
        """A professor's announcements, newest first."""
        return self._newest_first(
            [a for a in self._announcements if a.professor_id == professor_id]
        )

    async def list_announcements(self) -> list[Announcement]:
        """Every announcement, newest first."""
        return self._newest_first(self._announcements)

    @staticmethod
    def _newest_first(items: list[Announcement]) -> list[Announcement]:
        # Reverse first so equal timestamps come out latest-published first.
        return sorted(reversed(items), key=lambda a: a.created_at, reverse=True)
