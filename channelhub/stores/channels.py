"""
Channel Registry

Owns Channel and Content records. Ownership (``professor_id``) is fixed at
creation; aggregates (``subscriber_count``, ``star_rating``) are written only
by the subscription engine.

Deleting a channel runs the registered deletion hooks while the channel lock
is held, so every subscriber set is cleaned before the channel disappears.
"""

from collections.abc import Awaitable, Callable, Mapping
from typing import Any
from uuid import UUID

import pydantic
import structlog

from channelhub.concurrency.locking import EntityLockManager, channel_key
from channelhub.config import Settings
from channelhub.domain.channels import Channel, Content
from channelhub.domain.exceptions import EntityNotFoundError, ImmutableFieldError, ValidationError
from channelhub.events.platform_events import (
    ChannelCreatedEvent,
    ChannelDeletedEvent,
    ContentAddedEvent,
)
from channelhub.events.stream import EventStream
from channelhub.stores.identity import STORE_ASSIGNED_FIELDS, IdentityStore

logger = structlog.get_logger(__name__)

DeletionHook = Callable[[Channel], Awaitable[int]]


class ChannelRegistry:
    """In-memory channel repository keyed by channel id, in creation order."""

    def __init__(
        self,
        identity: IdentityStore,
        locks: EntityLockManager,
        events: EventStream,
        settings: Settings,
    ):
        """
        Initialize registry.

        Args:
            identity: Identity store used to resolve owning professors
            locks: Shared per-entity lock manager
            events: Stream receiving channel events
            settings: Pricing configuration
        """
        self.identity = identity
        self.locks = locks
        self.events = events
        self.settings = settings
        self._channels: dict[UUID, Channel] = {}
        self._deletion_hooks: list[DeletionHook] = []

    def add_deletion_hook(self, hook: DeletionHook) -> None:
        """Register a coroutine run (under the channel lock) before a channel is removed."""
        self._deletion_hooks.append(hook)

    async def create_channel(self, professor_id: UUID, fields: Mapping[str, Any]) -> Channel:
        """
        Open a new channel for a professor.

        The channel starts with no content, zero subscribers, a zero rating
        and the configured fixed price.

        Raises:
            EntityNotFoundError: professor_id does not name a Professor
            ImmutableFieldError: fields include owner, content, price or aggregates
            ValidationError: Invalid field values
        """
        await self.identity.get_professor(professor_id)

        blocked = (
            (Channel.IMMUTABLE_FIELDS | Channel.AGGREGATE_FIELDS | STORE_ASSIGNED_FIELDS)
            & fields.keys()
        )
        if blocked:
            raise ImmutableFieldError("Channel", list(blocked))

        try:
            channel = Channel(
                **fields,
                professor_id=professor_id,
                price=self.settings.channel_price,
            )
        except pydantic.ValidationError as e:
            raise ValidationError.from_pydantic(e, "channel") from e

        self._channels[channel.id] = channel

        logger.info(
            "Channel created",
            channel_id=str(channel.id),
            professor_id=str(professor_id),
            name=channel.name,
        )

        await self.events.publish(
            ChannelCreatedEvent(
                aggregate_id=channel.id, professor_id=professor_id, name=channel.name
            )
        )
        return channel.model_copy(deep=True)

    def find_channel(self, channel_id: UUID) -> Channel | None:
        """Non-raising lookup returning a copy, or None."""
        channel = self._channels.get(channel_id)
        return channel.model_copy(deep=True) if channel is not None else None

    async def get_channel(self, channel_id: UUID) -> Channel:
        """
        Get channel by ID.

        Raises:
            EntityNotFoundError: Unknown channel
        """
        channel = self.find_channel(channel_id)
        if channel is None:
            raise EntityNotFoundError("Channel", str(channel_id))
        return channel

    async def update_channel(
        self,
        channel_id: UUID,
        updates: Mapping[str, Any],
        *,
        allow_aggregates: bool = False,
    ) -> Channel:
        """
        Merge fields into a channel.

        Args:
            channel_id: Channel UUID
            updates: Fields to change
            allow_aggregates: Permit writes to subscriber_count / star_rating

        Raises:
            EntityNotFoundError: Unknown channel
            ImmutableFieldError: Owner, content, price or (without allow_aggregates) aggregates
            ValidationError: Unknown fields or invalid values
        """
        async with self.locks.hold(channel_key(channel_id)):
            current = self._channels.get(channel_id)
            if current is None:
                raise EntityNotFoundError("Channel", str(channel_id))

            blocked = (Channel.IMMUTABLE_FIELDS | STORE_ASSIGNED_FIELDS) & updates.keys()
            if not allow_aggregates:
                blocked |= Channel.AGGREGATE_FIELDS & updates.keys()
            if blocked:
                raise ImmutableFieldError("Channel", list(blocked))

            unknown = updates.keys() - Channel.model_fields.keys()
            if unknown:
                raise ValidationError(
                    f"Unknown Channel fields: {', '.join(sorted(unknown))}",
                    field=sorted(unknown)[0],
                )

            try:
                updated = Channel.model_validate({**current.model_dump(), **updates})
                updated.validate_business_rules()
            except pydantic.ValidationError as e:
                raise ValidationError.from_pydantic(e, "channel") from e
            except ValueError as e:
                raise ValidationError(str(e)) from e

            updated.mark_updated()
            self._channels[channel_id] = updated

        logger.info("Channel updated", channel_id=str(channel_id), fields=sorted(updates.keys()))
        return updated.model_copy(deep=True)

    async def set_aggregates(
        self,
        channel_id: UUID,
        *,
        subscriber_count: int | None = None,
        star_rating: float | None = None,
    ) -> Channel:
        """Write the derived aggregates of a channel."""
        updates: dict[str, Any] = {}
        if subscriber_count is not None:
            updates["subscriber_count"] = subscriber_count
        if star_rating is not None:
            updates["star_rating"] = star_rating
        return await self.update_channel(channel_id, updates, allow_aggregates=True)

    async def delete_channel(self, channel_id: UUID) -> bool:
        """
        Remove a channel and cascade to its subscribers.

        Returns:
            True once the channel is gone

        Raises:
            EntityNotFoundError: Unknown channel
        """
        async with self.locks.hold(channel_key(channel_id)):
            channel = self._channels.get(channel_id)
            if channel is None:
                raise EntityNotFoundError("Channel", str(channel_id))

            retracted = 0
            for hook in self._deletion_hooks:
                retracted += await hook(channel.model_copy(deep=True))

            del self._channels[channel_id]

        logger.info(
            "Channel deleted",
            channel_id=str(channel_id),
            professor_id=str(channel.professor_id),
            retracted_subscribers=retracted,
        )

        await self.events.publish(
            ChannelDeletedEvent(
                aggregate_id=channel_id,
                professor_id=channel.professor_id,
                retracted_subscribers=retracted,
            )
        )
        return True

    async def add_content(self, channel_id: UUID, fields: Mapping[str, Any]) -> Content:
        """
        Append a content item to a channel.

        The store assigns the content id and upload timestamp.

        Raises:
            EntityNotFoundError: Unknown channel
            ValidationError: Invalid content fields
        """
        assigned = {"id", "uploaded_at"} & fields.keys()
        if assigned:
            raise ValidationError(
                f"Fields assigned by the store cannot be supplied: {', '.join(sorted(assigned))}",
                field=sorted(assigned)[0],
            )

        try:
            item = Content(**fields)
        except pydantic.ValidationError as e:
            raise ValidationError.from_pydantic(e, "content") from e

        async with self.locks.hold(channel_key(channel_id)):
            channel = self._channels.get(channel_id)
            if channel is None:
                raise EntityNotFoundError("Channel", str(channel_id))
            channel.append_content(item)

        logger.info(
            "Content added",
            channel_id=str(channel_id),
            content_id=str(item.id),
            content_type=item.type.value,
        )

        await self.events.publish(
            ContentAddedEvent(
                aggregate_id=channel_id, content_id=item.id, content_type=item.type.value
            )
        )
        return item

    async def list_channels(self) -> list[Channel]:
        """All channels in creation order."""
        return [channel.model_copy(deep=True) for channel in self._channels.values()]

    async def list_by_professor(self, professor_id: UUID) -> list[Channel]:
        """A professor's channels in creation order."""
        return [
            channel.model_copy(deep=True)
            for channel in self._channels.values()
            if channel.professor_id == professor_id
        ]

    async def search_channels(
        self, term: str | None = None, department: str | None = None
    ) -> list[Channel]:
        """
        Case-insensitive channel search.

        ``term`` matches the channel name, description or the owning
        professor's name; ``department`` is an exact match.
        """
        needle = (term or "").strip().lower()
        results: list[Channel] = []

        for channel in self._channels.values():
            if department and channel.department != department:
                continue
            if needle:
                owner = self.identity.find_user(channel.professor_id)
                haystack = (channel.name, channel.description, owner.name if owner else "")
                if not any(needle in value.lower() for value in haystack):
                    continue
            results.append(channel.model_copy(deep=True))

        return results

    def channel_ids(self) -> list[UUID]:
        return list(self._channels)
