"""
Messaging Log

Append-only store of direct messages between users. A conversation is the
unordered pair {a, b}; its history is ordered by creation time with ties
kept in insertion order.
"""

from uuid import UUID

import pydantic
import structlog

from channelhub.domain.exceptions import InvalidParticipantError, ValidationError
from channelhub.domain.messaging import ChatMessage
from channelhub.events.platform_events import MessageSentEvent
from channelhub.events.stream import EventStream
from channelhub.stores.identity import IdentityStore

logger = structlog.get_logger(__name__)


class MessagingLog:
    """In-memory chat log."""

    def __init__(self, identity: IdentityStore, events: EventStream):
        self.identity = identity
        self.events = events
        self._messages: list[ChatMessage] = []

    async def send(self, sender_id: UUID, receiver_id: UUID, body: str) -> ChatMessage:
        """
        Append a message from sender to receiver.

        Args:
            sender_id: Sending user
            receiver_id: Receiving user
            body: Message text (surrounding whitespace is trimmed)

        Returns:
            The stored message with a fresh id and timestamp

        Raises:
            InvalidParticipantError: Either id does not resolve to a known user
            ValidationError: Empty or oversized body
        """
        for participant_id in (sender_id, receiver_id):
            if self.identity.find_user(participant_id) is None:
                raise InvalidParticipantError(str(participant_id))

        try:
            message = ChatMessage(sender_id=sender_id, receiver_id=receiver_id, body=body)
        except pydantic.ValidationError as e:
            raise ValidationError.from_pydantic(e, "message") from e

        self._messages.append(message)

        logger.info(
            "Message sent",
            message_id=str(message.id),
            sender_id=str(sender_id),
            receiver_id=str(receiver_id),
        )

        await self.events.publish(
            MessageSentEvent(
                aggregate_id=message.id, sender_id=sender_id, receiver_id=receiver_id
            )
        )
        return message

    async def history(self, user_a: UUID, user_b: UUID) -> list[ChatMessage]:
        """
        Messages exchanged between two users, in either direction.

        Symmetric in its arguments. Unknown ids yield an empty history.
        """
        thread = [message for message in self._messages if message.involves(user_a, user_b)]
        # sorted() is stable, so equal timestamps keep insertion order.
        return sorted(thread, key=lambda message: message.created_at)

    async def conversations(self, user_id: UUID) -> list[UUID]:
        """Conversation partners of a user, most recent exchange first."""
        partners: list[UUID] = []
        for message in reversed(self._messages):
            if user_id not in (message.sender_id, message.receiver_id):
                continue
            partner = message.receiver_id if message.sender_id == user_id else message.sender_id
            if partner not in partners:
                partners.append(partner)
        return partners

    def count(self) -> int:
        return len(self._messages)
