"""Unit tests for the messaging log."""

from uuid import uuid4

import pytest

from channelhub.domain.exceptions import InvalidParticipantError, ValidationError
from channelhub.events.platform_events import MessageSentEvent


class TestSend:
    """Tests for MessagingLog.send."""

    @pytest.mark.asyncio
    async def test_send_appends_message(self, platform, recorder, professor, student) -> None:
        message = await platform.messages.send(student.id, professor.id, "  hello  ")

        assert message.sender_id == student.id
        assert message.receiver_id == professor.id
        assert message.body == "hello"
        assert platform.messages.count() == 1
        [event] = recorder.of_type(MessageSentEvent)
        assert event.aggregate_id == message.id

    @pytest.mark.asyncio
    async def test_unknown_participant(self, platform, student) -> None:
        """Test that either unresolved id fails with InvalidParticipant."""
        ghost = uuid4()

        with pytest.raises(InvalidParticipantError) as exc_info:
            await platform.messages.send(student.id, ghost, "hello")
        assert exc_info.value.participant_id == str(ghost)

        with pytest.raises(InvalidParticipantError):
            await platform.messages.send(ghost, student.id, "hello")
        assert platform.messages.count() == 0

    @pytest.mark.asyncio
    async def test_message_to_self_is_stored(self, platform, student) -> None:
        """Test that a user can message themselves and read it back."""
        note = await platform.messages.send(student.id, student.id, "note to self")

        assert note.sender_id == note.receiver_id == student.id
        assert await platform.messages.history(student.id, student.id) == [note]

    @pytest.mark.asyncio
    async def test_blank_body_is_rejected(self, platform, professor, student) -> None:
        with pytest.raises(ValidationError):
            await platform.messages.send(student.id, professor.id, "   ")


class TestHistory:
    """Tests for MessagingLog.history and conversations."""

    @pytest.mark.asyncio
    async def test_hello_hi_exchange(self, platform, professor, student) -> None:
        """Test that a two-message exchange comes back in send order."""
        hello = await platform.messages.send(student.id, professor.id, "hello")
        hi = await platform.messages.send(professor.id, student.id, "hi")

        history = await platform.messages.history(student.id, professor.id)

        assert [m.id for m in history] == [hello.id, hi.id]
        assert [m.body for m in history] == ["hello", "hi"]

    @pytest.mark.asyncio
    async def test_history_is_symmetric_and_ordered(
        self, platform, professor, student, make_student
    ) -> None:
        other = await make_student(1)
        for i in range(5):
            await platform.messages.send(student.id, professor.id, f"q{i}")
            await platform.messages.send(professor.id, student.id, f"a{i}")
            await platform.messages.send(other.id, professor.id, f"noise{i}")

        forward = await platform.messages.history(student.id, professor.id)
        backward = await platform.messages.history(professor.id, student.id)

        assert forward == backward
        assert len(forward) == 10
        assert all(a.created_at <= b.created_at for a, b in zip(forward, forward[1:]))
        assert all("noise" not in m.body for m in forward)

    @pytest.mark.asyncio
    async def test_history_for_unknown_pair_is_empty(self, platform, student) -> None:
        assert await platform.messages.history(student.id, uuid4()) == []

    @pytest.mark.asyncio
    async def test_conversations_most_recent_first(
        self, platform, professor, student, make_student
    ) -> None:
        other = await make_student(1)
        await platform.messages.send(student.id, professor.id, "first")
        await platform.messages.send(other.id, professor.id, "second")

        assert await platform.messages.conversations(professor.id) == [other.id, student.id]

        await platform.messages.send(professor.id, student.id, "third")

        assert await platform.messages.conversations(professor.id) == [student.id, other.id]
        assert await platform.messages.conversations(student.id) == [professor.id]

    @pytest.mark.asyncio
    async def test_equal_timestamps_keep_send_order(
        self, platform, professor, student, frozen_clock
    ) -> None:
        """Test that messages sharing a timestamp come back in insertion order."""
        sent = [
            await platform.messages.send(student.id, professor.id, "one"),
            await platform.messages.send(professor.id, student.id, "two"),
            await platform.messages.send(student.id, professor.id, "three"),
        ]
        assert all(m.created_at == frozen_clock for m in sent)

        history = await platform.messages.history(professor.id, student.id)

        assert [m.id for m in history] == [m.id for m in sent]
