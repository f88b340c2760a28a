"""
Runtime Verification: Subscription Invariants

Invariants checked by the subscription engine after every mutation:

  I1  channel.subscriber_count == |{s : (s, channel) in relation}|
  I2  channel.id in student.subscribed_channels  <=>  (student, channel) in relation
  I3  after a sweep, floor <= channel.star_rating <= ceiling

The subscription relation is the source of truth; the count and the
per-student sets are derived views of it.
"""

from enum import Enum
from typing import Any
from uuid import UUID

import structlog

from channelhub.domain.channels import Channel
from channelhub.domain.entities import Student
from channelhub.domain.exceptions import DataIntegrityError

logger = structlog.get_logger(__name__)


class InvariantViolationType(Enum):
    """Types of invariant violations."""

    COUNT_DRIFT = "count_drift"
    MIRROR_MISMATCH = "mirror_mismatch"
    RATING_OUT_OF_RANGE = "rating_out_of_range"


class SubscriptionInvariantMonitor:
    """
    Runtime monitor for subscription and rating invariants.

    Keeps counters and the list of violations it has seen.
    """

    def __init__(self):
        self.violations: list[dict[str, Any]] = []
        self.verification_count = 0
        self.violation_count = 0

    def _record(self, violation: dict[str, Any]) -> None:
        self.violations.append(violation)
        self.violation_count += 1
        logger.error(
            "Invariant violated",
            type=violation["type"].value,
            message=violation["message"],
        )

    def check_channel(
        self,
        channel: Channel,
        subscribers: set[UUID],
        students: dict[UUID, Student],
    ) -> tuple[bool, str | None, InvariantViolationType | None]:
        """
        Check I1 and I2 for one channel.

        Args:
            channel: Channel as currently stored
            subscribers: Student ids in the relation for this channel
            students: Student records to compare against the relation

        Returns:
            Tuple of (is_valid, error_message, violation_type)
        """
        self.verification_count += 1

        if channel.subscriber_count != len(subscribers):
            violation = {
                "type": InvariantViolationType.COUNT_DRIFT,
                "channel_id": channel.id,
                "message": (
                    f"Channel {channel.id} reports {channel.subscriber_count} subscribers "
                    f"but has {len(subscribers)}"
                ),
            }
            self._record(violation)
            return False, violation["message"], InvariantViolationType.COUNT_DRIFT

        for student_id, student in students.items():
            in_relation = student_id in subscribers
            if in_relation != student.is_subscribed_to(channel.id):
                violation = {
                    "type": InvariantViolationType.MIRROR_MISMATCH,
                    "channel_id": channel.id,
                    "student_id": student_id,
                    "message": (
                        f"Student {student_id} subscription set disagrees with the relation "
                        f"for channel {channel.id}"
                    ),
                }
                self._record(violation)
                return False, violation["message"], InvariantViolationType.MIRROR_MISMATCH

        return True, None, None

    def check_rating(
        self, channel: Channel, floor: float, ceiling: float
    ) -> tuple[bool, str | None, InvariantViolationType | None]:
        """Check I3 for one channel."""
        self.verification_count += 1

        if not floor <= channel.star_rating <= ceiling:
            violation = {
                "type": InvariantViolationType.RATING_OUT_OF_RANGE,
                "channel_id": channel.id,
                "message": (
                    f"Channel {channel.id} rating {channel.star_rating} "
                    f"outside [{floor}, {ceiling}]"
                ),
            }
            self._record(violation)
            return False, violation["message"], InvariantViolationType.RATING_OUT_OF_RANGE

        return True, None, None

    def verify_all(
        self,
        channels: list[Channel],
        relation: dict[UUID, set[UUID]],
        students: dict[UUID, Student],
    ) -> tuple[bool, list[str]]:
        """
        Verify I1 and I2 across every channel.

        Returns:
            Tuple of (all_valid, list_of_violation_messages)
        """
        messages: list[str] = []
        for channel in channels:
            ok, message, _ = self.check_channel(channel, relation.get(channel.id, set()), students)
            if not ok and message:
                messages.append(message)

        known = {channel.id for channel in channels}
        for student_id, student in students.items():
            dangling = student.subscribed_channels - known
            if dangling:
                message = f"Student {student_id} subscribed to missing channels {sorted(map(str, dangling))}"
                self._record(
                    {
                        "type": InvariantViolationType.MIRROR_MISMATCH,
                        "student_id": student_id,
                        "message": message,
                    }
                )
                messages.append(message)

        return len(messages) == 0, messages

    def get_statistics(self) -> dict[str, Any]:
        """Get monitoring statistics."""
        return {
            "verification_count": self.verification_count,
            "violation_count": self.violation_count,
            "violation_rate": (
                self.violation_count / self.verification_count
                if self.verification_count > 0 else 0.0
            ),
        }


def assert_subscription_invariant(
    monitor: SubscriptionInvariantMonitor,
    channel: Channel,
    subscribers: set[UUID],
    students: dict[UUID, Student],
) -> None:
    """
    Assert I1/I2 for a channel.

    Raises:
        DataIntegrityError: If the channel's aggregates have drifted
    """
    ok, message, violation_type = monitor.check_channel(channel, subscribers, students)
    if not ok:
        raise DataIntegrityError(
            message or "Subscription invariant violated",
            invariant=violation_type.value if violation_type else None,
            context={"channel_id": str(channel.id)},
        )
