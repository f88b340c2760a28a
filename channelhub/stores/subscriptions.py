"""
Subscription & Reputation Engine

Owns the Student-Channel subscription relation and keeps three aggregates
consistent with it:

- ``Student.subscribed_channels``  (mirror of the relation, per student)
- ``Channel.subscriber_count``      (size of the relation, per channel)
- ``Channel.star_rating`` / ``Professor.stars`` (reputation)

Reputation has two writers. ``subscribe`` adds a fixed bonus to the owning
professor as immediate feedback; ``recompute_ratings`` overwrites every
rating from subscriber counts. The sweep is authoritative: a bonus lives
only until the next sweep replaces it with the mean of the channel ratings.

Lock discipline: every mutation holds ``channel:<id>`` before any
``user:<id>`` key, and the sweep takes one entity lock at a time.
"""

from decimal import ROUND_HALF_UP, Decimal
from uuid import UUID

import structlog

from channelhub.concurrency.locking import (
    EntityLockManager,
    SingleFlight,
    channel_key,
    user_key,
)
from channelhub.config import Settings, get_settings
from channelhub.domain.channels import Channel
from channelhub.domain.entities import Professor, Student, UserRole
from channelhub.domain.exceptions import DataIntegrityError
from channelhub.domain.outcomes import RatingsReport, SubscriptionOutcome, UnsubscriptionOutcome
from channelhub.events.platform_events import (
    ChannelSubscribedEvent,
    ChannelUnsubscribedEvent,
    ProfessorFollowToggledEvent,
    RatingsRecomputedEvent,
)
from channelhub.events.stream import EventStream
from channelhub.stores.channels import ChannelRegistry
from channelhub.stores.identity import IdentityStore
from channelhub.verification.subscription_invariants import (
    SubscriptionInvariantMonitor,
    assert_subscription_invariant,
)

logger = structlog.get_logger(__name__)


def round_rating(value: float) -> float:
    """Round to one decimal place, ties away from zero."""
    return float(Decimal(str(value)).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


class SubscriptionEngine:
    """
    Subscription relation plus reputation aggregates.

    The relation (``channel_id -> {student_id}``) is the single source of
    truth. Counts and per-student sets are rewritten from it while the
    relevant entity locks are held.
    """

    def __init__(
        self,
        identity: IdentityStore,
        registry: ChannelRegistry,
        locks: EntityLockManager,
        events: EventStream,
        settings: Settings | None = None,
        monitor: SubscriptionInvariantMonitor | None = None,
    ):
        """
        Initialize engine.

        Args:
            identity: Identity store holding students and professors
            registry: Channel registry holding channel aggregates
            locks: Shared per-entity lock manager
            events: Stream receiving subscription events
            settings: Rating and verification configuration
            monitor: Invariant monitor (created if omitted)
        """
        self.identity = identity
        self.registry = registry
        self.locks = locks
        self.events = events
        self.settings = settings or get_settings()
        self.monitor = monitor or SubscriptionInvariantMonitor()
        self._relation: dict[UUID, set[UUID]] = {}
        self._sweep = SingleFlight("recompute_ratings")

        registry.add_deletion_hook(self._retract_channel)

    # ------------------------------------------------------------------
    # Subscription relation
    # ------------------------------------------------------------------

    async def subscribe(self, channel_id: UUID, student_id: UUID) -> SubscriptionOutcome:
        """
        Subscribe a student to a channel.

        A first subscription adds the relation pair, increments the channel's
        subscriber count by one and grants the owning professor the
        configured reputation bonus. Repeats are reported as
        ``ALREADY_SUBSCRIBED`` and change nothing.

        Returns:
            SUBSCRIBED, ALREADY_SUBSCRIBED, or NOT_FOUND when the channel is
            unknown or ``student_id`` does not name a Student
        """
        channel = self.registry.find_channel(channel_id)
        if channel is None or not isinstance(self.identity.find_user(student_id), Student):
            logger.info(
                "Subscription target not found",
                channel_id=str(channel_id),
                student_id=str(student_id),
            )
            return SubscriptionOutcome.NOT_FOUND

        professor_id = channel.professor_id

        async with self.locks.hold(
            channel_key(channel_id), user_key(student_id), user_key(professor_id)
        ):
            # The channel may have been deleted while waiting for its lock.
            if self.registry.find_channel(channel_id) is None:
                return SubscriptionOutcome.NOT_FOUND

            members = self._relation.setdefault(channel_id, set())
            if student_id in members:
                logger.debug(
                    "Already subscribed",
                    channel_id=str(channel_id),
                    student_id=str(student_id),
                )
                return SubscriptionOutcome.ALREADY_SUBSCRIBED

            student = await self.identity.get_student(student_id)
            professor = await self.identity.get_professor(professor_id)

            members.add(student_id)
            try:
                await self.identity.update_user(
                    student_id,
                    {"subscribed_channels": student.subscribed_channels | {channel_id}},
                    allow_derived=True,
                )
                updated = await self.registry.set_aggregates(
                    channel_id, subscriber_count=len(members)
                )
                rewarded = await self.identity.update_user(
                    professor_id,
                    {"stars": professor.stars + self.settings.reputation_bonus},
                    allow_derived=True,
                )
                self._verify_channel(updated, student_id)
            except Exception:
                logger.error(
                    "Subscription failed, rolling back",
                    channel_id=str(channel_id),
                    student_id=str(student_id),
                )
                members.discard(student_id)
                await self.identity.update_user(
                    student_id,
                    {"subscribed_channels": student.subscribed_channels},
                    allow_derived=True,
                )
                await self.registry.set_aggregates(channel_id, subscriber_count=len(members))
                await self.identity.update_user(
                    professor_id, {"stars": professor.stars}, allow_derived=True
                )
                raise

        logger.info(
            "Channel subscribed",
            channel_id=str(channel_id),
            student_id=str(student_id),
            subscriber_count=updated.subscriber_count,
            professor_stars=rewarded.stars,
        )

        await self.events.publish(
            ChannelSubscribedEvent(
                aggregate_id=channel_id,
                student_id=student_id,
                professor_id=professor_id,
                subscriber_count=updated.subscriber_count,
                professor_stars=rewarded.stars,
            )
        )
        return SubscriptionOutcome.SUBSCRIBED

    async def unsubscribe(self, channel_id: UUID, student_id: UUID) -> UnsubscriptionOutcome:
        """
        Remove a student from a channel.

        The subscriber count drops by one (never below zero). A reputation
        bonus already granted is kept until the next sweep.
        """
        if self.registry.find_channel(channel_id) is None or not isinstance(
            self.identity.find_user(student_id), Student
        ):
            return UnsubscriptionOutcome.NOT_FOUND

        async with self.locks.hold(channel_key(channel_id), user_key(student_id)):
            if self.registry.find_channel(channel_id) is None:
                return UnsubscriptionOutcome.NOT_FOUND

            members = self._relation.get(channel_id, set())
            if student_id not in members:
                return UnsubscriptionOutcome.NOT_SUBSCRIBED

            student = await self.identity.get_student(student_id)

            members.discard(student_id)
            try:
                await self.identity.update_user(
                    student_id,
                    {"subscribed_channels": student.subscribed_channels - {channel_id}},
                    allow_derived=True,
                )
                updated = await self.registry.set_aggregates(
                    channel_id, subscriber_count=max(0, len(members))
                )
                self._verify_channel(updated, student_id)
            except Exception:
                logger.error(
                    "Unsubscription failed, rolling back",
                    channel_id=str(channel_id),
                    student_id=str(student_id),
                )
                members.add(student_id)
                await self.identity.update_user(
                    student_id,
                    {"subscribed_channels": student.subscribed_channels},
                    allow_derived=True,
                )
                await self.registry.set_aggregates(channel_id, subscriber_count=len(members))
                raise

        logger.info(
            "Channel unsubscribed",
            channel_id=str(channel_id),
            student_id=str(student_id),
            subscriber_count=updated.subscriber_count,
        )

        await self.events.publish(
            ChannelUnsubscribedEvent(
                aggregate_id=channel_id,
                student_id=student_id,
                subscriber_count=updated.subscriber_count,
            )
        )
        return UnsubscriptionOutcome.UNSUBSCRIBED

    async def _retract_channel(self, channel: Channel) -> int:
        """Deletion hook: drop a channel from every subscriber's set."""
        members = sorted(self._relation.get(channel.id, set()))

        async with self.locks.hold(*(user_key(student_id) for student_id in members)):
            for student_id in members:
                student = self.identity.find_user(student_id)
                if isinstance(student, Student):
                    await self.identity.update_user(
                        student_id,
                        {"subscribed_channels": student.subscribed_channels - {channel.id}},
                        allow_derived=True,
                    )
            self._relation.pop(channel.id, None)

        if members:
            logger.info(
                "Subscriptions retracted",
                channel_id=str(channel.id),
                count=len(members),
            )
        return len(members)

    def is_subscribed(self, channel_id: UUID, student_id: UUID) -> bool:
        return student_id in self._relation.get(channel_id, set())

    async def subscribers_of(self, channel_id: UUID) -> list[Student]:
        """
        Students subscribed to a channel, in registration order.

        Raises:
            EntityNotFoundError: Unknown channel
        """
        await self.registry.get_channel(channel_id)
        members = self._relation.get(channel_id, set())
        return [
            user
            for user in await self.identity.list_users(UserRole.STUDENT)
            if user.id in members
        ]

    async def subscribed_channels(self, student_id: UUID) -> list[Channel]:
        """
        Channels a student is subscribed to, in channel creation order.

        Raises:
            EntityNotFoundError: student_id does not name a Student
        """
        student = await self.identity.get_student(student_id)
        return [
            channel
            for channel in await self.registry.list_channels()
            if channel.id in student.subscribed_channels
        ]

    # ------------------------------------------------------------------
    # Follows
    # ------------------------------------------------------------------

    async def follow(self, professor_id: UUID, student_id: UUID) -> bool:
        """
        Toggle whether a student follows a professor.

        Has no effect on any rating.

        Returns:
            True if the student now follows the professor, False otherwise

        Raises:
            EntityNotFoundError: Unknown professor or student
        """
        await self.identity.get_professor(professor_id)

        async with self.locks.hold(user_key(student_id)):
            student = await self.identity.get_student(student_id)
            following = not student.is_following(professor_id)
            followed = (
                student.followed_professors | {professor_id}
                if following
                else student.followed_professors - {professor_id}
            )
            await self.identity.update_user(
                student_id, {"followed_professors": followed}, allow_derived=True
            )

        logger.info(
            "Follow toggled",
            professor_id=str(professor_id),
            student_id=str(student_id),
            following=following,
        )

        await self.events.publish(
            ProfessorFollowToggledEvent(
                aggregate_id=student_id, professor_id=professor_id, following=following
            )
        )
        return following

    async def followed_professors(self, student_id: UUID) -> list[Professor]:
        """Professors a student follows, in registration order."""
        student = await self.identity.get_student(student_id)
        return [
            user
            for user in await self.identity.list_users(UserRole.PROFESSOR)
            if user.id in student.followed_professors
        ]

    # ------------------------------------------------------------------
    # Reputation
    # ------------------------------------------------------------------

    def channel_rating(self, subscriber_count: int) -> float:
        """Star rating for a subscriber count, clamped to [floor, ceiling]."""
        floor = self.settings.rating_floor
        ceiling = self.settings.rating_ceiling
        raw = subscriber_count / self.settings.subscribers_per_star + floor
        return round_rating(min(ceiling, max(floor, raw)))

    async def recompute_ratings(self) -> RatingsReport:
        """
        Overwrite every channel rating and professor score.

        Each channel is rated from its subscriber count under that channel's
        lock; each professor with at least one channel then gets the rounded
        mean of those ratings under the professor's lock. A sweep triggered
        while another is running is skipped.
        """
        async with self._sweep.attempt() as owner:
            if not owner:
                return RatingsReport(skipped=True)

            channel_ratings: dict[UUID, float] = {}
            by_professor: dict[UUID, list[float]] = {}

            for channel_id in self.registry.channel_ids():
                async with self.locks.hold(channel_key(channel_id)):
                    channel = self.registry.find_channel(channel_id)
                    if channel is None:
                        continue
                    rating = self.channel_rating(channel.subscriber_count)
                    updated = await self.registry.set_aggregates(channel_id, star_rating=rating)
                    self._verify_rating(updated)

                channel_ratings[channel_id] = rating
                by_professor.setdefault(channel.professor_id, []).append(rating)

            professor_stars: dict[UUID, float] = {}
            for professor_id, ratings in by_professor.items():
                stars = round_rating(sum(ratings) / len(ratings))
                async with self.locks.hold(user_key(professor_id)):
                    await self.identity.update_user(
                        professor_id, {"stars": stars}, allow_derived=True
                    )
                professor_stars[professor_id] = stars

        report = RatingsReport(channel_ratings=channel_ratings, professor_stars=professor_stars)

        logger.info(
            "Ratings recomputed",
            channels_updated=report.channels_updated,
            professors_updated=report.professors_updated,
        )

        await self.events.publish(
            RatingsRecomputedEvent(
                channels_updated=report.channels_updated,
                professors_updated=report.professors_updated,
            )
        )
        return report

    @property
    def sweep_in_flight(self) -> bool:
        return self._sweep.in_flight

    # ------------------------------------------------------------------
    # Verification
    # ------------------------------------------------------------------

    def _verify_channel(self, channel: Channel, student_id: UUID) -> None:
        if not self.settings.verify_invariants:
            return
        members = self._relation.get(channel.id, set())
        students = {
            user.id: user
            for user in map(self.identity.find_user, members | {student_id})
            if isinstance(user, Student)
        }
        assert_subscription_invariant(self.monitor, channel, members, students)

    def _verify_rating(self, channel: Channel) -> None:
        if not self.settings.verify_invariants:
            return
        ok, message, violation = self.monitor.check_rating(
            channel, self.settings.rating_floor, self.settings.rating_ceiling
        )
        if not ok:
            raise DataIntegrityError(
                message or "Rating out of range",
                invariant=violation.value if violation else None,
                context={"channel_id": str(channel.id)},
            )

    async def verify_consistency(self) -> tuple[bool, list[str]]:
        """
        Check the count and mirror invariants across the whole platform.

        Returns:
            Tuple of (all_valid, list_of_violation_messages)
        """
        channels = await self.registry.list_channels()
        students = {
            user.id: user for user in await self.identity.list_users(UserRole.STUDENT)
        }
        relation = {channel_id: set(members) for channel_id, members in self._relation.items()}
        return self.monitor.verify_all(channels, relation, students)
