"""
Subscription API Endpoints

Subscribe, unsubscribe, follow toggles and the rating sweep.
"""

from uuid import UUID

import structlog
from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel

from channelhub.domain.channels import Channel
from channelhub.domain.entities import Professor
from channelhub.domain.outcomes import SubscriptionOutcome, UnsubscriptionOutcome
from channelhub.platform import Platform
from services.channelhub_service.dependencies import platform_dependency

logger = structlog.get_logger(__name__)

router = APIRouter()


class StudentRequest(BaseModel):
    """Body naming the acting student."""

    student_id: UUID


class SubscriptionResponse(BaseModel):
    """Outcome of a subscribe/unsubscribe call plus the channel's new aggregates."""

    outcome: str
    channel_id: UUID
    subscriber_count: int


class FollowResponse(BaseModel):
    professor_id: UUID
    student_id: UUID
    following: bool


class RecomputeResponse(BaseModel):
    """Summary of a rating sweep."""

    skipped: bool
    channels_updated: int
    professors_updated: int
    channel_ratings: dict[UUID, float]
    professor_stars: dict[UUID, float]


class ConsistencyResponse(BaseModel):
    consistent: bool
    violations: list[str]


async def _subscription_response(
    platform: Platform, channel_id: UUID, outcome: SubscriptionOutcome | UnsubscriptionOutcome
) -> SubscriptionResponse:
    if outcome in (SubscriptionOutcome.NOT_FOUND, UnsubscriptionOutcome.NOT_FOUND):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Channel or student not found",
        )
    channel = await platform.channels.get_channel(channel_id)
    return SubscriptionResponse(
        outcome=outcome.value,
        channel_id=channel_id,
        subscriber_count=channel.subscriber_count,
    )


@router.post("/channels/{channel_id}/subscribe", response_model=SubscriptionResponse)
async def subscribe(
    channel_id: UUID,
    request: StudentRequest,
    platform: Platform = Depends(platform_dependency),
) -> SubscriptionResponse:
    """
    Subscribe a student to a channel.

    Repeats answer 200 with outcome ``already_subscribed``.
    """
    outcome = await platform.subscriptions.subscribe(channel_id, request.student_id)
    return await _subscription_response(platform, channel_id, outcome)


@router.post("/channels/{channel_id}/unsubscribe", response_model=SubscriptionResponse)
async def unsubscribe(
    channel_id: UUID,
    request: StudentRequest,
    platform: Platform = Depends(platform_dependency),
) -> SubscriptionResponse:
    """Remove a student from a channel."""
    outcome = await platform.subscriptions.unsubscribe(channel_id, request.student_id)
    return await _subscription_response(platform, channel_id, outcome)


@router.post("/professors/{professor_id}/follow", response_model=FollowResponse)
async def toggle_follow(
    professor_id: UUID,
    request: StudentRequest,
    platform: Platform = Depends(platform_dependency),
) -> FollowResponse:
    """Toggle whether the student follows the professor."""
    following = await platform.subscriptions.follow(professor_id, request.student_id)
    return FollowResponse(
        professor_id=professor_id, student_id=request.student_id, following=following
    )


@router.get("/students/{student_id}/channels", response_model=list[Channel])
async def student_channels(
    student_id: UUID, platform: Platform = Depends(platform_dependency)
) -> list[Channel]:
    return await platform.subscriptions.subscribed_channels(student_id)


@router.get("/students/{student_id}/following", response_model=list[Professor])
async def student_following(
    student_id: UUID, platform: Platform = Depends(platform_dependency)
) -> list[Professor]:
    return await platform.subscriptions.followed_professors(student_id)


@router.post("/ratings/recompute", response_model=RecomputeResponse)
async def recompute_ratings(
    platform: Platform = Depends(platform_dependency),
) -> RecomputeResponse:
    """Run the rating sweep now. Answers ``skipped`` if one is already running."""
    report = await platform.subscriptions.recompute_ratings()
    return RecomputeResponse(
        skipped=report.skipped,
        channels_updated=report.channels_updated,
        professors_updated=report.professors_updated,
        channel_ratings=report.channel_ratings,
        professor_stars=report.professor_stars,
    )


@router.get("/consistency", response_model=ConsistencyResponse)
async def check_consistency(
    platform: Platform = Depends(platform_dependency),
) -> ConsistencyResponse:
    """Verify subscriber counts and subscription sets against the relation."""
    consistent, violations = await platform.subscriptions.verify_consistency()
    return ConsistencyResponse(consistent=consistent, violations=violations)
