"""
Announcement API Endpoints
"""

from uuid import UUID

import structlog
from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field

from channelhub.domain.messaging import Announcement
from channelhub.platform import Platform
from services.channelhub_service.dependencies import platform_dependency

logger = structlog.get_logger(__name__)

router = APIRouter()


class PublishAnnouncementRequest(BaseModel):
    """Announcement request."""

    professor_id: UUID
    title: str = Field(..., min_length=1, max_length=300)
    body: str = Field(..., min_length=1, max_length=10000)


@router.post("", response_model=Announcement, status_code=status.HTTP_201_CREATED)
async def publish_announcement(
    request: PublishAnnouncementRequest, platform: Platform = Depends(platform_dependency)
) -> Announcement:
    """
    Publish an announcement.

    Raises:
        EntityNotFoundError: professor_id is not a professor (404)
    """
    return await platform.announcements.publish(
        request.professor_id, request.title, request.body
    )


@router.get("", response_model=list[Announcement])
async def list_announcements(
    platform: Platform = Depends(platform_dependency),
) -> list[Announcement]:
    return await platform.announcements.list_announcements()


@router.get("/professors/{professor_id}", response_model=list[Announcement])
async def list_professor_announcements(
    professor_id: UUID, platform: Platform = Depends(platform_dependency)
) -> list[Announcement]:
    """A professor's announcements, newest first."""
    return await platform.announcements.list_by_professor(professor_id)
