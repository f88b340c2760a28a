"""
Channel API Endpoints

Channel CRUD, content uploads and listing.
"""

from uuid import UUID

import structlog
from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field

from channelhub.domain.channels import Channel, Content, ContentType
from channelhub.domain.entities import Student
from channelhub.platform import Platform
from services.channelhub_service.dependencies import platform_dependency

logger = structlog.get_logger(__name__)

router = APIRouter()


class CreateChannelRequest(BaseModel):
    """Channel creation request."""

    professor_id: UUID
    name: str = Field(..., min_length=1, max_length=200)
    department: str = Field(..., min_length=1, max_length=200)
    description: str = Field(default="", max_length=5000)
    meeting_link: str | None = None


class ChannelUpdateRequest(BaseModel):
    """Channel fields a professor may change."""

    name: str | None = Field(default=None, min_length=1, max_length=200)
    department: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = Field(default=None, max_length=5000)
    meeting_link: str | None = None


class AddContentRequest(BaseModel):
    """Content upload request."""

    type: ContentType
    title: str = Field(..., min_length=1, max_length=300)
    url: str = Field(..., min_length=1)


@router.post("", response_model=Channel, status_code=status.HTTP_201_CREATED)
async def create_channel(
    request: CreateChannelRequest, platform: Platform = Depends(platform_dependency)
) -> Channel:
    """
    Open a channel for a professor.

    Raises:
        EntityNotFoundError: professor_id is not a professor (404)
    """
    fields = request.model_dump(exclude={"professor_id"}, exclude_none=True)
    return await platform.channels.create_channel(request.professor_id, fields)


@router.get("", response_model=list[Channel])
async def list_channels(
    term: str | None = None,
    department: str | None = None,
    platform: Platform = Depends(platform_dependency),
) -> list[Channel]:
    """List channels, optionally filtered by search term and department."""
    if term or department:
        return await platform.channels.search_channels(term, department)
    return await platform.channels.list_channels()


@router.get("/by-professor/{professor_id}", response_model=list[Channel])
async def list_professor_channels(
    professor_id: UUID, platform: Platform = Depends(platform_dependency)
) -> list[Channel]:
    """Channels owned by a professor."""
    await platform.identity.get_professor(professor_id)
    return await platform.channels.list_by_professor(professor_id)


@router.get("/{channel_id}", response_model=Channel)
async def get_channel(
    channel_id: UUID, platform: Platform = Depends(platform_dependency)
) -> Channel:
    """Get channel by ID."""
    return await platform.channels.get_channel(channel_id)


@router.patch("/{channel_id}", response_model=Channel)
async def update_channel(
    channel_id: UUID,
    request: ChannelUpdateRequest,
    platform: Platform = Depends(platform_dependency),
) -> Channel:
    """Update descriptive channel fields."""
    return await platform.channels.update_channel(
        channel_id, request.model_dump(exclude_unset=True)
    )


@router.delete("/{channel_id}")
async def delete_channel(
    channel_id: UUID, platform: Platform = Depends(platform_dependency)
) -> dict[str, bool]:
    """Delete a channel and retract it from every subscriber."""
    deleted = await platform.channels.delete_channel(channel_id)
    return {"deleted": deleted}


@router.post(
    "/{channel_id}/content", response_model=Content, status_code=status.HTTP_201_CREATED
)
async def add_content(
    channel_id: UUID,
    request: AddContentRequest,
    platform: Platform = Depends(platform_dependency),
) -> Content:
    """Append a document, image or video to a channel."""
    return await platform.channels.add_content(channel_id, request.model_dump())


@router.get("/{channel_id}/subscribers", response_model=list[Student])
async def list_subscribers(
    channel_id: UUID, platform: Platform = Depends(platform_dependency)
) -> list[Student]:
    """Students subscribed to a channel."""
    return await platform.subscriptions.subscribers_of(channel_id)
