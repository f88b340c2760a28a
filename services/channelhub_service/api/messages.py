"""
Messaging API Endpoints

Direct messages between users.
"""

from uuid import UUID

import structlog
from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field

from channelhub.domain.messaging import ChatMessage
from channelhub.platform import Platform
from services.channelhub_service.dependencies import platform_dependency

logger = structlog.get_logger(__name__)

router = APIRouter()


class SendMessageRequest(BaseModel):
    """Direct message request."""

    sender_id: UUID
    receiver_id: UUID
    body: str = Field(..., max_length=10000)


@router.post("", response_model=ChatMessage, status_code=status.HTTP_201_CREATED)
async def send_message(
    request: SendMessageRequest, platform: Platform = Depends(platform_dependency)
) -> ChatMessage:
    """
    Send a direct message.

    Raises:
        InvalidParticipantError: Unknown sender or receiver (422)
    """
    return await platform.messages.send(request.sender_id, request.receiver_id, request.body)


@router.get("/history", response_model=list[ChatMessage])
async def message_history(
    user_a: UUID,
    user_b: UUID,
    platform: Platform = Depends(platform_dependency),
) -> list[ChatMessage]:
    """Messages between two users, oldest first."""
    return await platform.messages.history(user_a, user_b)


@router.get("/conversations/{user_id}", response_model=list[UUID])
async def list_conversations(
    user_id: UUID, platform: Platform = Depends(platform_dependency)
) -> list[UUID]:
    """Conversation partners, most recent first."""
    return await platform.messages.conversations(user_id)
