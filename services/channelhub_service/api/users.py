"""
User API Endpoints

Registration, profile lookup and update, professor search.
"""

from typing import Literal
from uuid import UUID

import structlog
from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, EmailStr, Field

from channelhub.domain.entities import Professor, Student
from channelhub.platform import Platform
from services.channelhub_service.dependencies import platform_dependency

logger = structlog.get_logger(__name__)

router = APIRouter()


class RegisterRequest(BaseModel):
    """User registration request."""

    role: Literal["professor", "student"]
    name: str = Field(..., min_length=1, max_length=200)
    email: EmailStr
    credential: str | None = Field(default=None, min_length=1, max_length=100)
    university: str | None = None
    faculty: str | None = None
    department: str | None = None
    profile_picture: str | None = None
    phone_number: str | None = None
    language: Literal["ar", "fr"] | None = None


class UserUpdateRequest(BaseModel):
    """Profile fields a user may change."""

    name: str | None = Field(default=None, min_length=1, max_length=200)
    email: EmailStr | None = None
    university: str | None = None
    faculty: str | None = None
    department: str | None = None
    profile_picture: str | None = None
    phone_number: str | None = None
    language: Literal["ar", "fr"] | None = None


@router.post("", response_model=Professor | Student, status_code=status.HTTP_201_CREATED)
async def register(
    request: RegisterRequest, platform: Platform = Depends(platform_dependency)
) -> Professor | Student:
    """
    Register a professor or student.

    Raises:
        EmailAlreadyExistsError: Email already registered (409)
    """
    data = request.model_dump(exclude={"credential"}, exclude_none=True)
    data.setdefault("language", platform.settings.default_language)
    return await platform.identity.create_user(data, credential=request.credential)


@router.get("/professors", response_model=list[Professor])
async def search_professors(
    term: str | None = None,
    faculty: str | None = None,
    department: str | None = None,
    platform: Platform = Depends(platform_dependency),
) -> list[Professor]:
    """Search professors by name, university or department."""
    return await platform.identity.search_professors(term, faculty, department)


@router.get("/{user_id}", response_model=Professor | Student)
async def get_user(
    user_id: UUID, platform: Platform = Depends(platform_dependency)
) -> Professor | Student:
    """Get user by ID."""
    return await platform.identity.get_user(user_id)


@router.patch("/{user_id}", response_model=Professor | Student)
async def update_user(
    user_id: UUID,
    request: UserUpdateRequest,
    platform: Platform = Depends(platform_dependency),
) -> Professor | Student:
    """Update profile fields. Only fields present in the body are changed."""
    updates = request.model_dump(exclude_unset=True)
    logger.info("Profile update requested", user_id=str(user_id), fields=sorted(updates))
    return await platform.identity.update_user(user_id, updates)
