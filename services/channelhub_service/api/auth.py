"""
Authentication API Endpoints

Single-session sign in and sign out.
"""

import structlog
from fastapi import APIRouter, Depends
from pydantic import BaseModel, EmailStr

from channelhub.domain.entities import Professor, Student
from channelhub.platform import Platform
from services.channelhub_service.dependencies import get_current_user, platform_dependency

logger = structlog.get_logger(__name__)

router = APIRouter()


class LoginRequest(BaseModel):
    """Login request."""

    email: EmailStr
    credential: str


@router.post("/login", response_model=Professor | Student)
async def login(
    request: LoginRequest, platform: Platform = Depends(platform_dependency)
) -> Professor | Student:
    """
    Sign in and make the user the active identity.

    Raises:
        InvalidCredentialError: Unknown email or wrong credential (401)
    """
    return await platform.sessions.sign_in(request.email, request.credential)


@router.post("/logout")
async def logout(platform: Platform = Depends(platform_dependency)) -> dict[str, str]:
    """End the active session."""
    platform.sessions.sign_out()
    return {"status": "signed_out"}


@router.get("/session", response_model=Professor | Student)
async def current_session(
    current_user: Professor | Student = Depends(get_current_user),
) -> Professor | Student:
    """Return the signed-in user."""
    return current_user
