"""
Channelhub Service Dependencies

FastAPI dependencies resolving the platform and the signed-in user.
"""

import structlog
from fastapi import Depends, HTTPException, status

from channelhub.domain.entities import Professor, Student
from channelhub.platform import Platform, get_platform

logger = structlog.get_logger(__name__)


def platform_dependency() -> Platform:
    """Dependency returning the process-wide platform (overridden in tests)."""
    return get_platform()


async def get_current_user(
    platform: Platform = Depends(platform_dependency),
) -> Professor | Student:
    """
    Dependency to get the signed-in user.

    Raises:
        HTTPException: If nobody is signed in
    """
    user = platform.sessions.current_user()
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not signed in",
        )
    return user
