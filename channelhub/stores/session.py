"""
Session Store

Tracks the single signed-in identity for this process.
"""

from uuid import UUID

import structlog

from channelhub.domain.entities import Professor, Student
from channelhub.stores.identity import IdentityStore

logger = structlog.get_logger(__name__)


class SessionStore:
    """Holds at most one active user id at a time."""

    def __init__(self, identity: IdentityStore):
        self.identity = identity
        self._current_id: UUID | None = None

    async def sign_in(self, email: str, credential: str) -> Professor | Student:
        """Authenticate and make the user the active identity."""
        user = await self.identity.authenticate(email, credential)
        if self._current_id is not None and self._current_id != user.id:
            logger.info("Replacing active session", previous_user_id=str(self._current_id))
        self._current_id = user.id
        logger.info("Session started", user_id=str(user.id))
        return user

    def current_user(self) -> Professor | Student | None:
        """The active user, or None when nobody is signed in."""
        if self._current_id is None:
            return None
        return self.identity.find_user(self._current_id)

    def sign_out(self) -> None:
        if self._current_id is not None:
            logger.info("Session ended", user_id=str(self._current_id))
        self._current_id = None
