"""
Identity Store

Owns User records (Professor | Student), email uniqueness, credential checks
and profile mutation. The subscription and follow sets on Student records
and the Professor star score are derived fields: only the subscription
engine writes them, by passing ``allow_derived=True``.
"""

import secrets
from collections.abc import Mapping
from typing import Any
from uuid import UUID

import pydantic
import structlog

from channelhub.concurrency.locking import EntityLockManager, user_key
from channelhub.domain.entities import Professor, Student, UserRole, user_adapter
from channelhub.domain.exceptions import (
    EmailAlreadyExistsError,
    EntityNotFoundError,
    ImmutableFieldError,
    InvalidCredentialError,
    ValidationError,
)
from channelhub.events.platform_events import UserRegisteredEvent
from channelhub.events.stream import EventStream

logger = structlog.get_logger(__name__)

# Assigned by the store, never by the caller.
STORE_ASSIGNED_FIELDS = frozenset({"id", "created_at", "updated_at"})


class IdentityStore:
    """
    In-memory repository for users.

    Users are never deleted and keep insertion (registration) order.
    Returned records are copies; callers cannot reach the stored objects.
    """

    def __init__(self, locks: EntityLockManager, events: EventStream):
        """
        Initialize store.

        Args:
            locks: Shared per-entity lock manager
            events: Stream receiving identity events
        """
        self.locks = locks
        self.events = events
        self._users: dict[UUID, Professor | Student] = {}
        self._email_index: dict[str, UUID] = {}
        self._credentials: dict[UUID, str] = {}

    async def create_user(
        self, data: Mapping[str, Any], credential: str | None = None
    ) -> Professor | Student:
        """
        Register a new user.

        Args:
            data: User fields including the ``role`` tag
            credential: Optional secret checked by ``authenticate``

        Returns:
            The created Professor or Student

        Raises:
            ValidationError: Invalid or store-assigned fields supplied
            EmailAlreadyExistsError: Email already registered
        """
        assigned = STORE_ASSIGNED_FIELDS & data.keys()
        if assigned:
            raise ValidationError(
                f"Fields assigned by the store cannot be supplied: {', '.join(sorted(assigned))}",
                field=sorted(assigned)[0],
            )

        role = data.get("role")
        variant = {UserRole.PROFESSOR.value: Professor, UserRole.STUDENT.value: Student}.get(
            role.value if isinstance(role, UserRole) else role
        )
        if variant is not None:
            derived = variant.DERIVED_FIELDS & data.keys()
            if derived:
                raise ImmutableFieldError(variant.__name__, list(derived))

        try:
            user = user_adapter.validate_python(dict(data))
        except pydantic.ValidationError as e:
            raise ValidationError.from_pydantic(e, "user") from e

        if user.email in self._email_index:
            raise EmailAlreadyExistsError(user.email)

        self._users[user.id] = user
        self._email_index[user.email] = user.id
        if credential is not None:
            self._credentials[user.id] = credential

        logger.info("User created", user_id=str(user.id), email=user.email, role=user.role)

        await self.events.publish(
            UserRegisteredEvent(aggregate_id=user.id, role=user.role, email=user.email)
        )
        return user.model_copy(deep=True)

    async def authenticate(self, email: str, credential: str) -> Professor | Student:
        """
        Resolve a user by email and check the credential.

        Users registered without a credential accept any credential.

        Raises:
            InvalidCredentialError: Unknown email or credential mismatch
        """
        user_id = self._email_index.get(email.strip().lower())

        if user_id is None:
            logger.warning("Login attempt for non-existent user", email=email)
            raise InvalidCredentialError()

        expected = self._credentials.get(user_id)
        if expected is not None and not secrets.compare_digest(
            expected.encode("utf-8"), credential.encode("utf-8")
        ):
            logger.warning("Login attempt with invalid credential", email=email)
            raise InvalidCredentialError()

        logger.info("User authenticated", user_id=str(user_id))
        return self._users[user_id].model_copy(deep=True)

    def find_user(self, user_id: UUID) -> Professor | Student | None:
        """Non-raising lookup returning a copy, or None."""
        user = self._users.get(user_id)
        return user.model_copy(deep=True) if user is not None else None

    async def get_user(self, user_id: UUID) -> Professor | Student:
        """
        Get user by ID.

        Raises:
            EntityNotFoundError: Unknown user
        """
        user = self.find_user(user_id)
        if user is None:
            raise EntityNotFoundError("User", str(user_id))
        return user

    async def get_professor(self, professor_id: UUID) -> Professor:
        """
        Get a user that must be a Professor.

        Raises:
            EntityNotFoundError: Unknown id or the id names a Student
        """
        user = self.find_user(professor_id)
        if not isinstance(user, Professor):
            raise EntityNotFoundError("Professor", str(professor_id))
        return user

    async def get_student(self, student_id: UUID) -> Student:
        """
        Get a user that must be a Student.

        Raises:
            EntityNotFoundError: Unknown id or the id names a Professor
        """
        user = self.find_user(student_id)
        if not isinstance(user, Student):
            raise EntityNotFoundError("Student", str(student_id))
        return user

    async def update_user(
        self,
        user_id: UUID,
        updates: Mapping[str, Any],
        *,
        allow_derived: bool = False,
    ) -> Professor | Student:
        """
        Merge fields into a user record.

        Args:
            user_id: User UUID
            updates: Fields to change
            allow_derived: Permit writes to subscription/follow sets and stars

        Returns:
            The updated user

        Raises:
            EntityNotFoundError: Unknown user
            ImmutableFieldError: id, role or (without allow_derived) derived fields
            ValidationError: Unknown fields or invalid values
            EmailAlreadyExistsError: New email belongs to another user
        """
        async with self.locks.hold(user_key(user_id)):
            current = self._users.get(user_id)
            if current is None:
                raise EntityNotFoundError("User", str(user_id))

            variant = type(current)
            blocked = (variant.IMMUTABLE_FIELDS | STORE_ASSIGNED_FIELDS) & updates.keys()
            if not allow_derived:
                blocked |= variant.DERIVED_FIELDS & updates.keys()
            if blocked:
                raise ImmutableFieldError(variant.__name__, list(blocked))

            unknown = updates.keys() - variant.model_fields.keys()
            if unknown:
                raise ValidationError(
                    f"Unknown {variant.__name__} fields: {', '.join(sorted(unknown))}",
                    field=sorted(unknown)[0],
                )

            try:
                updated = variant.model_validate({**current.model_dump(), **updates})
                updated.validate_business_rules()
            except pydantic.ValidationError as e:
                raise ValidationError.from_pydantic(e, variant.__name__) from e
            except ValueError as e:
                raise ValidationError(str(e)) from e

            if updated.email != current.email:
                owner = self._email_index.get(updated.email)
                if owner is not None and owner != user_id:
                    raise EmailAlreadyExistsError(updated.email)
                del self._email_index[current.email]
                self._email_index[updated.email] = user_id

            updated.mark_updated()
            self._users[user_id] = updated

        logger.info("User updated", user_id=str(user_id), fields=sorted(updates.keys()))
        return updated.model_copy(deep=True)

    async def list_users(self, role: UserRole | None = None) -> list[Professor | Student]:
        """List users in registration order, optionally filtered by role."""
        return [
            user.model_copy(deep=True)
            for user in self._users.values()
            if role is None or user.role == role
        ]

    async def search_professors(
        self,
        term: str | None = None,
        faculty: str | None = None,
        department: str | None = None,
    ) -> list[Professor]:
        """
        Case-insensitive professor search.

        ``term`` matches name, university or department; ``faculty`` is a
        substring filter and ``department`` an exact match.
        """
        needle = (term or "").strip().lower()
        results: list[Professor] = []

        for user in self._users.values():
            if not isinstance(user, Professor):
                continue
            if needle and not any(
                needle in (value or "").lower()
                for value in (user.name, user.university, user.department)
            ):
                continue
            if faculty and faculty.lower() not in (user.faculty or "").lower():
                continue
            if department and user.department != department:
                continue
            results.append(user.model_copy(deep=True))

        return results

    def count(self) -> int:
        return len(self._users)

