"""
Core Entity Hierarchy

AbstractEntity → UserBase → Professor | Student

Users are a closed tagged union dispatched on the ``role`` tag. The tag is
fixed at creation; there is no role migration. Cross-references between
entities are by identifier only.
"""

from abc import ABC, abstractmethod
from datetime import datetime, timezone
from enum import Enum
from typing import Annotated, ClassVar, Literal
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator


def utcnow() -> datetime:
    """Timezone-aware current time used for every entity timestamp."""
    return datetime.now(timezone.utc)


class AbstractEntity(BaseModel, ABC):
    """
    Base abstract entity class providing universal ID and timestamps.

    All domain entities inherit from this class, establishing a consistent
    identity pattern across the core.
    """

    model_config = ConfigDict(
        validate_assignment=True,
        use_enum_values=False,
    )

    id: UUID = Field(default_factory=uuid4, description="Universal unique identifier")
    created_at: datetime = Field(default_factory=utcnow, description="Entity creation timestamp")
    updated_at: datetime = Field(default_factory=utcnow, description="Last update timestamp")

    # Fields no caller may change after creation.
    IMMUTABLE_FIELDS: ClassVar[frozenset[str]] = frozenset({"id", "created_at"})

    def __hash__(self) -> int:
        """Hash based on entity ID for set/dict usage."""
        return hash(self.id)

    def __eq__(self, other: object) -> bool:
        """Equality based on entity ID and type."""
        if not isinstance(other, AbstractEntity):
            return NotImplemented
        return self.id == other.id and isinstance(other, type(self))

    @abstractmethod
    def validate_business_rules(self) -> bool:
        """
        Validate entity-specific business rules.

        Returns:
            bool: True if all business rules are satisfied

        Raises:
            ValueError: If business rules are violated
        """

    def mark_updated(self) -> None:
        """Update the updated_at timestamp."""
        self.updated_at = utcnow()


class UserRole(str, Enum):
    """Closed set of user roles."""

    PROFESSOR = "professor"
    STUDENT = "student"


class UserBase(AbstractEntity, ABC):
    """
    Fields shared by every user variant.

    Subclasses pin ``role`` to a single literal so the union below can be
    discriminated without inspecting any other field.
    """

    name: str = Field(..., min_length=1, max_length=200, description="Display name")
    email: str = Field(..., description="Unique login email")
    university: str | None = Field(default=None, max_length=200)
    faculty: str | None = Field(default=None, max_length=200)
    department: str | None = Field(default=None, max_length=200)
    profile_picture: str | None = Field(default=None, description="Picture URI")
    phone_number: str | None = Field(default=None, max_length=20)
    language: Literal["ar", "fr"] = "ar"

    IMMUTABLE_FIELDS: ClassVar[frozenset[str]] = frozenset({"id", "created_at", "role"})
    # Maintained by the subscription engine only.
    DERIVED_FIELDS: ClassVar[frozenset[str]] = frozenset()

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        """Basic email validation."""
        v = v.strip()
        if "@" not in v or "." not in v:
            raise ValueError("Invalid email format")
        return v.lower()


class Professor(UserBase):
    """Professor publishing channels. Owns channels by back-reference only."""

    role: Literal["professor"] = UserRole.PROFESSOR.value
    stars: float = Field(default=0.0, ge=0.0, description="Reputation score")

    DERIVED_FIELDS: ClassVar[frozenset[str]] = frozenset({"stars"})

    def validate_business_rules(self) -> bool:
        """Validate professor-specific business rules."""
        if self.stars < 0:
            raise ValueError("Stars cannot be negative")
        return True


class Student(UserBase):
    """Student subscribing to channels and following professors."""

    role: Literal["student"] = UserRole.STUDENT.value
    subscribed_channels: frozenset[UUID] = Field(default_factory=frozenset)
    followed_professors: frozenset[UUID] = Field(default_factory=frozenset)

    DERIVED_FIELDS: ClassVar[frozenset[str]] = frozenset(
        {"subscribed_channels", "followed_professors"}
    )

    def validate_business_rules(self) -> bool:
        """Validate student-specific business rules."""
        if self.id in self.followed_professors:
            raise ValueError("A student cannot follow themselves")
        return True

    def is_subscribed_to(self, channel_id: UUID) -> bool:
        """Check membership in the subscription set."""
        return channel_id in self.subscribed_channels

    def is_following(self, professor_id: UUID) -> bool:
        """Check membership in the follow set."""
        return professor_id in self.followed_professors


User = Annotated[Professor | Student, Field(discriminator="role")]

user_adapter: TypeAdapter[Professor | Student] = TypeAdapter(User)
