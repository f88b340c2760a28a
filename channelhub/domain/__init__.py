"""
channelhub Domain Models

Users (Professor | Student tagged union), channels and content, chat
messages and announcements, operation outcomes and the exception taxonomy.
"""

from channelhub.domain.channels import Channel, Content, ContentType
from channelhub.domain.entities import (
    AbstractEntity,
    Professor,
    Student,
    User,
    UserBase,
    UserRole,
    user_adapter,
)
from channelhub.domain.exceptions import (
    DataIntegrityError,
    DomainException,
    EmailAlreadyExistsError,
    EntityAlreadyExistsError,
    EntityNotFoundError,
    ErrorCode,
    ImmutableFieldError,
    InvalidCredentialError,
    InvalidParticipantError,
    ValidationError,
)
from channelhub.domain.messaging import Announcement, ChatMessage
from channelhub.domain.outcomes import RatingsReport, SubscriptionOutcome, UnsubscriptionOutcome

__all__ = [
    # Entities
    "AbstractEntity",
    "UserBase",
    "UserRole",
    "Professor",
    "Student",
    "User",
    "user_adapter",
    # Channels
    "Channel",
    "Content",
    "ContentType",
    # Messaging
    "ChatMessage",
    "Announcement",
    # Outcomes
    "SubscriptionOutcome",
    "UnsubscriptionOutcome",
    "RatingsReport",
    # Exceptions
    "ErrorCode",
    "DomainException",
    "ValidationError",
    "ImmutableFieldError",
    "EntityNotFoundError",
    "EntityAlreadyExistsError",
    "EmailAlreadyExistsError",
    "InvalidCredentialError",
    "InvalidParticipantError",
    "DataIntegrityError",
]
