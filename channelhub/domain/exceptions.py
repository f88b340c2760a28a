"""
Rich Domain Exceptions

Exception hierarchy for the failure kinds of the channelhub core.
Supports structured error information, error codes, and context.

Idempotent business outcomes (already subscribed, not subscribed) are not
exceptions; see ``channelhub.domain.outcomes``.
"""

from enum import Enum
from typing import Any

import pydantic
import structlog

logger = structlog.get_logger(__name__)


class ErrorCode(str, Enum):
    """Standard error codes for domain exceptions."""

    # Domain errors
    DOMAIN_VALIDATION_ERROR = "DOMAIN_VALIDATION_ERROR"
    IMMUTABLE_FIELD = "IMMUTABLE_FIELD"
    ENTITY_NOT_FOUND = "ENTITY_NOT_FOUND"
    ENTITY_ALREADY_EXISTS = "ENTITY_ALREADY_EXISTS"

    # Identity
    INVALID_CREDENTIAL = "INVALID_CREDENTIAL"

    # Messaging
    INVALID_PARTICIPANT = "INVALID_PARTICIPANT"

    # Data errors
    DATA_INTEGRITY_ERROR = "DATA_INTEGRITY_ERROR"


class DomainException(Exception):
    """
    Base class for all domain exceptions.

    Provides structured error information with error codes, context, and metadata.
    """

    def __init__(
        self,
        message: str,
        error_code: ErrorCode,
        status_code: int = 500,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ):
        """
        Initialize domain exception.

        Args:
            message: Human-readable error message
            error_code: Standard error code
            status_code: HTTP status code (default: 500)
            context: Additional context data
            cause: Underlying exception that caused this error
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.context = context or {}
        self.cause = cause

        logger.warning(
            "Domain exception raised",
            error_code=error_code.value,
            message=message,
            status_code=status_code,
            context=context,
            exception_type=type(self).__name__,
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for API responses."""
        result = {
            "error": self.error_code.value,
            "message": self.message,
            "type": type(self).__name__,
        }
        if self.context:
            result["context"] = self.context
        return result


class ValidationError(DomainException):
    """Raised when domain validation fails."""

    def __init__(
        self,
        message: str,
        field: str | None = None,
        value: Any | None = None,
        **kwargs
    ):
        context = kwargs.pop("context", {})
        if field:
            context["field"] = field
        if value is not None:
            context["value"] = str(value)

        super().__init__(
            message=message,
            error_code=kwargs.pop("error_code", ErrorCode.DOMAIN_VALIDATION_ERROR),
            status_code=400,
            context=context,
            **kwargs
        )

    @classmethod
    def from_pydantic(cls, error: pydantic.ValidationError, entity_type: str) -> "ValidationError":
        """Wrap the first error of a pydantic ValidationError."""
        errors = error.errors()
        first = errors[0] if errors else {}
        field = ".".join(str(part) for part in first.get("loc", ()))
        return cls(
            f"Invalid {entity_type}: {first.get('msg', str(error))}",
            field=field or None,
            cause=error,
        )


class ImmutableFieldError(ValidationError):
    """Raised when an update touches a field that is fixed after creation."""

    def __init__(self, entity_type: str, fields: list[str], **kwargs):
        context = kwargs.pop("context", {})
        context["entity_type"] = entity_type
        context["fields"] = sorted(fields)

        super().__init__(
            message=f"{entity_type} fields cannot be changed: {', '.join(sorted(fields))}",
            error_code=ErrorCode.IMMUTABLE_FIELD,
            context=context,
            **kwargs
        )
        self.fields = sorted(fields)


class EntityNotFoundError(DomainException):
    """Raised when an entity identifier does not resolve."""

    def __init__(
        self,
        entity_type: str,
        entity_id: str | None = None,
        **kwargs
    ):
        message = kwargs.pop("message", None) or f"{entity_type} not found"
        if entity_id:
            message += f" (ID: {entity_id})"

        context = kwargs.pop("context", {})
        context["entity_type"] = entity_type
        if entity_id:
            context["entity_id"] = entity_id

        super().__init__(
            message=message,
            error_code=ErrorCode.ENTITY_NOT_FOUND,
            status_code=404,
            context=context,
            **kwargs
        )
        self.entity_type = entity_type
        self.entity_id = entity_id


class EntityAlreadyExistsError(DomainException):
    """Raised when attempting to create an entity that already exists."""

    def __init__(
        self,
        entity_type: str,
        entity_id: str | None = None,
        **kwargs
    ):
        message = kwargs.pop("message", None) or f"{entity_type} already exists"
        if entity_id:
            message += f" (ID: {entity_id})"

        context = kwargs.pop("context", {})
        context["entity_type"] = entity_type
        if entity_id:
            context["entity_id"] = entity_id

        super().__init__(
            message=message,
            error_code=ErrorCode.ENTITY_ALREADY_EXISTS,
            status_code=409,
            context=context,
            **kwargs
        )


class EmailAlreadyExistsError(EntityAlreadyExistsError):
    """Raised when registering or switching to an email that is taken."""

    def __init__(self, email: str, **kwargs):
        context = kwargs.pop("context", {})
        context["email"] = email

        super().__init__(
            entity_type="User",
            message="Email already registered",
            context=context,
            **kwargs
        )
        self.email = email


class InvalidCredentialError(DomainException):
    """Raised when an email/credential pair does not authenticate."""

    def __init__(
        self,
        message: str = "Invalid email or credential",
        **kwargs
    ):
        super().__init__(
            message=message,
            error_code=ErrorCode.INVALID_CREDENTIAL,
            status_code=401,
            **kwargs
        )


class InvalidParticipantError(DomainException):
    """Raised when a chat message names an unknown or invalid participant."""

    def __init__(
        self,
        participant_id: str,
        reason: str = "Participant does not resolve to a known user",
        **kwargs
    ):
        context = kwargs.pop("context", {})
        context["participant_id"] = participant_id

        super().__init__(
            message=reason,
            error_code=ErrorCode.INVALID_PARTICIPANT,
            status_code=422,
            context=context,
            **kwargs
        )
        self.participant_id = participant_id


class DataIntegrityError(DomainException):
    """Raised when a consistency invariant is found to be broken."""

    def __init__(
        self,
        message: str,
        invariant: str | None = None,
        **kwargs
    ):
        context = kwargs.pop("context", {})
        if invariant:
            context["invariant"] = invariant

        super().__init__(
            message=message,
            error_code=ErrorCode.DATA_INTEGRITY_ERROR,
            status_code=500,
            context=context,
            **kwargs
        )
