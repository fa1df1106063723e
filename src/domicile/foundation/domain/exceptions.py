"""Domain exception hierarchy for type-safe error handling.

This module provides the base exception hierarchy for all domain errors.
Exceptions include structured error codes and context for consistent
API error handling and logging across bounded contexts.

Example:
    >>> from domicile.foundation.domain.exceptions import NotFoundError
    >>> raise NotFoundError("Listing", "64f1c0de9a")
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from uuid import UUID

__all__ = [
    "AlreadyRestoredError",
    "AuthenticationError",
    "AuthorizationError",
    "ConflictError",
    "DomainError",
    "NotFoundError",
    "RateLimitedError",
    "TokenExpiredOrUsedError",
    "ValidationError",
]


class DomainError(Exception):
    """Base class for all domain errors.

    Provides error code and structured context for debugging. All domain
    exceptions inherit from this class to enable consistent API error
    handling and logging.

    Attributes:
        error_code: Machine-readable error code for client handling.
        message: Human-readable error description.
        context: Structured debugging information (record IDs, field names).

    Example:
        >>> raise DomainError("Operation failed", context={"listing_id": "123"})
        DomainError: Operation failed (listing_id=123)
    """

    error_code: str = "DOMAIN_ERROR"

    def __init__(self, message: str, context: dict[str, Any] | None = None) -> None:
        """Initialize domain error with message and optional context.

        Args:
            message: Human-readable error description.
            context: Structured debugging information. Keys should be snake_case.
                     Values are typically strings, UUIDs, or primitive types.
        """
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def __str__(self) -> str:
        """String representation including context for logging."""
        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            return f"{self.message} ({context_str})"
        return self.message

    def __repr__(self) -> str:
        """Detailed representation for debugging."""
        return f"{self.__class__.__name__}({self.message!r}, context={self.context!r})"


class NotFoundError(DomainError):
    """Raised when a requested resource does not exist.

    Maps to HTTP 404 Not Found. Use when a listing, vault entry, notification
    or conversation cannot be found by identifier.

    Attributes:
        error_code: "RESOURCE_NOT_FOUND" (class constant).
        resource_type: Type of missing resource.
        resource_id: Identifier of missing resource.

    Example:
        >>> raise NotFoundError("Listing", "64f1c0de9a")
        NotFoundError: Listing not found: 64f1c0de9a
    """

    error_code: str = "RESOURCE_NOT_FOUND"

    def __init__(
        self,
        resource_type: str,
        resource_id: UUID | str,
        **extra_context: Any,
    ) -> None:
        """Initialize not found error.

        Args:
            resource_type: Type of resource (e.g., "Listing", "Notification").
            resource_id: Identifier of missing resource. UUID is converted to string.
            **extra_context: Additional debugging context.
        """
        self.resource_type = resource_type
        self.resource_id = resource_id
        message = f"{resource_type} not found: {resource_id}"
        context = {
            "resource_type": resource_type,
            "resource_id": str(resource_id),
            **extra_context,
        }
        super().__init__(message, context)


class ValidationError(DomainError):
    """Raised when input fails domain validation rules.

    Maps to HTTP 422 Unprocessable Entity. Use for domain rule violations
    on command input (a missing deletion reason, an unconfirmed restore),
    not for Pydantic schema validation.

    Attributes:
        error_code: "VALIDATION_ERROR" (class constant).
        field: Field path that failed validation.
        reason: Human-readable validation failure reason.

    Example:
        >>> raise ValidationError("reason", "A reason is required")
        ValidationError: Validation failed for 'reason': A reason is required
    """

    error_code: str = "VALIDATION_ERROR"

    def __init__(
        self,
        field: str,
        reason: str,
        **extra_context: Any,
    ) -> None:
        """Initialize validation error.

        Args:
            field: Field path that failed validation.
            reason: Human-readable validation failure reason.
            **extra_context: Additional debugging context.
        """
        self.field = field
        self.reason = reason
        message = f"Validation failed for '{field}': {reason}"
        context = {
            "field": field,
            "reason": reason,
            **extra_context,
        }
        super().__init__(message, context)


class ConflictError(DomainError):
    """Raised when operation conflicts with current system state.

    Maps to HTTP 409 Conflict. Use for optimistic concurrency violations,
    duplicate resource creation, or resurrection collisions.

    Attributes:
        error_code: "CONFLICT" (class constant).
        reason: Description of the conflict.

    Example:
        >>> raise ConflictError("Listing already exists", listing_id="64f1c0de9a")
        ConflictError: Conflict: Listing already exists (listing_id=64f1c0de9a)
    """

    error_code: str = "CONFLICT"

    def __init__(
        self,
        reason: str,
        **context: Any,
    ) -> None:
        """Initialize conflict error.

        Args:
            reason: Description of conflict.
            **context: Additional debugging context.
        """
        self.reason = reason
        message = f"Conflict: {reason}"
        super().__init__(message, context)


class AlreadyRestoredError(ConflictError):
    """Raised when a vault entry has already been restored.

    Maps to HTTP 409 Conflict. The loser of a concurrent restore race
    observes this error.

    Attributes:
        error_code: "ALREADY_RESTORED" (class constant).
    """

    error_code: str = "ALREADY_RESTORED"

    def __init__(self, **context: Any) -> None:
        super().__init__("This property has already been restored", **context)


class TokenExpiredOrUsedError(DomainError):
    """Raised when a restoration token is past its expiry or no longer live.

    Maps to HTTP 410 Gone.

    Attributes:
        error_code: "TOKEN_EXPIRED_OR_USED" (class constant).

    Example:
        >>> raise TokenExpiredOrUsedError(record_id="5f0c")
    """

    error_code: str = "TOKEN_EXPIRED_OR_USED"

    def __init__(self, **context: Any) -> None:
        super().__init__(
            "Restoration token has expired or has already been used",
            context,
        )


class AuthenticationError(DomainError):
    """Raised when the caller cannot be identified.

    Maps to HTTP 401 Unauthorized. All 401 responses MUST include
    WWW-Authenticate header per RFC 6750.

    Attributes:
        error_code: Machine-readable error code (e.g., "MISSING_IDENTITY").
        auth_error: RFC 6750 error code for WWW-Authenticate header.
    """

    error_code: str = "AUTHENTICATION_ERROR"

    def __init__(
        self,
        message: str,
        auth_error: str = "invalid_token",
        error_code: str = "AUTHENTICATION_ERROR",
        context: dict[str, Any] | None = None,
    ) -> None:
        """Initialize authentication error.

        Args:
            message: Human-readable error description.
            auth_error: RFC 6750 error code for WWW-Authenticate header.
            error_code: Machine-readable error code for client handling.
            context: Structured debugging information.
        """
        self.auth_error = auth_error
        self.error_code = error_code
        super().__init__(message, context)


class AuthorizationError(DomainError):
    """Raised when an identified caller lacks ownership or role.

    Maps to HTTP 403 Forbidden.

    Example:
        >>> raise AuthorizationError("You can only delete your own listing")
    """

    error_code: str = "AUTHORIZATION_ERROR"


class RateLimitedError(DomainError):
    """Raised when a caller exceeds a report submission cap.

    Maps to HTTP 429 Too Many Requests. The message names both the cap
    and the window so clients can explain the refusal.

    Attributes:
        error_code: "RATE_LIMITED" (class constant).
        cap: Maximum submissions allowed within the window.
        window: Human-readable window description ("day", "hour").
        retry_after_seconds: Seconds until the window frees a slot.

    Example:
        >>> raise RateLimitedError(cap=5, window="hour", retry_after_seconds=1200)
        RateLimitedError: Report limit reached: at most 5 reports per hour
    """

    error_code: str = "RATE_LIMITED"

    def __init__(
        self,
        cap: int,
        window: str,
        retry_after_seconds: int,
        **extra_context: Any,
    ) -> None:
        self.cap = cap
        self.window = window
        self.retry_after_seconds = retry_after_seconds
        message = f"Report limit reached: at most {cap} reports per {window}"
        context = {
            "cap": cap,
            "window": window,
            "retry_after_seconds": retry_after_seconds,
            **extra_context,
        }
        super().__init__(message, context)
