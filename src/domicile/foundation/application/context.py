"""Request context management for cross-cutting concerns.

Provides a ContextVar-based mechanism for propagating request-scoped data
(user ID, correlation ID) across the call stack without explicit parameter
passing.

Usage:
    # In handlers/services
    from domicile.foundation.application.context import get_current_user_id

    user_id = get_current_user_id()  # Raises if no context
"""

from __future__ import annotations

from contextvars import ContextVar
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from contextvars import Token


@dataclass(frozen=True, slots=True)
class RequestContext:
    """Immutable container for request-scoped context data.

    Attributes:
        user_id: The caller's user ID, or None for anonymous requests.
        correlation_id: Unique ID for distributed tracing.
    """

    user_id: str | None
    correlation_id: str


# ContextVar for request-scoped data - None when no request is active
request_context: ContextVar[RequestContext | None] = ContextVar("request_context", default=None)


class NoRequestContextError(RuntimeError):
    """Raised when request context is accessed outside of a request."""

    def __init__(self) -> None:
        super().__init__(
            "No request context available. "
            "Ensure this code is called within an HTTP request with context middleware."
        )


def get_current_context() -> RequestContext:
    """Get the current request context.

    Raises:
        NoRequestContextError: If called outside of a request context.
    """
    ctx = request_context.get()
    if ctx is None:
        raise NoRequestContextError()
    return ctx


def get_current_user_id() -> str | None:
    """Get the caller's user ID from request context, None if anonymous."""
    return get_current_context().user_id


def set_request_context(
    user_id: str | None,
    correlation_id: str,
) -> Token[RequestContext | None]:
    """Set the request context for the current async task.

    Should be called by middleware at the start of request handling.
    Returns a token that must be used to reset the context.
    """
    ctx = RequestContext(user_id=user_id, correlation_id=correlation_id)
    return request_context.set(ctx)


def clear_request_context(token: Token[RequestContext | None]) -> None:
    """Reset the request context using the provided token."""
    request_context.reset(token)
