"""RFC 7807 Problem Details exception handlers for FastAPI.

Translates domain exceptions into ``application/problem+json`` responses.
Each domain error class maps to a problem type, title and status; the most
specific class in the exception's MRO wins, so ``AlreadyRestoredError``
renders as its own problem type even though it is a ``ConflictError``.

Usage:
    from domicile.infra.fastapi.error_handlers import register_exception_handlers

    app = FastAPI()
    register_exception_handlers(app)
"""

from __future__ import annotations

import json
import logging
import re
from datetime import datetime
from typing import TYPE_CHECKING, Any, NamedTuple
from uuid import UUID

from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from domicile.foundation.domain.exceptions import (
    AlreadyRestoredError,
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    DomainError,
    NotFoundError,
    RateLimitedError,
    TokenExpiredOrUsedError,
    ValidationError,
)
from domicile.infra.fastapi.middleware.request_context import get_request_id

if TYPE_CHECKING:
    from fastapi import FastAPI, Request

logger = logging.getLogger(__name__)

PROBLEM_MEDIA_TYPE = "application/problem+json"


class ProblemDetail(BaseModel):
    """RFC 7807 Problem Details response model.

    Extension fields:
    - error_code: Machine-readable error code for client handling
    - context: Structured debugging information
    - correlation_id: Request correlation ID (5xx errors only)
    """

    type: str = Field(..., examples=["/errors/not-found", "/errors/token-expired-or-used"])
    title: str = Field(..., examples=["Resource Not Found", "Gone"])
    status: int = Field(..., ge=400, le=599)
    detail: str
    instance: str | None = None
    error_code: str | None = None
    context: dict[str, Any] | None = None
    correlation_id: str | None = None


class ProblemType(NamedTuple):
    slug: str
    title: str
    status: int


# Most specific classes first; lookup walks the exception MRO.
PROBLEM_TYPES: dict[type[DomainError], ProblemType] = {
    AlreadyRestoredError: ProblemType("already-restored", "Already Restored", 409),
    TokenExpiredOrUsedError: ProblemType("token-expired-or-used", "Gone", 410),
    RateLimitedError: ProblemType("rate-limited", "Too Many Requests", 429),
    AuthenticationError: ProblemType("unauthorized", "Unauthorized", 401),
    AuthorizationError: ProblemType("forbidden", "Forbidden", 403),
    NotFoundError: ProblemType("not-found", "Resource Not Found", 404),
    ValidationError: ProblemType("validation-error", "Validation Error", 422),
    ConflictError: ProblemType("conflict", "Conflict", 409),
    DomainError: ProblemType("domain-error", "Bad Request", 400),
}

_SENSITIVE_KEYS = frozenset({"password", "secret", "token", "api_key", "apikey", "credential"})

_SENSITIVE_PATTERNS = [
    (re.compile(r"postgresql(\+\w+)?://[^@]*@[^/\s]*"), "postgresql://[REDACTED]@[REDACTED]"),
    (re.compile(r"password\s*=\s*['\"]?[^'\"\s]+['\"]?", re.IGNORECASE), "password=[REDACTED]"),
    (re.compile(r"token\s*=\s*['\"]?[^'\"\s]+['\"]?", re.IGNORECASE), "token=[REDACTED]"),
    (re.compile(r"api[_-]?key\s*=\s*['\"]?[^'\"\s]+['\"]?", re.IGNORECASE), "api_key=[REDACTED]"),
]


def _problem_type_for(exc: DomainError) -> ProblemType:
    for klass in type(exc).__mro__:
        problem_type = PROBLEM_TYPES.get(klass)  # type: ignore[arg-type]
        if problem_type is not None:
            return problem_type
    return PROBLEM_TYPES[DomainError]


def _create_problem_response(problem: ProblemDetail) -> JSONResponse:
    return JSONResponse(
        status_code=problem.status,
        content=problem.model_dump(exclude_none=True),
        media_type=PROBLEM_MEDIA_TYPE,
    )


def _is_sensitive_key(key: str) -> bool:
    key_lower = key.lower()
    return key_lower in _SENSITIVE_KEYS or "token" in key_lower or "password" in key_lower


def _sanitize_context(context: dict[str, Any] | None) -> dict[str, Any] | None:
    """Drop credential-like keys and coerce values into JSON-safe types."""
    if not context:
        return None
    sanitized = {
        key: _sanitize_value(value) for key, value in context.items() if not _is_sensitive_key(key)
    }
    return sanitized or None


def _sanitize_value(value: Any) -> Any:
    if isinstance(value, UUID):
        return str(value)
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, str):
        for pattern, replacement in _SENSITIVE_PATTERNS:
            value = pattern.sub(replacement, value)
        return value
    if isinstance(value, dict):
        return _sanitize_context(value)
    if isinstance(value, (list, tuple)):
        return [_sanitize_value(v) for v in value]
    try:
        json.dumps(value)
        return value
    except (TypeError, ValueError):
        return str(value)


async def domain_error_handler(request: Request, exc: DomainError) -> JSONResponse:
    """Translate any DomainError into its RFC 7807 problem response.

    Adds ``WWW-Authenticate`` for 401 (RFC 6750) and the rate-limit headers
    (``Retry-After``, ``X-RateLimit-Limit``, ``X-RateLimit-Remaining``) for 429.
    """
    problem_type = _problem_type_for(exc)
    problem = ProblemDetail(
        type=f"/errors/{problem_type.slug}",
        title=problem_type.title,
        status=problem_type.status,
        detail=exc.message,
        instance=str(request.url.path),
        error_code=exc.error_code,
        context=_sanitize_context(exc.context),
    )
    response = _create_problem_response(problem)

    if isinstance(exc, AuthenticationError):
        response.headers["WWW-Authenticate"] = f'Bearer realm="API", error="{exc.auth_error}"'
    elif isinstance(exc, RateLimitedError):
        response.headers["Retry-After"] = str(max(1, exc.retry_after_seconds))
        response.headers["X-RateLimit-Limit"] = str(exc.cap)
        response.headers["X-RateLimit-Remaining"] = "0"

    if problem.status >= 500:
        logger.error("domain_error_server_side", extra={"error_code": exc.error_code})
    return response


async def request_validation_handler(
    request: Request,
    exc: RequestValidationError,
) -> JSONResponse:
    """Translate Pydantic RequestValidationError to 422."""
    errors = [
        {
            "loc": list(error.get("loc", [])),
            "msg": error.get("msg", ""),
            "type": error.get("type", ""),
        }
        for error in exc.errors()
    ]
    problem = ProblemDetail(
        type="/errors/request-validation-error",
        title="Request Validation Error",
        status=422,
        detail="Request validation failed",
        instance=str(request.url.path),
        error_code="REQUEST_VALIDATION_ERROR",
        context={"errors": errors},
    )
    return _create_problem_response(problem)


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all handler returning a sanitized 500 with the correlation ID.

    In debug mode the exception type and message are included.
    """
    correlation_id = get_request_id() or "unknown"
    logger.exception(
        "unhandled_exception",
        extra={
            "correlation_id": correlation_id,
            "path": str(request.url.path),
            "method": request.method,
            "exception_type": type(exc).__name__,
        },
    )

    if getattr(request.app, "debug", False):
        detail = f"{type(exc).__name__}: {exc}"
        context: dict[str, Any] | None = {"exception_type": type(exc).__name__}
    else:
        detail = "An internal error occurred. Please contact support with the correlation ID."
        context = None

    problem = ProblemDetail(
        type="/errors/internal-error",
        title="Internal Server Error",
        status=500,
        detail=detail,
        instance=str(request.url.path),
        error_code="INTERNAL_ERROR",
        context=context,
        correlation_id=correlation_id,
    )
    return _create_problem_response(problem)


def register_exception_handlers(app: FastAPI) -> None:
    """Register the problem-details handlers on a FastAPI application.

    1. DomainError (and every subclass) -> status from PROBLEM_TYPES
    2. RequestValidationError -> 422 (Pydantic)
    3. Exception -> 500 (catch-all)
    """
    app.add_exception_handler(DomainError, domain_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(
        RequestValidationError,
        request_validation_handler,  # type: ignore[arg-type]
    )
    app.add_exception_handler(Exception, unhandled_exception_handler)
