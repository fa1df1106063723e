"""Pure ASGI middleware populating request context from HTTP headers.

Extracts the caller identity and a request ID, stores them in ContextVars
for the rest of the request, binds the request ID into the structlog
context and echoes it on the response.

Headers:
- X-User-ID: Caller identity set by the gateway. Absent for anonymous calls.
- X-Request-ID: Optional correlation ID. Generated when missing or not a UUID.
"""

from __future__ import annotations

import uuid
from contextvars import ContextVar
from typing import TYPE_CHECKING, Any

import structlog

from domicile.foundation.application.context import (
    clear_request_context,
    set_request_context,
)

if TYPE_CHECKING:
    from collections.abc import Callable

USER_ID_HEADER = "X-User-ID"
REQUEST_ID_HEADER = "X-Request-ID"

request_id_ctx: ContextVar[str] = ContextVar("request_id", default="")


def get_request_id() -> str:
    """Return the current request ID, or an empty string outside a request."""
    return request_id_ctx.get()


def _is_valid_uuid(value: str | None) -> bool:
    if not value:
        return False
    try:
        uuid.UUID(value)
    except (ValueError, AttributeError):
        return False
    return True


def _extract_header(headers: list[tuple[bytes, bytes]], name: bytes) -> str:
    for key, value in headers:
        if key.lower() == name:
            return value.decode("latin-1")
    return ""


class RequestContextMiddleware:
    """Pure ASGI middleware for request ID and caller identity propagation.

    Invalid request IDs from clients are replaced rather than rejected so
    header misconfiguration never blocks a request.

    Example:
        >>> app = FastAPI()
        >>> app.add_middleware(RequestContextMiddleware)
    """

    def __init__(self, app: Any) -> None:
        self.app = app

    async def __call__(
        self,
        scope: dict[str, Any],
        receive: Callable[..., Any],
        send: Callable[..., Any],
    ) -> None:
        if scope["type"] not in ("http", "websocket"):
            await self.app(scope, receive, send)
            return

        headers = scope.get("headers", [])
        request_id = _extract_header(headers, b"x-request-id")
        if not _is_valid_uuid(request_id):
            request_id = str(uuid.uuid4())
        user_id = _extract_header(headers, b"x-user-id").strip() or None

        id_token = request_id_ctx.set(request_id)
        ctx_token = set_request_context(user_id=user_id, correlation_id=request_id)
        structlog.contextvars.bind_contextvars(request_id=request_id)

        async def send_with_request_id(message: dict[str, Any]) -> None:
            if message["type"] == "http.response.start":
                resp_headers = list(message.get("headers", []))
                resp_headers.append((b"x-request-id", request_id.encode("latin-1")))
                message = {**message, "headers": resp_headers}
            await send(message)

        try:
            await self.app(scope, receive, send_with_request_id)
        finally:
            structlog.contextvars.unbind_contextvars("request_id")
            clear_request_context(ctx_token)
            request_id_ctx.reset(id_token)
