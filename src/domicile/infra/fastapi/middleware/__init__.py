"""Middleware components for the domicile FastAPI integration."""

from domicile.infra.fastapi.middleware.request_context import (
    RequestContextMiddleware,
    get_request_id,
)

__all__ = [
    "RequestContextMiddleware",
    "get_request_id",
]
