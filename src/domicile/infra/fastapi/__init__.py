"""Domicile Infra FastAPI -- error handlers, middleware, app factory."""

from domicile.infra.fastapi.app_factory import create_app
from domicile.infra.fastapi.error_handlers import (
    ProblemDetail,
    register_exception_handlers,
)
from domicile.infra.fastapi.lifespan import compose_lifespan
from domicile.infra.fastapi.middleware.request_context import (
    RequestContextMiddleware,
    get_request_id,
)
from domicile.infra.fastapi.settings import AppSettings, CORSSettings

__all__ = [
    "AppSettings",
    "CORSSettings",
    "ProblemDetail",
    "RequestContextMiddleware",
    "compose_lifespan",
    "create_app",
    "get_request_id",
    "register_exception_handlers",
]
