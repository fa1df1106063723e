"""FastAPI application factory.

Provides :func:`create_app` which wires routers, middleware, error handlers
and lifespan hooks into a FastAPI application.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from fastapi import FastAPI
from starlette.middleware.cors import CORSMiddleware

from domicile.infra.fastapi._health import router as health_router
from domicile.infra.fastapi.error_handlers import register_exception_handlers
from domicile.infra.fastapi.lifespan import compose_lifespan
from domicile.infra.fastapi.middleware.request_context import RequestContextMiddleware
from domicile.infra.fastapi.settings import AppSettings

if TYPE_CHECKING:
    from fastapi import APIRouter

    from domicile.foundation.application import LifespanContribution

logger = logging.getLogger(__name__)


def create_app(
    settings: AppSettings | None = None,
    *,
    routers: list[APIRouter] | None = None,
    lifespan_hooks: list[LifespanContribution] | None = None,
) -> FastAPI:
    """Create a FastAPI application with the given contributions.

    Args:
        settings: Application settings. If ``None``, loaded from environment.
        routers: Routers to include after the health router.
        lifespan_hooks: Lifespan hooks, composed by priority.

    Returns:
        Configured FastAPI application instance.
    """
    settings = settings or AppSettings()

    app = FastAPI(
        title=settings.title,
        version=settings.version,
        description=settings.description,
        docs_url=settings.docs_url,
        redoc_url=settings.redoc_url,
        openapi_url=settings.openapi_url,
        debug=settings.debug,
        lifespan=compose_lifespan(list(lifespan_hooks or [])),
    )

    # Starlette wraps LIFO: context middleware runs inside CORS
    app.add_middleware(RequestContextMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors.allow_origins,
        allow_credentials=settings.cors.allow_credentials,
        allow_methods=settings.cors.allow_methods,
        allow_headers=settings.cors.allow_headers,
        expose_headers=settings.cors.expose_headers,
    )

    register_exception_handlers(app)

    app.include_router(health_router)
    for router in routers or []:
        app.include_router(router)
        logger.info("router_included", extra={"prefix": router.prefix})

    return app
