"""Aggregated health check endpoint.

Reports per-subsystem health for the database and Redis.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from sqlalchemy import text

from domicile.infra.persistence.database import DatabaseManager, get_database_manager
from domicile.infra.persistence.redis_client import get_redis_factory

router = APIRouter(tags=["health"])
logger = logging.getLogger(__name__)


def _select_one(manager: DatabaseManager) -> None:
    with manager.get_engine().connect() as conn:
        conn.execute(text("SELECT 1"))


async def _check_database(request: Request) -> dict[str, str]:
    manager = getattr(request.app.state, "database_manager", None) or get_database_manager()
    try:
        await asyncio.to_thread(_select_one, manager)
    except Exception as exc:
        logger.warning("health_check_database_unhealthy", extra={"error": str(exc)})
        return {"status": "error", "detail": str(exc)}
    return {"status": "ok"}


async def _check_redis(request: Request) -> dict[str, str]:
    if getattr(request.app.state, "skip_redis_health", False):
        return {"status": "skipped"}
    try:
        client = await get_redis_factory().get_client()
        await client.ping()
    except Exception as exc:
        logger.warning("health_check_redis_unhealthy", extra={"error": str(exc)})
        return {"status": "error", "detail": str(exc)}
    return {"status": "ok"}


@router.get("/healthz")
async def healthz(request: Request) -> Any:
    """Return 200 when every subsystem is healthy, 503 when any is degraded."""
    checks = {
        "database": await _check_database(request),
        "redis": await _check_redis(request),
    }
    all_ok = all(c["status"] in ("ok", "skipped") for c in checks.values())
    return JSONResponse(
        content={"status": "ok" if all_ok else "degraded", "checks": checks},
        status_code=200 if all_ok else 503,
    )
