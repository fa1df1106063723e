"""Persistence lifespan hook for startup/shutdown resource management.

Handles:
- Database health check on startup (SELECT 1)
- Schema creation for every table registered on the shared metadata
- Engine disposal on shutdown
- Redis client close on shutdown

Priority 75 ensures persistence starts AFTER observability (50)
but BEFORE the TaskIQ broker (150) and the services (200).
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any

from sqlalchemy import text

from domicile.foundation.application import (
    LIFESPAN_PRIORITY_PERSISTENCE,
    LifespanContribution,
)
from domicile.infra.persistence.database import DatabaseManager, get_database_manager
from domicile.infra.persistence.redis_client import get_redis_factory
from domicile.infra.persistence.schema import metadata

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

logger = logging.getLogger(__name__)


def _prepare_database(manager: DatabaseManager) -> None:
    engine = manager.get_engine()
    with engine.connect() as conn:
        conn.execute(text("SELECT 1"))
    metadata.create_all(engine, checkfirst=True)


@asynccontextmanager
async def _persistence_lifespan(app: Any) -> AsyncIterator[None]:
    """Manage persistence resources across the application lifecycle.

    The manager is taken from ``app.state.database_manager`` when the app
    factory placed one there, otherwise the environment-configured default
    is used and published on ``app.state``.
    """
    manager: DatabaseManager = getattr(app.state, "database_manager", None) or (
        get_database_manager()
    )
    app.state.database_manager = manager

    await asyncio.to_thread(_prepare_database, manager)
    logger.info(
        "persistence_ready",
        extra={"tables": sorted(metadata.tables)},
    )

    try:
        yield
    finally:
        manager.dispose()
        logger.info("persistence_engine_disposed")

        try:
            await get_redis_factory().close()
            logger.info("persistence_redis_closed")
        except Exception:
            logger.warning("persistence_redis_close_failed", exc_info=True)


lifespan_contribution = LifespanContribution(
    name="persistence",
    hook=_persistence_lifespan,
    priority=LIFESPAN_PRIORITY_PERSISTENCE,
)
