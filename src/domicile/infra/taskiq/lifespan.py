"""Start the TaskIQ broker inside the API process.

The API only enqueues (``sweep_expired_restorations.kiq()``); workers and the
single scheduler run as separate processes.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any

from domicile.foundation.application import LIFESPAN_PRIORITY_TASKIQ, LifespanContribution
from domicile.infra.taskiq.broker import get_broker

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

logger = logging.getLogger(__name__)


@asynccontextmanager
async def _broker_lifespan(app: Any) -> AsyncIterator[None]:
    broker = get_broker()
    if broker.is_worker_process:
        yield
        return

    await broker.startup()
    logger.info("taskiq_broker_started")
    try:
        yield
    finally:
        await broker.shutdown()
        logger.info("taskiq_broker_stopped")


lifespan_contribution = LifespanContribution(
    name="taskiq",
    hook=_broker_lifespan,
    priority=LIFESPAN_PRIORITY_TASKIQ,
)
