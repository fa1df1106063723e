"""Scheduled Token Vault maintenance.

Run with the worker and scheduler entry points documented in
``domicile.infra.taskiq.broker``.
"""

from __future__ import annotations

import asyncio
import logging

from domicile.domain.restoration.infrastructure import VaultRepository
from domicile.foundation.application.clock import SystemClock
from domicile.infra.persistence import get_session_factory
from domicile.infra.taskiq.broker import broker
from domicile.infra.taskiq.settings import get_taskiq_settings

logger = logging.getLogger(__name__)


@broker.task(
    task_name="domicile.sweep_expired_restorations",
    schedule=[{"cron": get_taskiq_settings().vault_sweep_cron}],
)
async def sweep_expired_restorations() -> int:
    """Purge vault entries whose token expired without a restore."""
    vault = VaultRepository(get_session_factory())
    purged = await asyncio.to_thread(vault.purge_expired, SystemClock().now())
    logger.info(
        "vault_sweep_completed",
        extra={"purged": len(purged), "listing_ids": [e.original_listing_id for e in purged]},
    )
    return len(purged)
