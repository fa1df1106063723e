"""Compose lifespan contributions into one FastAPI lifespan."""

from __future__ import annotations

import logging
from contextlib import AsyncExitStack, asynccontextmanager
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Callable
    from contextlib import AbstractAsyncContextManager

    from fastapi import FastAPI

    from domicile.foundation.application import LifespanContribution

logger = logging.getLogger(__name__)


def compose_lifespan(
    hooks: list[LifespanContribution],
) -> Callable[[FastAPI], AbstractAsyncContextManager[None]]:
    """Enter ``hooks`` in priority order and exit them in reverse.

    A hook that fails to start unwinds every hook already entered.
    """
    ordered = sorted(hooks, key=lambda h: h.priority)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        async with AsyncExitStack() as stack:
            for contribution in ordered:
                await stack.enter_async_context(contribution.hook(app))
                logger.info(
                    "lifespan_hook_started",
                    extra={"hook": contribution.name, "priority": contribution.priority},
                )
            yield
            logger.info("lifespan_shutting_down", extra={"hooks": [h.name for h in ordered]})

    return lifespan
