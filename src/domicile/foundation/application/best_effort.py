"""Runner for soft-failing side effects.

Emails, realtime pushes and secondary notifications must never change the
outcome of the operation that requested them. ``run_best_effort`` bounds
each one with a timeout, logs any failure with enough context to retry
manually, and returns ``None`` instead of raising.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any, TypeVar

if TYPE_CHECKING:
    from collections.abc import Awaitable

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def run_best_effort(
    label: str,
    awaitable: Awaitable[T],
    timeout: float,
    **context: Any,
) -> T | None:
    """Await ``awaitable`` within ``timeout`` seconds, swallowing failures.

    Args:
        label: Snake_case name of the side effect, used as the log event.
        awaitable: The side effect to run.
        timeout: Upper bound in seconds before the side effect is abandoned.
        **context: Identifiers logged alongside any failure.

    Returns:
        The awaitable's result, or None if it failed or timed out.
    """
    try:
        return await asyncio.wait_for(awaitable, timeout=timeout)
    except TimeoutError:
        logger.warning(
            f"{label}_timed_out",
            extra={"timeout_seconds": timeout, **context},
        )
    except Exception:
        logger.warning(f"{label}_failed", extra=context, exc_info=True)
    return None
