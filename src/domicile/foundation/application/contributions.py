"""Startup and shutdown hooks plugged into the Domicile app factory.

Each infrastructure package (observability, persistence, TaskIQ) and the
wired domain services expose one :class:`LifespanContribution`. The factory
orders them by priority; nothing here depends on FastAPI.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

# Lower starts first and stops last.
LIFESPAN_PRIORITY_OBSERVABILITY = 50
LIFESPAN_PRIORITY_PERSISTENCE = 75
LIFESPAN_PRIORITY_TASKIQ = 150
LIFESPAN_PRIORITY_SERVICES = 200


@dataclass(frozen=True, slots=True)
class LifespanContribution:
    """An ordered lifespan hook.

    Attributes:
        name: Short label used in startup and shutdown logs.
        hook: ``(app) -> AsyncContextManager[None]``.
        priority: Start order.
    """

    name: str
    hook: Any
    priority: int = 500
