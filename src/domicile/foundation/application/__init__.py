"""Domicile Foundation Application -- cross-cutting application services.

Request context propagation, lifespan contribution types,
the system clock and the soft side-effect runner.
"""

from domicile.foundation.application.best_effort import run_best_effort
from domicile.foundation.application.clock import SystemClock
from domicile.foundation.application.context import (
    NoRequestContextError,
    RequestContext,
    clear_request_context,
    get_current_context,
    get_current_user_id,
    request_context,
    set_request_context,
)
from domicile.foundation.application.contributions import (
    LIFESPAN_PRIORITY_OBSERVABILITY,
    LIFESPAN_PRIORITY_PERSISTENCE,
    LIFESPAN_PRIORITY_SERVICES,
    LIFESPAN_PRIORITY_TASKIQ,
    LifespanContribution,
)

__all__ = [
    "LIFESPAN_PRIORITY_OBSERVABILITY",
    "LIFESPAN_PRIORITY_PERSISTENCE",
    "LIFESPAN_PRIORITY_SERVICES",
    "LIFESPAN_PRIORITY_TASKIQ",
    "LifespanContribution",
    "NoRequestContextError",
    "RequestContext",
    "SystemClock",
    "clear_request_context",
    "get_current_context",
    "get_current_user_id",
    "request_context",
    "run_best_effort",
    "set_request_context",
]
