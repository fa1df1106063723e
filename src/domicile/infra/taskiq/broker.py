"""TaskIQ broker and scheduler configured with Redis Stream.

Usage:
    from domicile.infra.taskiq.broker import broker

    @broker.task(schedule=[{"cron": "17 * * * *"}])
    async def sweep() -> None:
        ...

    # Start worker
    # taskiq worker domicile.infra.taskiq.broker:broker domicile.domain.restoration.tasks

    # Start scheduler (single instance only)
    # taskiq scheduler domicile.infra.taskiq.broker:scheduler domicile.domain.restoration.tasks
"""

from __future__ import annotations

from functools import lru_cache

from taskiq import TaskiqScheduler
from taskiq.schedule_sources import LabelScheduleSource
from taskiq_redis import RedisAsyncResultBackend, RedisStreamBroker

from domicile.infra.taskiq.settings import get_taskiq_settings


@lru_cache(maxsize=1)
def get_result_backend() -> RedisAsyncResultBackend[str]:
    """Get or create the TaskIQ result backend."""
    settings = get_taskiq_settings()
    return RedisAsyncResultBackend(
        redis_url=settings.redis_url,
        result_ex_time=settings.result_ttl,
    )


@lru_cache(maxsize=1)
def get_broker() -> RedisStreamBroker:
    """Get or create the TaskIQ broker with its result backend."""
    settings = get_taskiq_settings()
    return RedisStreamBroker(
        url=settings.redis_url,
        queue_name=f"{settings.stream_prefix}:domicile",
    ).with_result_backend(get_result_backend())


@lru_cache(maxsize=1)
def get_scheduler() -> TaskiqScheduler:
    """Get or create the scheduler.

    Schedules come from ``@broker.task(schedule=[...])`` labels only.
    Run ONE scheduler instance per deployment to avoid duplicate sweeps.
    """
    _broker = get_broker()
    return TaskiqScheduler(broker=_broker, sources=[LabelScheduleSource(_broker)])


class _LazyProxy:
    """Defers creation of a broker-side object until first attribute access."""

    def __init__(self, factory: object) -> None:
        self._factory = factory

    def __getattr__(self, name: str) -> object:
        return getattr(self._factory(), name)  # type: ignore[operator]


# The taskiq CLI expects module-level `broker` and `scheduler` attributes.
broker: RedisStreamBroker = _LazyProxy(get_broker)  # type: ignore[assignment]
scheduler: TaskiqScheduler = _LazyProxy(get_scheduler)  # type: ignore[assignment]
