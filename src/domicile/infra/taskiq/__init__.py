"""Domicile Infra TaskIQ -- background task broker and scheduler."""

from domicile.infra.taskiq.broker import (
    broker,
    get_broker,
    get_result_backend,
    get_scheduler,
    scheduler,
)
from domicile.infra.taskiq.lifespan import lifespan_contribution
from domicile.infra.taskiq.settings import TaskIQSettings, get_taskiq_settings

__all__ = [
    "TaskIQSettings",
    "broker",
    "get_broker",
    "get_result_backend",
    "get_scheduler",
    "get_taskiq_settings",
    "lifespan_contribution",
    "scheduler",
]
