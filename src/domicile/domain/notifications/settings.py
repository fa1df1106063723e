"""Notification delivery configuration.

Environment variables use the ``NOTIFICATIONS_`` prefix.
"""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class NotificationSettings(BaseSettings):
    """Fan-out and side-effect bounds.

    Attributes:
        fanout_concurrency: Maximum realtime pushes in flight per fan-out.
        push_timeout_seconds: Upper bound for a single realtime push.
        side_effect_timeout_seconds: Upper bound for each soft side effect
            (email, secondary notification) of a delete or restore.
        realtime_channel_prefix: Redis channel prefix for per-recipient pushes.
    """

    model_config = SettingsConfigDict(
        env_prefix="NOTIFICATIONS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    fanout_concurrency: int = Field(default=16, ge=1, le=256)
    push_timeout_seconds: float = Field(default=2.0, gt=0, le=30)
    side_effect_timeout_seconds: float = Field(default=5.0, gt=0, le=60)
    realtime_channel_prefix: str = Field(default="notifications", min_length=1)


@lru_cache(maxsize=1)
def get_notification_settings() -> NotificationSettings:
    """Get cached NotificationSettings singleton."""
    return NotificationSettings()
