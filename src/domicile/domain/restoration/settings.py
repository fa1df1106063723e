"""Restoration token configuration.

Environment variables use the ``RESTORATION_`` prefix.
"""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class RestorationSettings(BaseSettings):
    """Token lifetime and entropy.

    Attributes:
        token_ttl_days: Days a restoration token stays valid after deletion.
        token_bytes: Random bytes per token (hex encoded, so twice as many characters).
    """

    model_config = SettingsConfigDict(
        env_prefix="RESTORATION_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    token_ttl_days: int = Field(default=30, ge=1, le=365)
    token_bytes: int = Field(default=32, ge=16, le=64)


@lru_cache(maxsize=1)
def get_restoration_settings() -> RestorationSettings:
    """Get cached RestorationSettings singleton."""
    return RestorationSettings()
