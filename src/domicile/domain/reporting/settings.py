"""Report submission limits.

Environment variables use the ``REPORTS_`` prefix.
"""

from __future__ import annotations

from datetime import UTC, tzinfo
from functools import lru_cache
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ReportSettings(BaseSettings):
    """Per-user report caps.

    Attributes:
        message_daily_cap: Message reports per user and conversation per calendar day.
        chat_hourly_cap: Chat reports per user and conversation per trailing hour.
        timezone: IANA zone whose midnight starts the daily window.
        excerpt_length: Characters of a reported message copied into the report.
    """

    model_config = SettingsConfigDict(
        env_prefix="REPORTS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    message_daily_cap: int = Field(default=10, ge=1)
    chat_hourly_cap: int = Field(default=5, ge=1)
    timezone: str = Field(default="UTC")
    excerpt_length: int = Field(default=300, ge=20, le=2000)

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, v: str) -> str:
        if v == "UTC":
            return v
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError) as err:
            msg = f"Unknown timezone: {v!r}"
            raise ValueError(msg) from err
        return v

    @property
    def zone(self) -> tzinfo:
        if self.timezone == "UTC":
            return UTC
        return ZoneInfo(self.timezone)


@lru_cache(maxsize=1)
def get_report_settings() -> ReportSettings:
    """Get cached ReportSettings singleton."""
    return ReportSettings()
