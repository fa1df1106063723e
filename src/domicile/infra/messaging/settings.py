"""Outbound email configuration.

Environment variables use the ``EMAIL_`` prefix (e.g., ``EMAIL_API_URL``).
"""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class EmailSettings(BaseSettings):
    """Configuration for the transactional email HTTP API.

    Attributes:
        api_url: Endpoint accepting a JSON send request.
        api_key: Provider API key (hidden in repr and logs).
        sender_address: From address.
        sender_name: From display name.
        timeout_seconds: Per-request HTTP timeout.
        enabled: When False, sends are logged and dropped.
    """

    model_config = SettingsConfigDict(
        env_prefix="EMAIL_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    api_url: str = Field(default="https://api.brevo.com/v3/smtp/email")
    api_key: str = Field(default="", repr=False)
    sender_address: str = Field(default="noreply@domicile.local")
    sender_name: str = Field(default="Domicile")
    timeout_seconds: float = Field(default=5.0, gt=0, le=60)
    enabled: bool = Field(default=False)


@lru_cache(maxsize=1)
def get_email_settings() -> EmailSettings:
    """Get cached EmailSettings singleton."""
    return EmailSettings()
