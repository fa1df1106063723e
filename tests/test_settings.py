"""Unit tests for the environment-backed settings classes."""

from __future__ import annotations

from datetime import UTC
from unittest.mock import patch
from zoneinfo import ZoneInfo

import pytest
from pydantic import ValidationError

from domicile.domain.notifications import NotificationSettings
from domicile.domain.reporting import ReportSettings
from domicile.domain.restoration import RestorationSettings
from domicile.infra.fastapi import CORSSettings


class TestRestorationSettings:
    @pytest.mark.unit
    def test_defaults(self) -> None:
        with patch.dict("os.environ", {}, clear=True):
            settings = RestorationSettings()
        assert settings.token_ttl_days == 30
        assert settings.token_bytes == 32

    @pytest.mark.unit
    def test_env_override(self) -> None:
        with patch.dict("os.environ", {"RESTORATION_TOKEN_TTL_DAYS": "7"}, clear=True):
            assert RestorationSettings().token_ttl_days == 7

    @pytest.mark.unit
    def test_rejects_short_tokens(self) -> None:
        with pytest.raises(ValidationError):
            RestorationSettings(token_bytes=8)


class TestReportSettings:
    @pytest.mark.unit
    def test_defaults(self) -> None:
        with patch.dict("os.environ", {}, clear=True):
            settings = ReportSettings()
        assert settings.message_daily_cap == 10
        assert settings.chat_hourly_cap == 5
        assert settings.zone is UTC

    @pytest.mark.unit
    def test_named_zone(self) -> None:
        assert ReportSettings(timezone="Europe/Berlin").zone == ZoneInfo("Europe/Berlin")

    @pytest.mark.unit
    def test_unknown_zone(self) -> None:
        with pytest.raises(ValidationError, match="Unknown timezone"):
            ReportSettings(timezone="Mars/Olympus_Mons")


class TestNotificationSettings:
    @pytest.mark.unit
    def test_env_override(self) -> None:
        env = {"NOTIFICATIONS_FANOUT_CONCURRENCY": "4", "NOTIFICATIONS_PUSH_TIMEOUT_SECONDS": "0.5"}
        with patch.dict("os.environ", env, clear=True):
            settings = NotificationSettings()
        assert settings.fanout_concurrency == 4
        assert settings.push_timeout_seconds == 0.5

    @pytest.mark.unit
    def test_rejects_zero_concurrency(self) -> None:
        with pytest.raises(ValidationError):
            NotificationSettings(fanout_concurrency=0)


class TestCORSSettings:
    @pytest.mark.unit
    def test_comma_separated_origins(self) -> None:
        settings = CORSSettings(
            allow_origins="https://a.example.com, https://b.example.com",  # type: ignore[arg-type]
        )
        assert settings.allow_origins == ["https://a.example.com", "https://b.example.com"]

    @pytest.mark.unit
    def test_rate_limit_headers_are_exposed(self) -> None:
        assert "Retry-After" in CORSSettings().expose_headers

    @pytest.mark.unit
    def test_credentials_with_wildcard_rejected(self) -> None:
        with pytest.raises(ValidationError, match="allow_credentials"):
            CORSSettings(allow_credentials=True)
