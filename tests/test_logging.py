"""Unit tests for domicile.infra.observability.logging."""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING
from unittest.mock import patch

import pytest
import structlog

from domicile.infra.observability.logging import (
    REDACTED_VALUE,
    LoggingSettings,
    SensitiveDataProcessor,
    configure_logging,
)

if TYPE_CHECKING:
    from collections.abc import Iterator


@pytest.fixture()
def restore_logging() -> Iterator[None]:
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers = handlers
    root.setLevel(level)
    structlog.reset_defaults()


class TestLoggingSettings:
    @pytest.mark.unit
    def test_default_values(self) -> None:
        with patch.dict("os.environ", {}, clear=True):
            settings = LoggingSettings()
            assert settings.log_level == "INFO"
            assert settings.use_json_logs is False

    @pytest.mark.unit
    def test_production_uses_json(self) -> None:
        assert LoggingSettings(environment="production").use_json_logs is True

    @pytest.mark.unit
    def test_log_level_is_normalized(self) -> None:
        settings = LoggingSettings(log_level="warning")
        assert settings.log_level == "WARNING"
        assert settings.log_level_int == logging.WARNING

    @pytest.mark.unit
    def test_invalid_log_level(self) -> None:
        with pytest.raises(ValueError, match="log_level"):
            LoggingSettings(log_level="LOUD")


class TestSensitiveDataProcessor:
    @pytest.mark.unit
    def test_redacts_restoration_tokens(self) -> None:
        result = SensitiveDataProcessor()(
            None,
            "info",
            {"event": "vault_entry_upserted", "restoration_token": "ab12", "record_id": "r-1"},
        )
        assert result["restoration_token"] == REDACTED_VALUE
        assert result["record_id"] == "r-1"

    @pytest.mark.unit
    def test_redacts_exact_and_compound_keys(self) -> None:
        result = SensitiveDataProcessor()(
            None,
            "info",
            {"Authorization": "Bearer x", "db_password": "pw", "email_api_key": "k"},
        )
        assert set(result.values()) == {REDACTED_VALUE}

    @pytest.mark.unit
    def test_leaves_ordinary_keys(self) -> None:
        event = {"event": "listing_deleted", "listing_id": "l-1", "deletion_kind": "owner"}
        assert SensitiveDataProcessor()(None, "info", dict(event)) == event


class TestConfigureLogging:
    @pytest.mark.unit
    def test_stdlib_records_are_rendered_as_redacted_json(
        self, restore_logging: None, capsys: pytest.CaptureFixture[str]
    ) -> None:
        configure_logging(LoggingSettings(environment="production"))

        logging.getLogger("domicile.test").info(
            "vault_entry_upserted",
            extra={"record_id": "r-1", "restoration_token": "tok-0001"},
        )

        line = capsys.readouterr().err.strip().splitlines()[-1]
        record = json.loads(line)
        assert record["event"] == "vault_entry_upserted"
        assert record["record_id"] == "r-1"
        assert record["restoration_token"] == REDACTED_VALUE
        assert record["level"] == "info"

    @pytest.mark.unit
    def test_level_filters_records(
        self, restore_logging: None, capsys: pytest.CaptureFixture[str]
    ) -> None:
        configure_logging(LoggingSettings(environment="production", log_level="WARNING"))

        logging.getLogger("domicile.test").info("fanout_completed")

        assert "fanout_completed" not in capsys.readouterr().err
