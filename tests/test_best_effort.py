"""Tests for the soft side-effect runner."""

from __future__ import annotations

import asyncio
import logging

import pytest

from domicile.foundation.application.best_effort import run_best_effort


async def _value() -> str:
    return "sent"


async def _boom() -> None:
    msg = "provider down"
    raise ConnectionError(msg)


async def _slow() -> None:
    await asyncio.sleep(1)


@pytest.mark.unit
class TestRunBestEffort:
    @pytest.mark.asyncio
    async def test_returns_the_result(self) -> None:
        assert await run_best_effort("owner_email", _value(), 1.0) == "sent"

    @pytest.mark.asyncio
    async def test_failure_is_logged_and_swallowed(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.WARNING):
            result = await run_best_effort("owner_email", _boom(), 1.0, listing_id="l-1")

        assert result is None
        [record] = [r for r in caplog.records if r.getMessage() == "owner_email_failed"]
        assert record.listing_id == "l-1"
        assert record.exc_info is not None

    @pytest.mark.asyncio
    async def test_timeout_is_logged_and_swallowed(
        self, caplog: pytest.LogCaptureFixture
    ) -> None:
        with caplog.at_level(logging.WARNING):
            result = await run_best_effort("owner_email", _slow(), 0.01, listing_id="l-1")

        assert result is None
        assert any(r.getMessage() == "owner_email_timed_out" for r in caplog.records)
