"""Tests for the scheduled Token Vault sweep."""

from __future__ import annotations

from datetime import timedelta
from unittest.mock import patch

import pytest
from support import OWNER, T0, FixedClock, make_listing

from domicile.domain.restoration import DeletionKind, VaultEntry, VaultRepository
from domicile.domain.restoration.tasks import sweep_expired_restorations


def _seed(vault: VaultRepository) -> None:
    vault.upsert(
        VaultEntry(
            id="r-1",
            original_listing_id="l-1",
            snapshot=make_listing(),
            owner_id=OWNER.user_id,
            deleted_by=OWNER.user_id,
            deletion_kind=DeletionKind.OWNER,
            deleted_at=T0,
            restoration_token="tok-a",
            token_expiry=T0 + timedelta(days=30),
        )
    )


@pytest.mark.unit
class TestSweepExpiredRestorations:
    def test_schedule_label(self) -> None:
        [schedule] = sweep_expired_restorations.labels["schedule"]
        assert "cron" in schedule

    @pytest.mark.asyncio
    async def test_purges_expired_entries(self, session_factory) -> None:
        vault = VaultRepository(session_factory)
        _seed(vault)
        clock = FixedClock()
        clock.advance(days=30)

        with (
            patch(
                "domicile.domain.restoration.tasks.get_session_factory",
                return_value=session_factory,
            ),
            patch("domicile.domain.restoration.tasks.SystemClock", return_value=clock),
        ):
            purged = await sweep_expired_restorations()

        assert purged == 1
        assert vault.get("r-1") is None

    @pytest.mark.asyncio
    async def test_keeps_live_tokens(self, session_factory) -> None:
        vault = VaultRepository(session_factory)
        _seed(vault)

        with (
            patch(
                "domicile.domain.restoration.tasks.get_session_factory",
                return_value=session_factory,
            ),
            patch("domicile.domain.restoration.tasks.SystemClock", return_value=FixedClock()),
        ):
            purged = await sweep_expired_restorations()

        assert purged == 0
        assert vault.get("r-1") is not None
