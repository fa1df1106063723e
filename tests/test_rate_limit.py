"""Tests for report rate-limit windows and the audit-backed limiter."""

from __future__ import annotations

import asyncio
from datetime import UTC, datetime, timedelta
from zoneinfo import ZoneInfo

import pytest
from support import BUYER, T0

from domicile.domain.reporting import (
    AuditKind,
    DailyWindow,
    RateLimitPolicy,
    ReportAuditRepository,
    ReportRateLimiter,
    TrailingWindow,
)
from domicile.foundation.domain.exceptions import RateLimitedError


@pytest.fixture()
def audit(session_factory) -> ReportAuditRepository:
    return ReportAuditRepository(session_factory)


@pytest.fixture()
def limiter(audit, clock) -> ReportRateLimiter:
    return ReportRateLimiter(audit, clock)


DAILY = RateLimitPolicy(AuditKind.MESSAGE, 10, DailyWindow())
HOURLY = RateLimitPolicy(AuditKind.CHAT, 5, TrailingWindow())


@pytest.mark.unit
class TestWindows:
    def test_daily_window_starts_at_utc_midnight(self) -> None:
        window = DailyWindow()
        assert window.start(T0) == datetime(2026, 3, 14, tzinfo=UTC)
        assert window.frees_at(T0, None) == datetime(2026, 3, 15, tzinfo=UTC)

    def test_daily_window_follows_the_configured_zone(self) -> None:
        window = DailyWindow(ZoneInfo("America/New_York"))
        # 12:00 UTC is 08:00 EDT
        assert window.start(T0) == datetime(2026, 3, 14, 4, tzinfo=UTC)
        assert window.frees_at(T0, None) == datetime(2026, 3, 15, 4, tzinfo=UTC)

    def test_trailing_window(self) -> None:
        window = TrailingWindow()
        oldest = T0 - timedelta(minutes=50)
        assert window.start(T0) == T0 - timedelta(hours=1)
        assert window.frees_at(T0, oldest) == T0 + timedelta(minutes=10)


@pytest.mark.unit
class TestDailyCap:
    @pytest.mark.asyncio
    async def test_under_the_cap(self, limiter, audit) -> None:
        for minutes in range(9):
            audit.append(BUYER.user_id, "c-1", AuditKind.MESSAGE, T0 - timedelta(minutes=minutes))

        await limiter.acquire(BUYER.user_id, "c-1", DAILY)

        with pytest.raises(RateLimitedError):
            await limiter.acquire(BUYER.user_id, "c-1", DAILY)

    @pytest.mark.asyncio
    async def test_eleventh_report_is_refused_until_midnight(self, limiter, audit) -> None:
        for minutes in range(10):
            audit.append(BUYER.user_id, "c-1", AuditKind.MESSAGE, T0 - timedelta(minutes=minutes))

        with pytest.raises(RateLimitedError) as exc_info:
            await limiter.acquire(BUYER.user_id, "c-1", DAILY)

        err = exc_info.value
        assert err.cap == 10
        assert err.window == "day"
        assert err.retry_after_seconds == 12 * 3600
        assert "10 reports per day" in err.message

    @pytest.mark.asyncio
    async def test_yesterday_does_not_count(self, limiter, audit, clock) -> None:
        for minutes in range(10):
            audit.append(BUYER.user_id, "c-1", AuditKind.MESSAGE, T0 - timedelta(minutes=minutes))
        clock.set(datetime(2026, 3, 15, 0, 0, 1, tzinfo=UTC))

        await limiter.acquire(BUYER.user_id, "c-1", DAILY)

    @pytest.mark.asyncio
    async def test_caps_are_per_conversation_and_kind(self, limiter, audit) -> None:
        for _ in range(10):
            audit.append(BUYER.user_id, "c-1", AuditKind.MESSAGE, T0)

        await limiter.acquire(BUYER.user_id, "c-2", DAILY)
        await limiter.acquire(BUYER.user_id, "c-1", HOURLY)

    @pytest.mark.asyncio
    async def test_acquire_appends_at_the_clock(self, limiter, audit) -> None:
        await limiter.acquire(BUYER.user_id, "c-1", DAILY)

        count, oldest = audit.count_since(BUYER.user_id, "c-1", AuditKind.MESSAGE, T0)
        assert count == 1
        assert oldest == T0


@pytest.mark.unit
class TestTrailingCap:
    @pytest.mark.asyncio
    async def test_sixth_report_waits_for_the_oldest_to_leave(self, limiter, audit) -> None:
        for minutes in (50, 40, 30, 20, 10):
            audit.append(BUYER.user_id, "c-1", AuditKind.CHAT, T0 - timedelta(minutes=minutes))

        with pytest.raises(RateLimitedError) as exc_info:
            await limiter.acquire(BUYER.user_id, "c-1", HOURLY)

        assert exc_info.value.window == "hour"
        assert exc_info.value.retry_after_seconds == 600

    @pytest.mark.asyncio
    async def test_slot_frees_once_the_oldest_ages_out(self, limiter, audit, clock) -> None:
        for minutes in (50, 40, 30, 20, 10):
            audit.append(BUYER.user_id, "c-1", AuditKind.CHAT, T0 - timedelta(minutes=minutes))
        clock.advance(minutes=10, seconds=1)

        await limiter.acquire(BUYER.user_id, "c-1", HOURLY)

    @pytest.mark.asyncio
    async def test_window_boundary_is_inclusive(self, limiter, audit) -> None:
        for minutes in (60, 40, 30, 20, 10):
            audit.append(BUYER.user_id, "c-1", AuditKind.CHAT, T0 - timedelta(minutes=minutes))

        with pytest.raises(RateLimitedError) as exc_info:
            await limiter.acquire(BUYER.user_id, "c-1", HOURLY)
        assert exc_info.value.retry_after_seconds == 1


@pytest.mark.unit
class TestSlotClaims:
    @pytest.mark.asyncio
    async def test_concurrent_claims_never_exceed_the_cap(self, limiter, audit) -> None:
        results = await asyncio.gather(
            *(limiter.acquire(BUYER.user_id, "c-1", HOURLY) for _ in range(8)),
            return_exceptions=True,
        )

        claimed = [r for r in results if isinstance(r, int)]
        refused = [r for r in results if isinstance(r, RateLimitedError)]
        assert len(claimed) == 5
        assert len(set(claimed)) == 5
        assert len(refused) == 3
        count, _ = audit.count_since(BUYER.user_id, "c-1", AuditKind.CHAT, T0 - timedelta(hours=1))
        assert count == 5

    @pytest.mark.asyncio
    async def test_release_gives_the_slot_back(self, limiter, audit) -> None:
        for minutes in (40, 30, 20, 10):
            audit.append(BUYER.user_id, "c-1", AuditKind.CHAT, T0 - timedelta(minutes=minutes))
        slot = await limiter.acquire(BUYER.user_id, "c-1", HOURLY)
        with pytest.raises(RateLimitedError):
            await limiter.acquire(BUYER.user_id, "c-1", HOURLY)

        await limiter.release(slot)

        await limiter.acquire(BUYER.user_id, "c-1", HOURLY)
        count, _ = audit.count_since(BUYER.user_id, "c-1", AuditKind.CHAT, T0 - timedelta(hours=1))
        assert count == 5

    @pytest.mark.asyncio
    async def test_refused_claim_writes_nothing(self, limiter, audit) -> None:
        for minutes in (50, 40, 30, 20, 10):
            audit.append(BUYER.user_id, "c-1", AuditKind.CHAT, T0 - timedelta(minutes=minutes))

        with pytest.raises(RateLimitedError):
            await limiter.acquire(BUYER.user_id, "c-1", HOURLY)

        count, _ = audit.count_since(BUYER.user_id, "c-1", AuditKind.CHAT, T0 - timedelta(hours=1))
        assert count == 5
