"""Tests for the notification fan-out engine and realtime pusher."""

from __future__ import annotations

import asyncio
from typing import Any
from unittest.mock import AsyncMock

import pytest
from support import ADMIN, BUYER, OWNER, ROOT, SILENT_WATCHER, WATCHER

from domicile.domain.notifications import (
    Audience,
    NotificationDraft,
    NotificationSettings,
    NotificationType,
    Push,
    RealtimePusher,
)
from domicile.foundation.domain.ports import NOTIFICATION_CREATED


def _draft(**overrides: Any) -> NotificationDraft:
    values: dict[str, Any] = {
        "type": NotificationType.ADMIN_MESSAGE,
        "title": "Maintenance window",
        "message": "The console is read-only tonight.",
        "meta": {"sender_id": ADMIN.user_id},
    }
    values.update(overrides)
    return NotificationDraft(**values)


@pytest.mark.unit
class TestFanOut:
    @pytest.mark.asyncio
    async def test_one_record_per_distinct_recipient(self, fanout, notifications) -> None:
        created = await fanout.fan_out([BUYER.user_id, OWNER.user_id, BUYER.user_id], _draft())

        assert [n.recipient_id for n in created] == [BUYER.user_id, OWNER.user_id]
        assert len(notifications.list_for_recipient(BUYER.user_id)) == 1
        assert len(notifications.list_for_recipient(OWNER.user_id)) == 1

    @pytest.mark.asyncio
    async def test_copies_share_a_broadcast_group(self, fanout) -> None:
        created = await fanout.fan_out([BUYER.user_id, OWNER.user_id], _draft())

        group_ids = {n.broadcast_group_id for n in created}
        assert len(group_ids) == 1
        assert None not in group_ids
        assert len({n.id for n in created}) == 2

    @pytest.mark.asyncio
    async def test_audience_is_recorded_in_meta(self, fanout) -> None:
        created = await fanout.fan_out([BUYER.user_id], _draft(), Audience.USER)
        assert created[0].meta == {"sender_id": ADMIN.user_id, "audience": "user"}

    @pytest.mark.asyncio
    async def test_each_record_is_pushed_to_its_recipient(self, fanout, channel) -> None:
        created = await fanout.fan_out([BUYER.user_id, OWNER.user_id], _draft())

        for n in created:
            [payload] = channel.events_for(n.recipient_id, NOTIFICATION_CREATED)
            assert payload["id"] == n.id
            assert payload["isRead"] is False

    @pytest.mark.asyncio
    async def test_no_recipients_creates_nothing(self, fanout, channel) -> None:
        assert await fanout.fan_out([], _draft()) == []
        assert channel.published == []

    @pytest.mark.asyncio
    async def test_push_failure_keeps_persisted_records(
        self, fanout, channel, notifications
    ) -> None:
        channel.failing.add(BUYER.user_id)

        created = await fanout.fan_out([BUYER.user_id, OWNER.user_id], _draft())

        assert len(created) == 2
        assert notifications.unread_count(BUYER.user_id) == 1
        assert channel.events_for(BUYER.user_id) == []
        assert len(channel.events_for(OWNER.user_id)) == 1


@pytest.mark.unit
class TestFanOutShapes:
    @pytest.mark.asyncio
    async def test_to_admins_reaches_only_elevated_accounts(self, fanout) -> None:
        created = await fanout.to_admins(_draft())

        assert sorted(n.recipient_id for n in created) == sorted([ADMIN.user_id, ROOT.user_id])
        assert {n.audience for n in created} == {"admins"}

    @pytest.mark.asyncio
    async def test_to_subscribers_reaches_watchlist_only(self, fanout, listing) -> None:
        created = await fanout.to_subscribers(listing["id"], _draft(listing_id=listing["id"]))

        recipients = sorted(n.recipient_id for n in created)
        assert recipients == sorted([WATCHER.user_id, SILENT_WATCHER.user_id])
        assert {n.audience for n in created} == {"subscribers"}

    @pytest.mark.asyncio
    async def test_to_user(self, fanout) -> None:
        created = await fanout.to_user(OWNER.user_id, _draft())
        assert created is not None
        assert created.recipient_id == OWNER.user_id
        assert created.audience == "user"


@pytest.mark.unit
class TestRealtimePusher:
    @pytest.mark.asyncio
    async def test_counts_successful_pushes(self, channel) -> None:
        channel.failing.add("b")
        pusher = RealtimePusher(channel, NotificationSettings())

        delivered = await pusher.push_all(
            [Push("a", "evt", {}), Push("b", "evt", {}), Push("c", "evt", {})]
        )

        assert delivered == 2

    @pytest.mark.asyncio
    async def test_slow_push_is_abandoned(self) -> None:
        async def _slow(*args: Any) -> None:
            await asyncio.sleep(1)

        channel = AsyncMock()
        channel.publish.side_effect = _slow
        pusher = RealtimePusher(channel, NotificationSettings(push_timeout_seconds=0.05))

        assert await pusher.push_all([Push("a", "evt", {})]) == 0

    @pytest.mark.asyncio
    async def test_concurrency_is_bounded(self) -> None:
        in_flight = 0
        peak = 0

        async def _publish(*args: Any) -> None:
            nonlocal in_flight, peak
            in_flight += 1
            peak = max(peak, in_flight)
            await asyncio.sleep(0.01)
            in_flight -= 1

        channel = AsyncMock()
        channel.publish.side_effect = _publish
        pusher = RealtimePusher(channel, NotificationSettings(fanout_concurrency=3))

        delivered = await pusher.push_all(Push(str(i), "evt", {}) for i in range(10))

        assert delivered == 10
        assert peak == 3
