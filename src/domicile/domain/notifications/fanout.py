"""Notification fan-out engine.

Materializes one notification per recipient from a single event draft,
persists the whole batch in one transaction, then pushes each record over
the realtime channel.

Delivery contract:
- Exactly once in storage: the batch insert either lands or raises.
- At most once per channel: pushes run after the insert, concurrently,
  bounded by ``fanout_concurrency`` and ``push_timeout_seconds``. A failed
  or slow push is logged and dropped; it never touches persisted state.
- Every copy of one fan-out carries the same ``broadcast_group_id``.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from domicile.domain.notifications.model import Audience, Notification
from domicile.foundation.domain.ports import NOTIFICATION_CREATED

if TYPE_CHECKING:
    from collections.abc import Iterable

    from domicile.domain.notifications.infrastructure import NotificationRepository
    from domicile.domain.notifications.model import NotificationDraft
    from domicile.domain.notifications.settings import NotificationSettings
    from domicile.domain.watchlist.infrastructure import SubscriptionRepository
    from domicile.foundation.domain.ports import (
        ClockPort,
        IdentityDirectoryPort,
        RealtimeChannelPort,
    )

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Push:
    """One realtime event addressed to one recipient."""

    recipient_id: str
    event: str
    payload: dict[str, Any]


class RealtimePusher:
    """Bounded-concurrency, failure-isolated realtime delivery."""

    def __init__(self, channel: RealtimeChannelPort, settings: NotificationSettings) -> None:
        self._channel = channel
        self._settings = settings

    async def push_all(self, pushes: Iterable[Push]) -> int:
        """Deliver every push concurrently. Returns how many succeeded."""
        semaphore = asyncio.Semaphore(self._settings.fanout_concurrency)

        async def _one(push: Push) -> bool:
            async with semaphore:
                try:
                    await asyncio.wait_for(
                        self._channel.publish(push.recipient_id, push.event, push.payload),
                        timeout=self._settings.push_timeout_seconds,
                    )
                except TimeoutError:
                    logger.warning(
                        "realtime_push_timed_out",
                        extra={"recipient_id": push.recipient_id, "push_event": push.event},
                    )
                    return False
                except Exception:
                    logger.warning(
                        "realtime_push_failed",
                        extra={"recipient_id": push.recipient_id, "push_event": push.event},
                        exc_info=True,
                    )
                    return False
                return True

        results = await asyncio.gather(*(_one(p) for p in pushes))
        return sum(results)


def _unique(ids: Iterable[str]) -> list[str]:
    return list(dict.fromkeys(i for i in ids if i))


class NotificationFanout:
    """Creates and delivers notifications for the three fan-out shapes.

    Shapes:
        to_subscribers: current watchlist subscribers of a listing.
        to_admins: every approved, active admin and active root admin.
        to_user: a single recipient.
    """

    def __init__(
        self,
        repository: NotificationRepository,
        directory: IdentityDirectoryPort,
        subscriptions: SubscriptionRepository,
        pusher: RealtimePusher,
        clock: ClockPort,
    ) -> None:
        self._repository = repository
        self._directory = directory
        self._subscriptions = subscriptions
        self._pusher = pusher
        self._clock = clock

    @property
    def pusher(self) -> RealtimePusher:
        return self._pusher

    async def fan_out(
        self,
        recipient_ids: Iterable[str],
        draft: NotificationDraft,
        audience: Audience = Audience.USER,
    ) -> list[Notification]:
        """Persist one record per distinct recipient, then push each.

        Returns:
            The persisted notifications, in recipient order.
        """
        recipients = _unique(recipient_ids)
        if not recipients:
            logger.info(
                "fanout_no_recipients",
                extra={"notification_type": draft.type.value, "audience": audience.value},
            )
            return []

        now = self._clock.now()
        group_id = uuid.uuid4().hex
        meta = {**draft.meta, "audience": audience.value}
        notifications = [
            Notification(
                id=uuid.uuid4().hex,
                recipient_id=recipient_id,
                type=draft.type,
                title=draft.title,
                message=draft.message,
                listing_id=draft.listing_id,
                acting_admin_id=draft.acting_admin_id,
                broadcast_group_id=group_id,
                meta=dict(meta),
                created_at=now,
            )
            for recipient_id in recipients
        ]

        await asyncio.to_thread(self._repository.add_many, notifications)

        delivered = await self._pusher.push_all(
            Push(n.recipient_id, NOTIFICATION_CREATED, n.to_payload()) for n in notifications
        )
        logger.info(
            "fanout_completed",
            extra={
                "notification_type": draft.type.value,
                "audience": audience.value,
                "broadcast_group_id": group_id,
                "recipients": len(notifications),
                "pushed": delivered,
            },
        )
        return notifications

    async def to_subscribers(self, listing_id: str, draft: NotificationDraft) -> list[Notification]:
        recipients = await asyncio.to_thread(self._subscriptions.subscriber_ids, listing_id)
        return await self.fan_out(recipients, draft, Audience.SUBSCRIBERS)

    async def to_admins(self, draft: NotificationDraft) -> list[Notification]:
        admins = await asyncio.to_thread(self._directory.list_elevated)
        return await self.fan_out((a.user_id for a in admins), draft, Audience.ADMINS)

    async def to_user(self, user_id: str, draft: NotificationDraft) -> Notification | None:
        created = await self.fan_out([user_id], draft, Audience.USER)
        return created[0] if created else None
