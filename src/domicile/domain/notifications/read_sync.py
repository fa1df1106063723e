"""Notification inbox operations and cross-admin read sync.

Admin fan-out stores one physical copy per admin. When an elevated
identity marks its copy read, the other unread copies of the same logical
event are marked read too, then each affected admin receives a
``notificationMarkedAsRead`` push. Copies are located by their shared
``broadcast_group_id``; legacy records without one fall back to matching
type, title, message, acting admin and listing among current admins.

Every mark operation is idempotent: an already-read record is a no-op.
Pushes always follow the persisted write they describe.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from domicile.domain.notifications.fanout import Push
from domicile.domain.notifications.model import Audience
from domicile.foundation.domain.exceptions import NotFoundError
from domicile.foundation.domain.ports import (
    ALL_NOTIFICATIONS_MARKED_AS_READ,
    NOTIFICATION_MARKED_AS_READ,
)

if TYPE_CHECKING:
    from datetime import datetime

    from domicile.domain.notifications.fanout import RealtimePusher
    from domicile.domain.notifications.infrastructure import NotificationRepository
    from domicile.domain.notifications.model import Notification
    from domicile.foundation.domain.ports import ClockPort, IdentityDirectoryPort
    from domicile.foundation.domain.principal import Principal

logger = logging.getLogger(__name__)


def _read_delta(notification: Notification, marked_by: str) -> dict[str, object]:
    return {
        "notificationId": notification.id,
        "isRead": True,
        "readAt": notification.read_at.isoformat() if notification.read_at else None,
        "markedBy": marked_by,
    }


class NotificationService:
    """Per-recipient inbox: list, count, mark read, delete."""

    def __init__(
        self,
        repository: NotificationRepository,
        directory: IdentityDirectoryPort,
        pusher: RealtimePusher,
        clock: ClockPort,
    ) -> None:
        self._repository = repository
        self._directory = directory
        self._pusher = pusher
        self._clock = clock

    async def list_for(
        self,
        principal: Principal,
        *,
        unread_only: bool = False,
        offset: int = 0,
        limit: int = 50,
    ) -> list[Notification]:
        return await asyncio.to_thread(
            lambda: self._repository.list_for_recipient(
                principal.user_id, unread_only=unread_only, offset=offset, limit=limit
            )
        )

    async def unread_count(self, principal: Principal) -> int:
        return await asyncio.to_thread(self._repository.unread_count, principal.user_id)

    async def _owned(self, principal: Principal, notification_id: str) -> Notification:
        notification = await asyncio.to_thread(self._repository.get, notification_id)
        if notification is None or notification.recipient_id != principal.user_id:
            raise NotFoundError("Notification", notification_id)
        return notification

    async def mark_read(self, principal: Principal, notification_id: str) -> Notification:
        """Mark one of the caller's notifications read.

        Raises:
            NotFoundError: Unknown ID, or the notification belongs to someone else.
        """
        notification = await self._owned(principal, notification_id)
        if notification.is_read:
            return notification

        now = self._clock.now()
        changed = await asyncio.to_thread(self._repository.mark_read, notification.id, now)
        if not changed:
            # A concurrent request won; reload the persisted state.
            return await self._owned(principal, notification_id)
        notification.is_read = True
        notification.read_at = now

        synced: list[Notification] = []
        if principal.is_elevated:
            synced = await self._sync_admin_copies(notification, now)

        pushes = [
            Push(
                principal.user_id,
                NOTIFICATION_MARKED_AS_READ,
                _read_delta(notification, principal.user_id),
            )
        ]
        for copy in synced:
            delta = _read_delta(copy, principal.user_id)
            delta["syncedFrom"] = notification.id
            pushes.append(Push(copy.recipient_id, NOTIFICATION_MARKED_AS_READ, delta))
        await self._pusher.push_all(pushes)
        logger.info(
            "notification_marked_read",
            extra={
                "notification_id": notification.id,
                "recipient_id": principal.user_id,
                "synced_copies": len(synced),
            },
        )
        return notification

    async def _sync_admin_copies(
        self, source: Notification, now: datetime
    ) -> list[Notification]:
        if source.broadcast_group_id:
            if source.audience != Audience.ADMINS.value:
                return []
            return await asyncio.to_thread(
                self._repository.mark_group_read, source.broadcast_group_id, source.id, now
            )
        admins = await asyncio.to_thread(self._directory.list_elevated)
        admin_ids = [a.user_id for a in admins if a.user_id != source.recipient_id]
        return await asyncio.to_thread(
            self._repository.mark_matching_read, source, admin_ids, now
        )

    async def mark_all_read(self, principal: Principal) -> int:
        """Mark every unread notification of the caller read. Returns the count."""
        now = self._clock.now()
        counts = await asyncio.to_thread(self._repository.mark_all_read, [principal.user_id], now)
        count = counts.get(principal.user_id, 0)
        if count:
            await self._pusher.push_all(
                [
                    Push(
                        principal.user_id,
                        ALL_NOTIFICATIONS_MARKED_AS_READ,
                        {"count": count, "markedBy": principal.user_id, "readAt": now.isoformat()},
                    )
                ]
            )
        return count

    async def mark_all_read_for_admins(self, principal: Principal) -> dict[str, int]:
        """Mark every unread notification of every current admin read.

        Caller must be elevated; the router enforces it.

        Returns:
            Changed count per admin that had unread notifications.
        """
        now = self._clock.now()
        admins = await asyncio.to_thread(self._directory.list_elevated)
        admin_ids = list(dict.fromkeys([principal.user_id, *(a.user_id for a in admins)]))
        counts = await asyncio.to_thread(self._repository.mark_all_read, admin_ids, now)
        await self._pusher.push_all(
            Push(
                admin_id,
                ALL_NOTIFICATIONS_MARKED_AS_READ,
                {"count": count, "markedBy": principal.user_id, "readAt": now.isoformat()},
            )
            for admin_id, count in counts.items()
        )
        logger.info(
            "notifications_marked_read_for_admins",
            extra={"marked_by": principal.user_id, "admins": len(counts)},
        )
        return counts

    async def delete(self, principal: Principal, notification_id: str) -> None:
        deleted = await asyncio.to_thread(
            self._repository.delete, notification_id, principal.user_id
        )
        if not deleted:
            raise NotFoundError("Notification", notification_id)

    async def delete_all(self, principal: Principal) -> int:
        return await asyncio.to_thread(self._repository.delete_all, principal.user_id)
