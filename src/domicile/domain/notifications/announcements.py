"""Administrator-authored notifications: broadcasts to admins, direct messages."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from domicile.domain.notifications.model import NotificationDraft, NotificationType
from domicile.foundation.domain.exceptions import NotFoundError, ValidationError

if TYPE_CHECKING:
    from domicile.domain.notifications.fanout import NotificationFanout
    from domicile.domain.notifications.model import Notification
    from domicile.foundation.domain.ports import IdentityDirectoryPort
    from domicile.foundation.domain.principal import Principal

logger = logging.getLogger(__name__)


def _require_text(field: str, value: str) -> str:
    value = (value or "").strip()
    if not value:
        raise ValidationError(field, "must not be empty")
    return value


class AdminMessenger:
    def __init__(self, fanout: NotificationFanout, directory: IdentityDirectoryPort) -> None:
        self._fanout = fanout
        self._directory = directory

    async def announce(self, admin: Principal, title: str, message: str) -> list[Notification]:
        """Broadcast to every current admin, the sender included."""
        draft = NotificationDraft(
            type=NotificationType.ADMIN_MESSAGE,
            title=_require_text("title", title),
            message=_require_text("message", message),
            acting_admin_id=admin.user_id,
            meta={"sender_id": admin.user_id, "sender_name": admin.username},
        )
        created = await self._fanout.to_admins(draft)
        logger.info(
            "admin_announcement_sent",
            extra={"sender_id": admin.user_id, "recipients": len(created)},
        )
        return created

    async def send_direct(
        self,
        admin: Principal,
        recipient_id: str,
        title: str,
        message: str,
        listing_id: str | None = None,
    ) -> Notification | None:
        """Notify one user.

        Raises:
            NotFoundError: The recipient has no account.
        """
        draft = NotificationDraft(
            type=NotificationType.ADMIN_MESSAGE,
            title=_require_text("title", title),
            message=_require_text("message", message),
            listing_id=listing_id,
            acting_admin_id=admin.user_id,
            meta={"sender_id": admin.user_id, "sender_name": admin.username},
        )
        recipient = await asyncio.to_thread(self._directory.get_principal, recipient_id)
        if recipient is None:
            raise NotFoundError("User", recipient_id)
        return await self._fanout.to_user(recipient.user_id, draft)
