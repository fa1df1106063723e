"""Notification records and event drafts."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from datetime import datetime


class NotificationType(StrEnum):
    """Closed set of notification kinds."""

    WATCHLIST_PRICE_DROP = "watchlist_price_drop"
    WATCHLIST_PRICE_INCREASE = "watchlist_price_increase"
    WATCHLIST_SOLD = "watchlist_sold"
    WATCHLIST_REMOVED = "watchlist_removed"
    WATCHLIST_TRENDING = "watchlist_trending"
    WATCHLIST_STATUS_CHANGE = "watchlist_status_change"
    WATCHLIST_UPDATE = "watchlist_update"
    PROPERTY_DELETED = "property_deleted"
    PROPERTY_RESTORED = "property_restored"
    REPORT = "report"
    ADMIN_MESSAGE = "admin_message"


class Audience(StrEnum):
    """Who a fan-out was addressed to. Stored in ``meta["audience"]``."""

    SUBSCRIBERS = "subscribers"
    ADMINS = "admins"
    USER = "user"


@dataclass(frozen=True, slots=True)
class NotificationDraft:
    """A logical event, before it is materialized per recipient.

    Attributes:
        type: Notification kind.
        title: Short headline.
        message: Human-readable rendering. Never parsed when ``meta`` is present.
        listing_id: Listing the event concerns, if any.
        acting_admin_id: Admin who caused the event, if any.
        meta: Machine-readable fields (reporter, reason, prices, ...).
    """

    type: NotificationType
    title: str
    message: str
    listing_id: str | None = None
    acting_admin_id: str | None = None
    meta: dict[str, Any] = field(default_factory=dict)


@dataclass(slots=True)
class Notification:
    """One persisted notification for one recipient."""

    id: str
    recipient_id: str
    type: NotificationType
    title: str
    message: str
    created_at: datetime
    listing_id: str | None = None
    acting_admin_id: str | None = None
    broadcast_group_id: str | None = None
    meta: dict[str, Any] = field(default_factory=dict)
    is_read: bool = False
    read_at: datetime | None = None

    @property
    def audience(self) -> str | None:
        return self.meta.get("audience")

    def to_payload(self) -> dict[str, Any]:
        """Full JSON-safe record, as pushed on creation and returned by the API."""
        return {
            "id": self.id,
            "recipientId": self.recipient_id,
            "type": self.type.value,
            "title": self.title,
            "message": self.message,
            "listingId": self.listing_id,
            "actingAdminId": self.acting_admin_id,
            "broadcastGroupId": self.broadcast_group_id,
            "meta": self.meta,
            "isRead": self.is_read,
            "readAt": self.read_at.isoformat() if self.read_at else None,
            "createdAt": self.created_at.isoformat(),
        }
