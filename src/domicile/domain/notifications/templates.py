"""Notification drafts for listing lifecycle events.

Text is a human-readable rendering only; the machine-readable values go
into ``meta`` at creation time.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from domicile.domain.listings.pricing import ChangeKind
from domicile.domain.notifications.model import NotificationDraft, NotificationType

if TYPE_CHECKING:
    from datetime import datetime

    from domicile.domain.listings.pricing import ListingChange

_CHANGE_TYPES: dict[ChangeKind, tuple[NotificationType, str]] = {
    ChangeKind.PRICE_DROP: (NotificationType.WATCHLIST_PRICE_DROP, "Price Drop Alert"),
    ChangeKind.PRICE_INCREASE: (NotificationType.WATCHLIST_PRICE_INCREASE, "Price Increase"),
    ChangeKind.SOLD: (NotificationType.WATCHLIST_SOLD, "Property Sold"),
    ChangeKind.REMOVED: (NotificationType.WATCHLIST_REMOVED, "Property Unavailable"),
    ChangeKind.TRENDING: (NotificationType.WATCHLIST_TRENDING, "Trending Property"),
    ChangeKind.STATUS_CHANGE: (NotificationType.WATCHLIST_STATUS_CHANGE, "Property Status Changed"),
    ChangeKind.UPDATE: (NotificationType.WATCHLIST_UPDATE, "Property Updated"),
}


def format_price(value: Any) -> str:
    if value is None:
        return "n/a"
    amount = float(value)
    if amount.is_integer():
        return f"{int(amount):,}"
    return f"{amount:,.2f}"


def _change_message(name: str, change: ListingChange) -> str:
    match change.kind:
        case ChangeKind.PRICE_DROP:
            return (
                f"The price of '{name}' dropped from {format_price(change.old_value)} "
                f"to {format_price(change.new_value)} "
                f"({change.drop_percentage}% off)."
            )
        case ChangeKind.PRICE_INCREASE:
            return (
                f"The price of '{name}' increased from {format_price(change.old_value)} "
                f"to {format_price(change.new_value)}."
            )
        case ChangeKind.SOLD:
            return f"'{name}' is no longer on the market ({change.new_value})."
        case ChangeKind.REMOVED:
            return f"'{name}' has been removed and is no longer available."
        case ChangeKind.TRENDING:
            return f"'{name}' is getting a lot of attention right now."
        case ChangeKind.STATUS_CHANGE:
            return f"'{name}' changed status from {change.old_value} to {change.new_value}."
        case _:
            return f"'{name}' has been updated."


def listing_change_draft(listing: dict[str, Any], change: ListingChange) -> NotificationDraft:
    """Draft for watchlist subscribers of ``listing``."""
    notification_type, title = _CHANGE_TYPES[change.kind]
    name = listing.get("name") or "A property you watch"
    meta: dict[str, Any] = {
        "change": change.kind.value,
        "listing_name": listing.get("name"),
        "old_value": change.old_value,
        "new_value": change.new_value,
    }
    if change.kind == ChangeKind.PRICE_DROP:
        meta["drop_amount"] = change.drop_amount
        meta["drop_percentage"] = change.drop_percentage
    return NotificationDraft(
        type=notification_type,
        title=title,
        message=_change_message(name, change),
        listing_id=listing.get("id"),
        meta=meta,
    )


def property_deleted_draft(
    listing: dict[str, Any],
    *,
    deleted_by_admin: bool,
    acting_admin_id: str | None,
    reason: str | None,
    token_expiry: datetime | None,
) -> NotificationDraft:
    """Draft telling the owner their listing was deleted."""
    name = listing.get("name") or "Your property"
    if deleted_by_admin:
        title = "Property Deleted by Admin"
        message = f"Your property '{name}' was deleted by an administrator."
    else:
        title = "Property Deleted"
        message = f"Your property '{name}' was deleted."
    if reason:
        message += f"\nReason: {reason}"
    if token_expiry is not None:
        message += (
            f"\nYou can restore it until {token_expiry:%Y-%m-%d %H:%M} UTC "
            "using the link sent to your email."
        )
    return NotificationDraft(
        type=NotificationType.PROPERTY_DELETED,
        title=title,
        message=message,
        listing_id=listing.get("id"),
        acting_admin_id=acting_admin_id,
        meta={
            "listing_name": listing.get("name"),
            "deletion_kind": "admin" if deleted_by_admin else "owner",
            "reason": reason,
            "restorable": token_expiry is not None,
            "token_expiry": token_expiry.isoformat() if token_expiry else None,
        },
    )


def property_restored_draft(listing: dict[str, Any], restored_by: str) -> NotificationDraft:
    """Draft telling the owner their listing is live again."""
    name = listing.get("name") or "Your property"
    return NotificationDraft(
        type=NotificationType.PROPERTY_RESTORED,
        title="Property Restored Successfully",
        message=f"Your property '{name}' has been restored and is visible again.",
        listing_id=listing.get("id"),
        meta={"listing_name": listing.get("name"), "restored_by": restored_by},
    )
