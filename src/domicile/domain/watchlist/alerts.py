"""Listing update hook: price and availability alerts for watchers.

The catalog calls ``on_listing_updated`` with the listing before and after
an update. Each derived change is fanned out to the listing's watchlist
subscribers; price drops additionally email every watcher with a known
address. Emails are soft side effects.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any

from domicile.domain.listings.pricing import ChangeKind, detect_changes
from domicile.domain.notifications.templates import format_price, listing_change_draft
from domicile.foundation.application.best_effort import run_best_effort
from domicile.foundation.domain.exceptions import ValidationError
from domicile.foundation.domain.ports import OutboundEmail

if TYPE_CHECKING:
    from domicile.domain.listings.pricing import ListingChange
    from domicile.domain.notifications.fanout import NotificationFanout
    from domicile.domain.notifications.settings import NotificationSettings
    from domicile.foundation.domain.ports import EmailSenderPort, IdentityDirectoryPort

logger = logging.getLogger(__name__)


class ListingAlerts:
    def __init__(
        self,
        fanout: NotificationFanout,
        directory: IdentityDirectoryPort,
        email_sender: EmailSenderPort,
        settings: NotificationSettings,
    ) -> None:
        self._fanout = fanout
        self._directory = directory
        self._email = email_sender
        self._settings = settings

    async def on_listing_updated(
        self, before: dict[str, Any], after: dict[str, Any]
    ) -> dict[str, Any]:
        """Fan out every change between ``before`` and ``after``.

        Raises:
            ValidationError: The two snapshots describe different listings.

        Returns:
            Summary with the change kinds and per-kind recipient counts.
        """
        listing_id = after.get("id") or before.get("id")
        if not listing_id or before.get("id", listing_id) != listing_id:
            raise ValidationError("id", "before and after must describe the same listing")

        changes = detect_changes(before, after)
        summary: dict[str, Any] = {"listingId": listing_id, "changes": [], "notified": {}}
        for change in changes:
            created = await self._fanout.to_subscribers(
                listing_id, listing_change_draft({**after, "id": listing_id}, change)
            )
            summary["changes"].append(change.kind.value)
            summary["notified"][change.kind.value] = len(created)
            if change.kind == ChangeKind.PRICE_DROP and created:
                await self._email_price_drop(
                    {**after, "id": listing_id}, change, [n.recipient_id for n in created]
                )

        logger.info(
            "listing_update_processed",
            extra={"listing_id": listing_id, "changes": summary["changes"]},
        )
        return summary

    async def _email_price_drop(
        self, listing: dict[str, Any], change: ListingChange, watcher_ids: list[str]
    ) -> None:
        timeout = self._settings.side_effect_timeout_seconds
        watchers = await asyncio.to_thread(self._directory.get_many, watcher_ids)

        async def _one(user_id: str) -> None:
            principal = watchers[user_id]
            await self._email.send(
                OutboundEmail(
                    to=principal.email,
                    subject=f"Price drop: {listing.get('name')}",
                    template="watchlist_price_drop",
                    params={
                        "username": principal.username,
                        "listing_id": listing["id"],
                        "listing_name": listing.get("name"),
                        "old_price": format_price(change.old_value),
                        "new_price": format_price(change.new_value),
                        "drop_amount": format_price(change.drop_amount),
                        "drop_percentage": change.drop_percentage,
                    },
                )
            )

        await asyncio.gather(
            *(
                run_best_effort(
                    "price_drop_email",
                    _one(user_id),
                    timeout,
                    listing_id=listing["id"],
                    recipient_id=user_id,
                )
                for user_id, principal in watchers.items()
                if principal.email
            )
        )
