"""Watchlist and wishlist subscriptions."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any

from domicile.domain.listings.pricing import effective_price
from domicile.domain.watchlist.infrastructure import SubscriptionKind
from domicile.foundation.domain.exceptions import NotFoundError

if TYPE_CHECKING:
    from domicile.domain.watchlist.infrastructure import Subscription, SubscriptionRepository
    from domicile.foundation.domain.ports import ClockPort, ListingCatalogPort
    from domicile.foundation.domain.principal import Principal

logger = logging.getLogger(__name__)


class WatchlistService:
    """Subscribe, unsubscribe and inspect listing subscriptions."""

    def __init__(
        self,
        subscriptions: SubscriptionRepository,
        catalog: ListingCatalogPort,
        clock: ClockPort,
    ) -> None:
        self._subscriptions = subscriptions
        self._catalog = catalog
        self._clock = clock

    async def subscribe(
        self,
        principal: Principal,
        listing_id: str,
        kind: SubscriptionKind = SubscriptionKind.WATCHLIST,
    ) -> Subscription:
        """Add ``listing_id`` to the caller's list, remembering its current price.

        Raises:
            NotFoundError: The listing does not exist.
            ConflictError: The listing is already on this list.
        """
        listing = await asyncio.to_thread(self._catalog.get, listing_id)
        if listing is None:
            raise NotFoundError("Listing", listing_id)
        subscription = await asyncio.to_thread(
            self._subscriptions.add,
            principal.user_id,
            listing_id,
            kind,
            effective_price(listing),
            self._clock.now(),
        )
        logger.info(
            "listing_subscribed",
            extra={"user_id": principal.user_id, "listing_id": listing_id, "kind": kind.value},
        )
        return subscription

    async def unsubscribe(
        self,
        principal: Principal,
        listing_id: str,
        kind: SubscriptionKind = SubscriptionKind.WATCHLIST,
    ) -> None:
        removed = await asyncio.to_thread(
            self._subscriptions.remove, principal.user_id, listing_id, kind
        )
        if not removed:
            raise NotFoundError("Subscription", listing_id, kind=kind.value)

    async def list_for(
        self,
        principal: Principal,
        kind: SubscriptionKind = SubscriptionKind.WATCHLIST,
    ) -> list[dict[str, Any]]:
        """The caller's subscriptions, newest first, with the current listing state.

        Listings that no longer exist are reported with ``listing: None``.
        """
        subscriptions = await asyncio.to_thread(
            self._subscriptions.list_for_user, principal.user_id, kind
        )
        items = []
        for sub in subscriptions:
            listing = await asyncio.to_thread(self._catalog.get, sub.listing_id)
            current = effective_price(listing) if listing else None
            items.append(
                {
                    "listingId": sub.listing_id,
                    "kind": sub.kind.value,
                    "priceAtAdd": sub.price_at_add,
                    "currentPrice": current,
                    "priceChange": (
                        current - sub.price_at_add
                        if current is not None and sub.price_at_add is not None
                        else None
                    ),
                    "addedAt": sub.created_at.isoformat(),
                    "listing": (
                        {
                            "name": listing.get("name"),
                            "address": listing.get("address"),
                            "status": listing.get("status"),
                        }
                        if listing
                        else None
                    ),
                }
            )
        return items

    async def status(self, principal: Principal, listing_id: str) -> dict[str, bool]:
        return {
            kind.value: await asyncio.to_thread(
                self._subscriptions.exists, principal.user_id, listing_id, kind
            )
            for kind in SubscriptionKind
        }

    async def count(self, listing_id: str) -> int:
        return await asyncio.to_thread(self._subscriptions.count, listing_id)
