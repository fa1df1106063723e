"""Effective price and listing change detection.

The effective price is what a buyer actually pays: the discount price
while an offer is active, otherwise the regular price. Price events are
derived by comparing effective prices before and after an update; they
are never stored as flags.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Any

SOLD_STATUSES = frozenset({"sold", "rented"})


class ChangeKind(StrEnum):
    """Kinds of listing change fanned out to subscribers."""

    PRICE_DROP = "price_drop"
    PRICE_INCREASE = "price_increase"
    SOLD = "sold"
    REMOVED = "removed"
    TRENDING = "trending"
    STATUS_CHANGE = "status_change"
    UPDATE = "update"


@dataclass(frozen=True, slots=True)
class ListingChange:
    """One change event for a listing.

    Attributes:
        kind: The change kind.
        old_value: Previous price or status, when relevant.
        new_value: New price or status, when relevant.
    """

    kind: ChangeKind
    old_value: Any = None
    new_value: Any = None

    @property
    def drop_amount(self) -> float | None:
        if self.kind != ChangeKind.PRICE_DROP:
            return None
        return self.old_value - self.new_value

    @property
    def drop_percentage(self) -> int | None:
        if self.kind != ChangeKind.PRICE_DROP or not self.old_value:
            return None
        return round((self.old_value - self.new_value) / self.old_value * 100)


def effective_price(listing: dict[str, Any]) -> float | None:
    """Return the discount price when an offer is active, else the regular price.

    A zero or missing price counts as absent.

    Example:
        >>> effective_price({"regular_price": 100000, "offer": True, "discount_price": 90000})
        90000
        >>> effective_price({"regular_price": 100000, "offer": False, "discount_price": 90000})
        100000
    """
    discount = listing.get("discount_price")
    if listing.get("offer") and discount:
        return discount
    return listing.get("regular_price") or None


def detect_changes(before: dict[str, Any], after: dict[str, Any]) -> list[ListingChange]:
    """Derive subscriber-facing change events from a listing update.

    ``price_drop`` fires only when both effective prices are present and the
    new one is strictly lower; ``price_increase`` is the strict mirror. A
    status transition into a sold state yields ``sold``, any other status
    transition yields ``status_change``.
    """
    changes: list[ListingChange] = []

    old_price = effective_price(before)
    new_price = effective_price(after)
    if old_price and new_price:
        if new_price < old_price:
            changes.append(ListingChange(ChangeKind.PRICE_DROP, old_price, new_price))
        elif new_price > old_price:
            changes.append(ListingChange(ChangeKind.PRICE_INCREASE, old_price, new_price))

    old_status = before.get("status")
    new_status = after.get("status")
    if new_status and old_status and new_status != old_status:
        if new_status in SOLD_STATUSES:
            changes.append(ListingChange(ChangeKind.SOLD, old_status, new_status))
        else:
            changes.append(ListingChange(ChangeKind.STATUS_CHANGE, old_status, new_status))

    return changes
