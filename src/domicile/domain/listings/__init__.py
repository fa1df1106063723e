"""Domicile Domain Listings -- catalog boundary and price change detection."""

from domicile.domain.listings.infrastructure import ListingRepository, listings_table
from domicile.domain.listings.pricing import (
    ChangeKind,
    ListingChange,
    detect_changes,
    effective_price,
)

__all__ = [
    "ChangeKind",
    "ListingChange",
    "ListingRepository",
    "detect_changes",
    "effective_price",
    "listings_table",
]
