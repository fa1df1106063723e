"""Listing catalog infrastructure."""

from domicile.domain.listings.infrastructure.listing_repository import (
    ListingRepository,
    insert_listing,
    listings_table,
    row_to_snapshot,
    snapshot_to_values,
)

__all__ = [
    "ListingRepository",
    "insert_listing",
    "listings_table",
    "row_to_snapshot",
    "snapshot_to_values",
]
