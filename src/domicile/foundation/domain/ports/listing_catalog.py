"""Port interface for the listing catalog.

The catalog owns canonical listing records. Deletion and restoration only
touch it at their boundaries: load, existence check, delete.

Listings cross this boundary as plain mappings (the snapshot shape) so that
a deleted listing can be recreated field for field.
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class ListingCatalogPort(Protocol):
    """Port for reading and removing canonical listings."""

    def get(self, listing_id: str) -> dict[str, Any] | None:
        """Return the full listing snapshot, or None if absent."""
        ...

    def exists(self, listing_id: str) -> bool:
        """Return True if a live listing exists under ``listing_id``."""
        ...

    def delete(self, listing_id: str) -> bool:
        """Delete the listing. Returns False if nothing was deleted."""
        ...
