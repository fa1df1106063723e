"""Token Vault entries: deleted listing snapshots with a recovery token.

At most one entry exists per original listing. A second owner deletion of
the same listing overwrites the entry in place: new token, new snapshot,
terminal markers reset. The previous token is remembered as
``superseded_token`` for one generation so that presenting it is reported
as used rather than unknown.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING, Any

from domicile.domain.listings.pricing import effective_price

if TYPE_CHECKING:
    from datetime import datetime


class DeletionKind(StrEnum):
    OWNER = "owner"
    ADMIN = "admin"


@dataclass(slots=True)
class VaultEntry:
    """Persisted snapshot of a soft-deleted listing.

    Attributes:
        id: Record identifier.
        original_listing_id: Listing ID reused verbatim on restoration.
        snapshot: Full listing mapping at deletion time.
        owner_id: Listing owner.
        deleted_by: Identity that performed the deletion.
        deletion_kind: ``owner`` or ``admin``.
        deletion_reason: Free-text reason, when one was given.
        restoration_token: Single-use bearer credential.
        token_expiry: Instant after which the token is rejected.
        deleted_at: Deletion instant.
    """

    id: str
    original_listing_id: str
    snapshot: dict[str, Any]
    owner_id: str
    deleted_by: str
    deletion_kind: DeletionKind
    deleted_at: datetime
    deletion_reason: str | None = None
    restoration_token: str | None = None
    token_expiry: datetime | None = None
    is_used: bool = False
    is_restored: bool = False
    restored_at: datetime | None = None
    restored_by: str | None = None
    superseded_token: str | None = field(default=None, repr=False)

    def token_valid(self, now: datetime) -> bool:
        return (
            not self.is_used
            and not self.is_restored
            and self.token_expiry is not None
            and now < self.token_expiry
        )

    def is_expired(self, now: datetime) -> bool:
        return self.token_expiry is not None and now >= self.token_expiry

    def listing_summary(self) -> dict[str, Any]:
        """Minimal listing projection: id, name, address, price."""
        return listing_summary(self.snapshot, self.original_listing_id)

    def to_payload(self, now: datetime, owner: dict[str, Any] | None = None) -> dict[str, Any]:
        """Console projection. Never includes the token."""
        return {
            "recordId": self.id,
            "listing": self.listing_summary(),
            "ownerId": self.owner_id,
            "owner": owner,
            "deletedBy": self.deleted_by,
            "deletionKind": self.deletion_kind.value,
            "deletionReason": self.deletion_reason,
            "deletedAt": self.deleted_at.isoformat(),
            "tokenExpiry": self.token_expiry.isoformat() if self.token_expiry else None,
            "isExpired": self.is_expired(now),
            "isRestored": self.is_restored,
            "restoredAt": self.restored_at.isoformat() if self.restored_at else None,
            "restoredBy": self.restored_by,
        }


def listing_summary(listing: dict[str, Any], listing_id: str | None = None) -> dict[str, Any]:
    return {
        "id": listing_id or listing.get("id"),
        "name": listing.get("name"),
        "address": listing.get("address"),
        "price": effective_price(listing),
    }
