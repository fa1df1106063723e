"""Listing deletion with optional restoration token.

Hard steps, in order: load the listing, authorize the caller, require a
reason when an admin deletes someone else's listing, delete the listing.
Nothing is written before authorization and validation pass.

Soft steps (logged on failure, never aborting the deletion): the Token
Vault entry for owner deletions, the owner notification, the owner email,
the ``removed`` fan-out to watchers and the subscription cascade. All but
the vault write are bounded by a timeout; the vault write runs to
completion so the token offered to the owner is exactly the one stored.

Admin deletions of another user's listing never receive a vault entry, so
no restoration is offered for them.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from dataclasses import dataclass
from datetime import timedelta
from typing import TYPE_CHECKING, Any

from domicile.domain.listings.pricing import ChangeKind, ListingChange
from domicile.domain.notifications.templates import listing_change_draft, property_deleted_draft
from domicile.domain.restoration.vault import DeletionKind, VaultEntry
from domicile.foundation.application.best_effort import run_best_effort
from domicile.foundation.domain.exceptions import (
    AuthorizationError,
    NotFoundError,
    ValidationError,
)
from domicile.foundation.domain.ports import OutboundEmail

if TYPE_CHECKING:
    from datetime import datetime

    from domicile.domain.notifications.fanout import NotificationFanout
    from domicile.domain.notifications.settings import NotificationSettings
    from domicile.domain.restoration.infrastructure import VaultRepository
    from domicile.domain.restoration.settings import RestorationSettings
    from domicile.domain.watchlist.infrastructure import SubscriptionRepository
    from domicile.foundation.domain.ports import (
        ClockPort,
        EmailSenderPort,
        IdentityDirectoryPort,
        ListingCatalogPort,
        TokenGeneratorPort,
    )
    from domicile.foundation.domain.principal import Principal

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class DeletionResult:
    """Outcome of a listing deletion.

    Attributes:
        listing_id: The deleted listing.
        deletion_kind: ``owner`` or ``admin``.
        restorable: True if a restoration token was issued.
        token_expiry: Expiry of the issued token, if any.
        owner_notified_by_email: True if the owner email was accepted.
        message: Human-readable summary for the caller.
    """

    listing_id: str
    deletion_kind: DeletionKind
    restorable: bool
    token_expiry: datetime | None
    owner_notified_by_email: bool
    message: str


class DeletionService:
    """Orchestrates a listing deletion and its side effects."""

    def __init__(
        self,
        catalog: ListingCatalogPort,
        vault: VaultRepository,
        subscriptions: SubscriptionRepository,
        directory: IdentityDirectoryPort,
        fanout: NotificationFanout,
        email_sender: EmailSenderPort,
        token_generator: TokenGeneratorPort,
        clock: ClockPort,
        settings: RestorationSettings,
        notification_settings: NotificationSettings,
    ) -> None:
        self._catalog = catalog
        self._vault = vault
        self._subscriptions = subscriptions
        self._directory = directory
        self._fanout = fanout
        self._email = email_sender
        self._tokens = token_generator
        self._clock = clock
        self._settings = settings
        self._timeout = notification_settings.side_effect_timeout_seconds

    async def delete(
        self,
        actor: Principal,
        listing_id: str,
        reason: str | None = None,
    ) -> DeletionResult:
        """Delete ``listing_id`` on behalf of ``actor``.

        Raises:
            NotFoundError: The listing does not exist.
            AuthorizationError: The actor is neither the owner nor an admin.
            ValidationError: An admin deleting another user's listing gave no reason.
        """
        reason = (reason or "").strip() or None

        listing = await asyncio.to_thread(self._catalog.get, listing_id)
        if listing is None:
            raise NotFoundError("Listing", listing_id)

        owner_id = listing["owner_id"]
        is_owner = owner_id == actor.user_id
        if not is_owner and not actor.is_elevated:
            raise AuthorizationError(
                "Only the owner or an admin can delete this listing",
                context={"listing_id": listing_id, "principal_id": actor.user_id},
            )
        kind = DeletionKind.OWNER if is_owner else DeletionKind.ADMIN
        if kind == DeletionKind.ADMIN and reason is None:
            raise ValidationError(
                "reason",
                "a reason is required when deleting another user's listing",
                listing_id=listing_id,
            )

        now = self._clock.now()
        entry: VaultEntry | None = None
        if kind == DeletionKind.OWNER:
            entry = await self._store_entry(self._new_entry(listing, actor, reason, now))
        token_expiry = entry.token_expiry if entry is not None else None

        _, emailed, _ = await asyncio.gather(
            run_best_effort(
                "owner_deletion_notification",
                self._fanout.to_user(
                    owner_id,
                    property_deleted_draft(
                        listing,
                        deleted_by_admin=kind == DeletionKind.ADMIN,
                        acting_admin_id=actor.user_id if kind == DeletionKind.ADMIN else None,
                        reason=reason,
                        token_expiry=token_expiry,
                    ),
                ),
                self._timeout,
                listing_id=listing_id,
                recipient_id=owner_id,
            ),
            run_best_effort(
                "owner_deletion_email",
                self._email_owner(owner_id, listing, kind, reason, entry),
                self._timeout,
                listing_id=listing_id,
                recipient_id=owner_id,
            ),
            run_best_effort(
                "watchers_removed_fanout",
                self._fanout.to_subscribers(
                    listing_id, listing_change_draft(listing, ListingChange(ChangeKind.REMOVED))
                ),
                self._timeout,
                listing_id=listing_id,
            ),
        )

        deleted = await asyncio.to_thread(self._catalog.delete, listing_id)
        if not deleted:
            logger.warning("listing_already_gone", extra={"listing_id": listing_id})

        await run_best_effort(
            "subscription_cascade",
            asyncio.to_thread(self._subscriptions.delete_for_listing, listing_id),
            self._timeout,
            listing_id=listing_id,
        )

        owner_emailed = emailed is not None
        logger.info(
            "listing_deleted",
            extra={
                "listing_id": listing_id,
                "deletion_kind": kind.value,
                "deleted_by": actor.user_id,
                "restorable": entry is not None,
                "owner_emailed": owner_emailed,
            },
        )
        return DeletionResult(
            listing_id=listing_id,
            deletion_kind=kind,
            restorable=entry is not None,
            token_expiry=token_expiry,
            owner_notified_by_email=owner_emailed,
            message=(
                f"Property deleted successfully and notified to {emailed}"
                if owner_emailed
                else "Listing deleted successfully"
            ),
        )

    def _new_entry(
        self,
        listing: dict[str, Any],
        actor: Principal,
        reason: str | None,
        now: datetime,
    ) -> VaultEntry:
        return VaultEntry(
            id=uuid.uuid4().hex,
            original_listing_id=listing["id"],
            snapshot=dict(listing),
            owner_id=listing["owner_id"],
            deleted_by=actor.user_id,
            deletion_kind=DeletionKind.OWNER,
            deletion_reason=reason,
            restoration_token=self._tokens.generate_token(),
            token_expiry=now + timedelta(days=self._settings.token_ttl_days),
            deleted_at=now,
        )

    async def _store_entry(self, entry: VaultEntry) -> VaultEntry | None:
        try:
            return await asyncio.to_thread(self._vault.upsert, entry)
        except Exception:
            logger.warning(
                "vault_entry_upsert_failed",
                extra={"listing_id": entry.original_listing_id},
                exc_info=True,
            )
            return None

    async def _email_owner(
        self,
        owner_id: str,
        listing: dict[str, Any],
        kind: DeletionKind,
        reason: str | None,
        entry: VaultEntry | None,
    ) -> str | None:
        """Email the owner. Returns the address if the provider accepted it."""
        owner = await asyncio.to_thread(self._directory.get_principal, owner_id)
        if owner is None or not owner.email:
            return None
        params: dict[str, Any] = {
            "username": owner.username,
            "listing_name": listing.get("name"),
            "deleted_by_admin": kind == DeletionKind.ADMIN,
            "reason": reason,
        }
        if entry is not None and entry.restoration_token:
            params["restoration_token"] = entry.restoration_token
            params["token_expiry"] = entry.token_expiry.isoformat()
        accepted = await self._email.send(
            OutboundEmail(
                to=owner.email,
                subject=f"Your property '{listing.get('name')}' was deleted",
                template="property_deleted",
                params=params,
            )
        )
        return owner.email if accepted else None
