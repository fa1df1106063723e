"""Restoration of soft-deleted listings.

A token is checked in this order: unknown (or only known as superseded),
already restored, expired or used. ``verify`` stops there and never
writes. ``restore`` additionally refuses to resurrect over a live listing,
then recreates the listing under its original ID and flips the vault
entry in one transaction (see ``VaultRepository.restore``). The owner is
notified afterwards, best effort.

The deleted-listing console, record-ID restoration and the expiry sweep
live here too since they share the same checks and the same restore path.
"""

from __future__ import annotations

import asyncio
import logging
from enum import StrEnum
from typing import TYPE_CHECKING, Any

from domicile.domain.notifications.templates import property_restored_draft
from domicile.domain.restoration.vault import DeletionKind, listing_summary
from domicile.foundation.application.best_effort import run_best_effort
from domicile.foundation.domain.exceptions import (
    AlreadyRestoredError,
    AuthorizationError,
    ConflictError,
    NotFoundError,
    TokenExpiredOrUsedError,
    ValidationError,
)
from domicile.foundation.domain.ports import OutboundEmail

if TYPE_CHECKING:
    from datetime import datetime

    from domicile.domain.notifications.fanout import NotificationFanout
    from domicile.domain.notifications.settings import NotificationSettings
    from domicile.domain.restoration.infrastructure import VaultRepository
    from domicile.domain.restoration.vault import VaultEntry
    from domicile.foundation.domain.ports import (
        ClockPort,
        EmailSenderPort,
        IdentityDirectoryPort,
        ListingCatalogPort,
    )
    from domicile.foundation.domain.principal import Principal

logger = logging.getLogger(__name__)

_PREVIEW_FIELDS = (
    "name",
    "description",
    "address",
    "regular_price",
    "discount_price",
    "offer",
    "status",
    "images",
    "attributes",
    "created_at",
)


class DeletedSort(StrEnum):
    DELETED_AT = "deleted_at"
    NAME = "name"
    PRICE = "price"
    TOKEN_EXPIRY = "token_expiry"


def _owner_contact(owner: Principal | None) -> dict[str, Any] | None:
    if owner is None:
        return None
    return {"id": owner.user_id, "username": owner.username, "email": owner.email}


class RestorationService:
    """Token verification, restoration and the deleted-listing console."""

    def __init__(
        self,
        vault: VaultRepository,
        catalog: ListingCatalogPort,
        directory: IdentityDirectoryPort,
        fanout: NotificationFanout,
        email_sender: EmailSenderPort,
        clock: ClockPort,
        notification_settings: NotificationSettings,
    ) -> None:
        self._vault = vault
        self._catalog = catalog
        self._directory = directory
        self._fanout = fanout
        self._email = email_sender
        self._clock = clock
        self._timeout = notification_settings.side_effect_timeout_seconds

    # -- Token path --

    async def _valid_entry(self, token: str) -> VaultEntry:
        entry = await asyncio.to_thread(self._vault.get_by_token, token)
        if entry is None:
            superseded = await asyncio.to_thread(self._vault.get_by_superseded_token, token)
            if superseded is not None:
                raise TokenExpiredOrUsedError(record_id=superseded.id, superseded=True)
            raise NotFoundError("Restoration token", "(redacted)")
        if entry.is_restored:
            raise AlreadyRestoredError(record_id=entry.id)
        if not entry.token_valid(self._clock.now()):
            raise TokenExpiredOrUsedError(record_id=entry.id)
        return entry

    async def verify(self, token: str) -> dict[str, Any]:
        """Preview what ``token`` would restore. Never writes.

        Raises:
            NotFoundError: Unknown token.
            AlreadyRestoredError: The listing was already restored.
            TokenExpiredOrUsedError: The token expired, was used or was superseded.
        """
        entry = await self._valid_entry(token)
        owner = await asyncio.to_thread(self._directory.get_principal, entry.owner_id)
        return {
            "recordId": entry.id,
            "listingId": entry.original_listing_id,
            "listing": {key: entry.snapshot.get(key) for key in _PREVIEW_FIELDS},
            "owner": _owner_contact(owner),
            "deletedAt": entry.deleted_at.isoformat(),
            "deletionReason": entry.deletion_reason,
            "tokenExpiry": entry.token_expiry.isoformat() if entry.token_expiry else None,
        }

    async def restore(
        self,
        token: str,
        *,
        confirm: bool,
        actor_id: str | None = None,
    ) -> dict[str, Any]:
        """Recreate the listing behind ``token``.

        Args:
            token: Restoration token from the owner's email.
            confirm: Must be True.
            actor_id: Caller identity, if known. Defaults to the owner.

        Returns:
            Minimal projection of the restored listing.

        Raises:
            ValidationError: ``confirm`` was not set.
            NotFoundError: Unknown token.
            AlreadyRestoredError: Already restored, including by a concurrent call.
            TokenExpiredOrUsedError: The token expired, was used or was superseded.
            ConflictError: A live listing already exists under the original ID.
        """
        if not confirm:
            raise ValidationError("confirm", "restoration must be explicitly confirmed")
        entry = await self._valid_entry(token)
        return await self._recreate(entry, actor_id or entry.owner_id)

    # -- Record path --

    async def restore_by_record(self, actor: Principal, record_id: str) -> dict[str, Any]:
        """Restore from the deleted-listing console.

        Owners may restore their own owner deletions while the token is
        unexpired; admins may restore any entry that is not yet restored.

        Raises:
            NotFoundError: Unknown record.
            AlreadyRestoredError: Already restored.
            AuthorizationError: The actor may not restore this entry.
            TokenExpiredOrUsedError: The owner's restoration window has closed.
            ConflictError: A live listing already exists under the original ID.
        """
        entry = await asyncio.to_thread(self._vault.get, record_id)
        if entry is None:
            raise NotFoundError("Deleted listing", record_id)
        if entry.is_restored:
            raise AlreadyRestoredError(record_id=entry.id)
        if not actor.is_elevated:
            if entry.owner_id != actor.user_id or entry.deletion_kind != DeletionKind.OWNER:
                raise AuthorizationError(
                    "Only the owner or an admin can restore this listing",
                    context={"record_id": record_id, "principal_id": actor.user_id},
                )
            if not entry.token_valid(self._clock.now()):
                raise TokenExpiredOrUsedError(record_id=entry.id)
        return await self._recreate(entry, actor.user_id)

    async def _recreate(self, entry: VaultEntry, restored_by: str) -> dict[str, Any]:
        listing_id = entry.original_listing_id
        if await asyncio.to_thread(self._catalog.exists, listing_id):
            current = await asyncio.to_thread(self._vault.get, entry.id)
            if current is not None and current.is_restored:
                raise AlreadyRestoredError(record_id=entry.id)
            raise ConflictError(
                "A listing already exists under the original ID",
                listing_id=listing_id,
                record_id=entry.id,
            )

        now = self._clock.now()
        listing = {
            **entry.snapshot,
            "id": listing_id,
            "owner_id": entry.owner_id,
            "created_at": entry.snapshot.get("created_at") or entry.deleted_at.isoformat(),
            "updated_at": now.isoformat(),
        }
        await asyncio.to_thread(self._vault.restore, entry, listing, restored_by, now)

        await asyncio.gather(
            run_best_effort(
                "owner_restoration_notification",
                self._fanout.to_user(entry.owner_id, property_restored_draft(listing, restored_by)),
                self._timeout,
                listing_id=listing_id,
                recipient_id=entry.owner_id,
            ),
            run_best_effort(
                "owner_restoration_email",
                self._email_owner(entry.owner_id, listing),
                self._timeout,
                listing_id=listing_id,
                recipient_id=entry.owner_id,
            ),
        )
        logger.info(
            "listing_restored",
            extra={"listing_id": listing_id, "record_id": entry.id, "restored_by": restored_by},
        )
        return listing_summary(listing)

    async def _email_owner(self, owner_id: str, listing: dict[str, Any]) -> bool:
        owner = await asyncio.to_thread(self._directory.get_principal, owner_id)
        if owner is None or not owner.email:
            return False
        return await self._email.send(
            OutboundEmail(
                to=owner.email,
                subject=f"Your property '{listing.get('name')}' has been restored",
                template="property_restored",
                params={
                    "username": owner.username,
                    "listing_id": listing["id"],
                    "listing_name": listing.get("name"),
                },
            )
        )

    # -- Console --

    async def list_deleted(
        self,
        actor: Principal,
        *,
        kind: DeletionKind | None = None,
        search: str | None = None,
        sort: DeletedSort = DeletedSort.DELETED_AT,
        descending: bool = True,
        offset: int = 0,
        limit: int = 50,
    ) -> dict[str, Any]:
        """Deleted listings visible to ``actor``.

        Regular users see their own entries that are not yet restored;
        admins see every entry. ``search`` matches the listing name or
        address and the owner's username or email, case-insensitively.
        """
        if actor.is_elevated:
            entries = await asyncio.to_thread(lambda: self._vault.list_entries(kind=kind))
        else:
            entries = await asyncio.to_thread(
                lambda: self._vault.list_entries(
                    owner_id=actor.user_id, include_restored=False, kind=kind
                )
            )
        owners = await asyncio.to_thread(
            self._directory.get_many, sorted({e.owner_id for e in entries})
        )

        if search:
            needle = search.casefold()

            def _matches(entry: VaultEntry) -> bool:
                owner = owners.get(entry.owner_id)
                fields = (
                    entry.snapshot.get("name"),
                    entry.snapshot.get("address"),
                    owner.username if owner else None,
                    owner.email if owner else None,
                )
                return any(needle in str(value).casefold() for value in fields if value)

            entries = [e for e in entries if _matches(e)]

        def _key(entry: VaultEntry) -> tuple[Any, ...]:
            match sort:
                case DeletedSort.NAME:
                    return (str(entry.snapshot.get("name") or "").casefold(), entry.deleted_at)
                case DeletedSort.PRICE:
                    return (entry.listing_summary()["price"] or 0, entry.deleted_at)
                case DeletedSort.TOKEN_EXPIRY:
                    return (entry.token_expiry or entry.deleted_at, entry.deleted_at)
                case _:
                    return (entry.deleted_at,)

        entries.sort(key=_key, reverse=descending)
        now = self._clock.now()
        page = entries[offset : offset + limit]
        return {
            "total": len(entries),
            "items": [e.to_payload(now, _owner_contact(owners.get(e.owner_id))) for e in page],
        }

    async def purge_expired(self, now: datetime | None = None) -> int:
        """Remove vault entries whose token expired unrestored."""
        purged = await asyncio.to_thread(self._vault.purge_expired, now or self._clock.now())
        logger.info("vault_entries_purged", extra={"purged": len(purged)})
        return len(purged)
