"""Tests for listing deletion and its side effects."""

from __future__ import annotations

import time
from datetime import timedelta
from unittest.mock import MagicMock

import pytest
from support import ADMIN, BUYER, OWNER, SILENT_WATCHER, SUSPENDED_ADMIN, T0, WATCHER

from domicile.domain.notifications import NotificationSettings, NotificationType
from domicile.domain.restoration import (
    DeletionKind,
    DeletionService,
    RestorationSettings,
    VaultRepository,
)
from domicile.domain.watchlist import SubscriptionKind
from domicile.foundation.domain.exceptions import (
    AuthorizationError,
    NotFoundError,
    ValidationError,
)


@pytest.fixture()
def vault(session_factory) -> VaultRepository:
    return VaultRepository(session_factory)


@pytest.fixture()
def service(
    catalog, vault, subscriptions, directory, fanout, mailer, tokens, clock
) -> DeletionService:
    return DeletionService(
        catalog,
        vault,
        subscriptions,
        directory,
        fanout,
        mailer,
        tokens,
        clock,
        RestorationSettings(),
        NotificationSettings(),
    )


@pytest.mark.unit
class TestOwnerDeletion:
    @pytest.mark.asyncio
    async def test_issues_a_thirty_day_token(self, service, listing, vault, catalog) -> None:
        result = await service.delete(OWNER, listing["id"])

        assert result.deletion_kind == DeletionKind.OWNER
        assert result.restorable is True
        assert result.token_expiry == T0 + timedelta(days=30)
        assert catalog.exists(listing["id"]) is False
        entry = vault.get_by_listing(listing["id"])
        assert entry.restoration_token == "tok-0001"
        assert entry.deleted_by == OWNER.user_id
        assert entry.snapshot["name"] == listing["name"]
        assert entry.snapshot["attributes"] == listing["attributes"]

    @pytest.mark.asyncio
    async def test_owner_is_emailed_the_token(self, service, listing, mailer) -> None:
        result = await service.delete(OWNER, listing["id"], "Sold privately")

        assert result.owner_notified_by_email is True
        assert result.message == f"Property deleted successfully and notified to {OWNER.email}"
        [email] = mailer.sent
        assert email.to == OWNER.email
        assert email.template == "property_deleted"
        assert email.params["restoration_token"] == "tok-0001"
        assert email.params["deleted_by_admin"] is False
        assert email.params["reason"] == "Sold privately"

    @pytest.mark.asyncio
    async def test_owner_and_watchers_are_notified(
        self, service, listing, notifications
    ) -> None:
        await service.delete(OWNER, listing["id"])

        [owner_note] = notifications.list_for_recipient(OWNER.user_id)
        assert owner_note.type == NotificationType.PROPERTY_DELETED
        for watcher in (WATCHER, SILENT_WATCHER):
            [note] = notifications.list_for_recipient(watcher.user_id)
            assert note.type == NotificationType.WATCHLIST_REMOVED
        assert notifications.list_for_recipient(BUYER.user_id) == []

    @pytest.mark.asyncio
    async def test_subscriptions_are_removed(self, service, listing, subscriptions) -> None:
        await service.delete(OWNER, listing["id"])

        assert subscriptions.count(listing["id"]) == 0
        assert subscriptions.count(listing["id"], SubscriptionKind.WISHLIST) == 0

    @pytest.mark.asyncio
    async def test_email_failure_does_not_abort(self, service, listing, mailer, catalog) -> None:
        mailer.fail = True

        result = await service.delete(OWNER, listing["id"])

        assert result.owner_notified_by_email is False
        assert result.message == "Listing deleted successfully"
        assert result.restorable is True
        assert catalog.exists(listing["id"]) is False

    @pytest.mark.asyncio
    async def test_vault_failure_still_deletes(
        self, catalog, subscriptions, directory, fanout, mailer, tokens, clock, listing
    ) -> None:
        vault = MagicMock(spec=VaultRepository)
        vault.upsert.side_effect = RuntimeError("vault unavailable")
        service = DeletionService(
            catalog,
            vault,
            subscriptions,
            directory,
            fanout,
            mailer,
            tokens,
            clock,
            RestorationSettings(),
            NotificationSettings(),
        )

        result = await service.delete(OWNER, listing["id"])

        assert result.restorable is False
        assert result.token_expiry is None
        assert catalog.exists(listing["id"]) is False
        assert "restoration_token" not in mailer.sent[0].params


    @pytest.mark.asyncio
    async def test_slow_vault_write_still_offers_the_stored_token(
        self,
        session_factory,
        catalog,
        subscriptions,
        directory,
        fanout,
        mailer,
        tokens,
        clock,
        listing,
    ) -> None:
        class SlowVault(VaultRepository):
            def upsert(self, entry):
                time.sleep(0.2)
                return super().upsert(entry)

        vault = SlowVault(session_factory)
        service = DeletionService(
            catalog,
            vault,
            subscriptions,
            directory,
            fanout,
            mailer,
            tokens,
            clock,
            RestorationSettings(),
            NotificationSettings(side_effect_timeout_seconds=0.05),
        )

        result = await service.delete(OWNER, listing["id"])

        assert result.restorable is True
        assert result.token_expiry == T0 + timedelta(days=30)
        assert vault.get_by_listing(listing["id"]).restoration_token == "tok-0001"


@pytest.mark.unit
class TestAdminDeletion:
    @pytest.mark.asyncio
    async def test_requires_a_reason(self, service, listing, catalog, mailer) -> None:
        with pytest.raises(ValidationError) as exc_info:
            await service.delete(ADMIN, listing["id"], "   ")

        assert exc_info.value.field == "reason"
        assert catalog.exists(listing["id"]) is True
        assert mailer.sent == []

    @pytest.mark.asyncio
    async def test_no_restoration_is_offered(self, service, listing, vault, mailer) -> None:
        result = await service.delete(ADMIN, listing["id"], "Fraudulent listing")

        assert result.deletion_kind == DeletionKind.ADMIN
        assert result.restorable is False
        assert vault.get_by_listing(listing["id"]) is None
        [email] = mailer.sent
        assert email.params["deleted_by_admin"] is True
        assert email.params["reason"] == "Fraudulent listing"
        assert "restoration_token" not in email.params

    @pytest.mark.asyncio
    async def test_owner_notification_names_the_admin(
        self, service, listing, notifications
    ) -> None:
        await service.delete(ADMIN, listing["id"], "Fraudulent listing")

        [note] = notifications.list_for_recipient(OWNER.user_id)
        assert note.acting_admin_id == ADMIN.user_id


@pytest.mark.unit
class TestDeletionRejected:
    @pytest.mark.asyncio
    async def test_stranger(self, service, listing, catalog) -> None:
        with pytest.raises(AuthorizationError):
            await service.delete(BUYER, listing["id"], "I dislike it")
        assert catalog.exists(listing["id"]) is True

    @pytest.mark.asyncio
    async def test_suspended_admin(self, service, listing) -> None:
        with pytest.raises(AuthorizationError):
            await service.delete(SUSPENDED_ADMIN, listing["id"], "Spam")

    @pytest.mark.asyncio
    async def test_unknown_listing(self, service) -> None:
        with pytest.raises(NotFoundError):
            await service.delete(OWNER, "l-missing")
