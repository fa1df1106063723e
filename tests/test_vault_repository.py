"""Tests for the Token Vault repository against a real SQLite database."""

from __future__ import annotations

from datetime import timedelta
from typing import Any

import pytest
from support import ADMIN, BUYER, OWNER, T0, make_listing

from domicile.domain.restoration import DeletionKind, VaultEntry, VaultRepository
from domicile.foundation.domain.exceptions import (
    AlreadyRestoredError,
    ConflictError,
    TokenExpiredOrUsedError,
)


@pytest.fixture()
def vault(session_factory) -> VaultRepository:
    return VaultRepository(session_factory)


def _entry(record_id: str = "r-1", token: str = "tok-a", **overrides: Any) -> VaultEntry:
    values: dict[str, Any] = {
        "id": record_id,
        "original_listing_id": "l-1",
        "snapshot": make_listing(),
        "owner_id": OWNER.user_id,
        "deleted_by": OWNER.user_id,
        "deletion_kind": DeletionKind.OWNER,
        "deleted_at": T0,
        "restoration_token": token,
        "token_expiry": T0 + timedelta(days=30),
    }
    values.update(overrides)
    return VaultEntry(**values)


@pytest.mark.integration
class TestUpsert:
    def test_first_deletion_inserts(self, vault) -> None:
        stored = vault.upsert(_entry())

        assert stored.id == "r-1"
        assert stored.restoration_token == "tok-a"
        assert stored.superseded_token is None
        assert stored.token_expiry == T0 + timedelta(days=30)
        assert stored.snapshot["name"] == "Harbour View Loft"

    def test_second_deletion_overwrites_in_place(self, vault) -> None:
        vault.upsert(_entry())
        later = T0 + timedelta(days=2)

        stored = vault.upsert(
            _entry(
                "r-2",
                token="tok-b",
                deleted_at=later,
                token_expiry=later + timedelta(days=30),
                snapshot=make_listing(name="Renamed Loft"),
            )
        )

        assert stored.id == "r-1"
        assert stored.restoration_token == "tok-b"
        assert stored.superseded_token == "tok-a"
        assert stored.deleted_at == later
        assert stored.snapshot["name"] == "Renamed Loft"
        assert vault.get("r-2") is None
        assert vault.get_by_token("tok-a") is None
        assert vault.get_by_superseded_token("tok-a").id == "r-1"

    def test_overwrite_resets_terminal_markers(self, vault) -> None:
        vault.upsert(_entry())
        vault.restore(vault.get("r-1"), make_listing(), OWNER.user_id, T0)

        stored = vault.upsert(_entry("r-2", token="tok-b"))

        assert stored.is_restored is False
        assert stored.is_used is False
        assert stored.restored_at is None
        assert stored.restored_by is None

    def test_one_entry_per_listing(self, vault) -> None:
        vault.upsert(_entry())
        vault.upsert(_entry("r-2", token="tok-b"))
        vault.upsert(_entry("r-3", token="tok-c"))

        assert len(vault.list_entries()) == 1
        assert vault.get_by_listing("l-1").restoration_token == "tok-c"


@pytest.mark.integration
class TestRestore:
    def test_recreates_listing_and_flips_entry(self, vault, catalog) -> None:
        entry = vault.upsert(_entry())

        vault.restore(entry, make_listing(), OWNER.user_id, T0 + timedelta(hours=1))

        assert catalog.get("l-1")["name"] == "Harbour View Loft"
        stored = vault.get("r-1")
        assert stored.is_restored is True
        assert stored.is_used is True
        assert stored.restored_by == OWNER.user_id
        assert stored.restored_at == T0 + timedelta(hours=1)

    def test_second_restore_loses_the_compare_and_set(self, vault, catalog) -> None:
        entry = vault.upsert(_entry())
        vault.restore(entry, make_listing(), OWNER.user_id, T0)
        catalog.delete("l-1")

        with pytest.raises(AlreadyRestoredError):
            vault.restore(entry, make_listing(), OWNER.user_id, T0)
        assert catalog.exists("l-1") is False

    def test_restore_of_stale_read_after_overwrite(self, vault) -> None:
        stale = vault.upsert(_entry())
        vault.upsert(_entry("r-2", token="tok-b"))

        with pytest.raises(TokenExpiredOrUsedError):
            vault.restore(stale, make_listing(), OWNER.user_id, T0)
        assert vault.get("r-1").is_restored is False

    def test_live_listing_blocks_restore(self, vault, catalog) -> None:
        entry = vault.upsert(_entry())
        catalog.add(make_listing())

        with pytest.raises(ConflictError):
            vault.restore(entry, make_listing(), OWNER.user_id, T0)
        assert vault.get("r-1").is_restored is False


@pytest.mark.integration
class TestListAndPurge:
    def test_list_entries_filters(self, vault, catalog) -> None:
        vault.upsert(_entry())
        vault.upsert(
            _entry(
                "r-2",
                token="tok-b",
                original_listing_id="l-2",
                snapshot=make_listing("l-2", owner_id=BUYER.user_id),
                owner_id=BUYER.user_id,
                deleted_at=T0 + timedelta(hours=1),
            )
        )
        vault.upsert(
            _entry(
                "r-3",
                token=None,
                token_expiry=None,
                original_listing_id="l-3",
                deleted_by=ADMIN.user_id,
                deletion_kind=DeletionKind.ADMIN,
                deleted_at=T0 + timedelta(hours=2),
            )
        )
        vault.restore(vault.get("r-1"), make_listing(), OWNER.user_id, T0)

        assert [e.id for e in vault.list_entries()] == ["r-3", "r-2", "r-1"]
        assert [e.id for e in vault.list_entries(owner_id=OWNER.user_id)] == ["r-3", "r-1"]
        mine = vault.list_entries(owner_id=OWNER.user_id, include_restored=False)
        assert [e.id for e in mine] == ["r-3"]
        assert [e.id for e in vault.list_entries(kind=DeletionKind.ADMIN)] == ["r-3"]

    def test_purge_boundary_is_inclusive(self, vault) -> None:
        expiry = T0 + timedelta(days=30)
        vault.upsert(_entry())

        assert vault.purge_expired(expiry - timedelta(seconds=1)) == []
        purged = vault.purge_expired(expiry)

        assert [e.id for e in purged] == ["r-1"]
        assert vault.get("r-1") is None

    def test_purge_keeps_restored_and_tokenless_entries(self, vault) -> None:
        vault.upsert(_entry())
        vault.restore(vault.get("r-1"), make_listing(), OWNER.user_id, T0)
        vault.upsert(
            _entry(
                "r-2",
                token=None,
                token_expiry=None,
                original_listing_id="l-2",
                deletion_kind=DeletionKind.ADMIN,
            )
        )

        assert vault.purge_expired(T0 + timedelta(days=365)) == []
        assert len(vault.list_entries()) == 2
