"""Repository for the ``deleted_listings`` Token Vault table.

Two writes need strict consistency:

- ``upsert`` is one ``INSERT ... ON CONFLICT (original_listing_id) DO
  UPDATE`` statement, so concurrent or retried owner deletions of the same
  listing converge on a single entry.
- ``restore`` recreates the listing and flips the entry to its terminal
  state in one transaction. The flip is a compare-and-set on the token and
  both terminal markers; only one concurrent caller can win it.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from sqlalchemy import (
    Boolean,
    Column,
    String,
    Table,
    Text,
    and_,
    delete,
    select,
    update,
)
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import IntegrityError

from domicile.domain.listings.infrastructure import insert_listing
from domicile.domain.restoration.vault import DeletionKind, VaultEntry
from domicile.foundation.domain.exceptions import (
    AlreadyRestoredError,
    ConflictError,
    TokenExpiredOrUsedError,
)
from domicile.infra.persistence.schema import JSONType, UTCDateTime, metadata

if TYPE_CHECKING:
    from collections.abc import Callable
    from datetime import datetime

    from sqlalchemy import Row
    from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)

vault_table = Table(
    "deleted_listings",
    metadata,
    Column("id", String(36), primary_key=True),
    Column("original_listing_id", String(64), nullable=False, unique=True),
    Column("snapshot", JSONType, nullable=False),
    Column("owner_id", String(64), nullable=False, index=True),
    Column("deleted_by", String(64), nullable=False),
    Column("deletion_kind", String(16), nullable=False),
    Column("deletion_reason", Text, nullable=True),
    Column("restoration_token", String(128), nullable=True, unique=True),
    Column("superseded_token", String(128), nullable=True, index=True),
    Column("token_expiry", UTCDateTime, nullable=True),
    Column("deleted_at", UTCDateTime, nullable=False),
    Column("is_used", Boolean, nullable=False, default=False),
    Column("is_restored", Boolean, nullable=False, default=False),
    Column("restored_at", UTCDateTime, nullable=True),
    Column("restored_by", String(64), nullable=True),
)

_t = vault_table

_DIALECT_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}

# Columns replaced when an owner deletes a listing that already has an entry.
_OVERWRITTEN = (
    "snapshot",
    "owner_id",
    "deleted_by",
    "deletion_kind",
    "deletion_reason",
    "restoration_token",
    "token_expiry",
    "deleted_at",
    "is_used",
    "is_restored",
    "restored_at",
    "restored_by",
)


def _to_values(entry: VaultEntry) -> dict[str, Any]:
    return {
        "id": entry.id,
        "original_listing_id": entry.original_listing_id,
        "snapshot": entry.snapshot,
        "owner_id": entry.owner_id,
        "deleted_by": entry.deleted_by,
        "deletion_kind": entry.deletion_kind.value,
        "deletion_reason": entry.deletion_reason,
        "restoration_token": entry.restoration_token,
        "superseded_token": entry.superseded_token,
        "token_expiry": entry.token_expiry,
        "deleted_at": entry.deleted_at,
        "is_used": entry.is_used,
        "is_restored": entry.is_restored,
        "restored_at": entry.restored_at,
        "restored_by": entry.restored_by,
    }


def _to_entry(row: Row) -> VaultEntry:
    return VaultEntry(
        id=row.id,
        original_listing_id=row.original_listing_id,
        snapshot=dict(row.snapshot),
        owner_id=row.owner_id,
        deleted_by=row.deleted_by,
        deletion_kind=DeletionKind(row.deletion_kind),
        deletion_reason=row.deletion_reason,
        restoration_token=row.restoration_token,
        superseded_token=row.superseded_token,
        token_expiry=row.token_expiry,
        deleted_at=row.deleted_at,
        is_used=bool(row.is_used),
        is_restored=bool(row.is_restored),
        restored_at=row.restored_at,
        restored_by=row.restored_by,
    )


def _token_matches(token: str | None) -> Any:
    if token is None:
        return _t.c.restoration_token.is_(None)
    return _t.c.restoration_token == token


class VaultRepository:
    """Persistence for Token Vault entries.

    Args:
        session_factory: Callable returning a SQLAlchemy Session context manager.
    """

    def __init__(self, session_factory: Callable[[], Session]) -> None:
        self._session_factory = session_factory

    def upsert(self, entry: VaultEntry) -> VaultEntry:
        """Insert ``entry`` or overwrite the live entry for the same listing.

        On overwrite the record ID is kept, the previous token moves to
        ``superseded_token`` and every terminal marker is reset.

        Returns:
            The stored entry.
        """
        with self._session_factory() as session:
            dialect = session.get_bind().dialect.name
            try:
                insert = _DIALECT_INSERTS[dialect]
            except KeyError:
                msg = f"Vault upsert is not supported on dialect {dialect!r}"
                raise NotImplementedError(msg) from None

            stmt = insert(_t).values(**_to_values(entry))
            stmt = stmt.on_conflict_do_update(
                index_elements=[_t.c.original_listing_id],
                set_={
                    "superseded_token": _t.c.restoration_token,
                    **{name: stmt.excluded[name] for name in _OVERWRITTEN},
                },
            )
            session.execute(stmt)
            session.commit()
            row = session.execute(
                select(_t).where(_t.c.original_listing_id == entry.original_listing_id)
            ).one()
        stored = _to_entry(row)
        logger.info(
            "vault_entry_upserted",
            extra={
                "record_id": stored.id,
                "listing_id": stored.original_listing_id,
                "overwritten": stored.id != entry.id,
            },
        )
        return stored

    def get(self, record_id: str) -> VaultEntry | None:
        with self._session_factory() as session:
            row = session.execute(select(_t).where(_t.c.id == record_id)).first()
        return _to_entry(row) if row is not None else None

    def get_by_token(self, token: str) -> VaultEntry | None:
        with self._session_factory() as session:
            row = session.execute(select(_t).where(_t.c.restoration_token == token)).first()
        return _to_entry(row) if row is not None else None

    def get_by_superseded_token(self, token: str) -> VaultEntry | None:
        with self._session_factory() as session:
            row = session.execute(select(_t).where(_t.c.superseded_token == token)).first()
        return _to_entry(row) if row is not None else None

    def get_by_listing(self, listing_id: str) -> VaultEntry | None:
        with self._session_factory() as session:
            row = session.execute(
                select(_t).where(_t.c.original_listing_id == listing_id)
            ).first()
        return _to_entry(row) if row is not None else None

    def restore(
        self,
        entry: VaultEntry,
        listing: dict[str, Any],
        restored_by: str,
        now: datetime,
    ) -> None:
        """Recreate ``listing`` and mark ``entry`` restored, atomically.

        The terminal flip only succeeds if the stored entry still carries
        the token read by the caller and is neither used nor restored.

        Raises:
            AlreadyRestoredError: Another restore won the race.
            TokenExpiredOrUsedError: The entry was overwritten since it was read.
            ConflictError: A listing already exists under the original ID.
        """
        cas = (
            update(_t)
            .where(
                and_(
                    _t.c.id == entry.id,
                    _token_matches(entry.restoration_token),
                    _t.c.is_restored.is_(False),
                    _t.c.is_used.is_(False),
                )
            )
            .values(is_restored=True, is_used=True, restored_at=now, restored_by=restored_by)
        )
        try:
            with self._session_factory() as session:
                insert_listing(session, listing)
                won = session.execute(cas).rowcount > 0
                if won:
                    session.commit()
                else:
                    session.rollback()
        except IntegrityError as err:
            self._raise_lost_race(entry, err)
        if not won:
            self._raise_lost_race(entry, None)

        logger.info(
            "vault_entry_restored",
            extra={
                "record_id": entry.id,
                "listing_id": entry.original_listing_id,
                "restored_by": restored_by,
            },
        )

    def _raise_lost_race(self, entry: VaultEntry, cause: Exception | None) -> None:
        current = self.get(entry.id)
        if current is not None and current.is_restored:
            raise AlreadyRestoredError(record_id=entry.id) from cause
        if current is None or current.restoration_token != entry.restoration_token:
            raise TokenExpiredOrUsedError(record_id=entry.id) from cause
        raise ConflictError(
            "A listing already exists under the original ID",
            listing_id=entry.original_listing_id,
        ) from cause

    def list_entries(
        self,
        *,
        owner_id: str | None = None,
        include_restored: bool = True,
        kind: DeletionKind | None = None,
    ) -> list[VaultEntry]:
        """Entries newest first, optionally narrowed to one owner or kind."""
        stmt = select(_t)
        if owner_id is not None:
            stmt = stmt.where(_t.c.owner_id == owner_id)
        if not include_restored:
            stmt = stmt.where(_t.c.is_restored.is_(False))
        if kind is not None:
            stmt = stmt.where(_t.c.deletion_kind == kind.value)
        stmt = stmt.order_by(_t.c.deleted_at.desc(), _t.c.id)
        with self._session_factory() as session:
            rows = session.execute(stmt).all()
        return [_to_entry(row) for row in rows]

    def purge_expired(self, now: datetime) -> list[VaultEntry]:
        """Physically remove entries whose token expired unrestored.

        Returns:
            The removed entries.
        """
        expired = and_(
            _t.c.is_restored.is_(False),
            _t.c.token_expiry.is_not(None),
            _t.c.token_expiry <= now,
        )
        with self._session_factory() as session:
            rows = session.execute(select(_t).where(expired)).all()
            if rows:
                session.execute(delete(_t).where(_t.c.id.in_([row.id for row in rows])))
            session.commit()
        return [_to_entry(row) for row in rows]

    @classmethod
    def ensure_table_exists(cls, session_factory: Callable[[], Session]) -> None:
        """Create the deleted_listings table if it does not exist."""
        with session_factory() as session:
            _t.create(session.get_bind(), checkfirst=True)
        logger.info("deleted_listings_table_ensured")
