"""Repository for the ``listings`` catalog table.

Implements ListingCatalogPort. Listings cross the repository boundary as
snapshot mappings: every column plus an ``attributes`` map for catalog
fields this service does not interpret. Timestamps are ISO-8601 strings
inside a snapshot so it can be stored verbatim as JSON.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import TYPE_CHECKING, Any

from sqlalchemy import Boolean, Column, Float, String, Table, Text, delete, select

from domicile.infra.persistence.schema import JSONType, UTCDateTime, metadata

if TYPE_CHECKING:
    from collections.abc import Callable

    from sqlalchemy import Connection, Row
    from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)

listings_table = Table(
    "listings",
    metadata,
    Column("id", String(64), primary_key=True),
    Column("owner_id", String(64), nullable=False, index=True),
    Column("name", String(255), nullable=False),
    Column("description", Text, nullable=False, default=""),
    Column("address", String(512), nullable=False, default=""),
    Column("regular_price", Float, nullable=True),
    Column("discount_price", Float, nullable=True),
    Column("offer", Boolean, nullable=False, default=False),
    Column("status", String(32), nullable=False, default="available"),
    Column("images", JSONType, nullable=False, default=list),
    Column("attributes", JSONType, nullable=False, default=dict),
    Column("created_at", UTCDateTime, nullable=False),
    Column("updated_at", UTCDateTime, nullable=False),
)

_TIMESTAMP_FIELDS = ("created_at", "updated_at")


def row_to_snapshot(row: Row) -> dict[str, Any]:
    """Convert a listings row into a JSON-safe snapshot mapping."""
    snapshot = dict(row._mapping)
    for field in _TIMESTAMP_FIELDS:
        if isinstance(snapshot.get(field), datetime):
            snapshot[field] = snapshot[field].isoformat()
    return snapshot


def snapshot_to_values(snapshot: dict[str, Any]) -> dict[str, Any]:
    """Convert a snapshot mapping into insertable column values.

    Unknown keys are ignored; timestamp strings are parsed back.
    """
    values = {c.name: snapshot[c.name] for c in listings_table.columns if c.name in snapshot}
    for field in _TIMESTAMP_FIELDS:
        if isinstance(values.get(field), str):
            values[field] = datetime.fromisoformat(values[field])
    return values


def insert_listing(conn: Connection | Session, snapshot: dict[str, Any]) -> None:
    """Insert a listing from its snapshot on an existing connection or session."""
    conn.execute(listings_table.insert(), snapshot_to_values(snapshot))


class ListingRepository:
    """Catalog boundary used by deletion, restoration and subscriptions.

    Args:
        session_factory: Callable returning a SQLAlchemy Session context manager.
    """

    def __init__(self, session_factory: Callable[[], Session]) -> None:
        self._session_factory = session_factory

    def get(self, listing_id: str) -> dict[str, Any] | None:
        with self._session_factory() as session:
            row = session.execute(
                select(listings_table).where(listings_table.c.id == listing_id)
            ).first()
        return row_to_snapshot(row) if row is not None else None

    def exists(self, listing_id: str) -> bool:
        with self._session_factory() as session:
            row = session.execute(
                select(listings_table.c.id).where(listings_table.c.id == listing_id)
            ).first()
        return row is not None

    def delete(self, listing_id: str) -> bool:
        with self._session_factory() as session:
            stmt = delete(listings_table).where(listings_table.c.id == listing_id)
            result = session.execute(stmt)
            session.commit()
        deleted = result.rowcount > 0
        logger.info(
            "listing_row_deleted",
            extra={"listing_id": listing_id, "deleted": deleted},
        )
        return deleted

    def add(self, snapshot: dict[str, Any]) -> None:
        """Insert a listing. Used by the catalog and by fixtures."""
        with self._session_factory() as session:
            insert_listing(session, snapshot)
            session.commit()

    @classmethod
    def ensure_table_exists(cls, session_factory: Callable[[], Session]) -> None:
        """Create the listings table if it does not exist."""
        with session_factory() as session:
            listings_table.create(session.get_bind(), checkfirst=True)
        logger.info("listings_table_ensured")
