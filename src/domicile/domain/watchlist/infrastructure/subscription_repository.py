"""Repository for ``listing_subscriptions`` (watchlist and wishlist entries).

One row per (user, listing, kind). Fan-out reads watchlist subscribers;
listing deletion removes every kind.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING

from sqlalchemy import (
    Column,
    Float,
    Integer,
    String,
    Table,
    UniqueConstraint,
    and_,
    delete,
    func,
    select,
)
from sqlalchemy.exc import IntegrityError

from domicile.foundation.domain.exceptions import ConflictError
from domicile.infra.persistence.schema import UTCDateTime, metadata

if TYPE_CHECKING:
    from collections.abc import Callable
    from datetime import datetime

    from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)


class SubscriptionKind(StrEnum):
    WATCHLIST = "watchlist"
    WISHLIST = "wishlist"


subscriptions_table = Table(
    "listing_subscriptions",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("user_id", String(64), nullable=False, index=True),
    Column("listing_id", String(64), nullable=False, index=True),
    Column("kind", String(16), nullable=False),
    Column("price_at_add", Float, nullable=True),
    Column("created_at", UTCDateTime, nullable=False),
    UniqueConstraint("user_id", "listing_id", "kind"),
)

_t = subscriptions_table


@dataclass(frozen=True, slots=True)
class Subscription:
    user_id: str
    listing_id: str
    kind: SubscriptionKind
    price_at_add: float | None
    created_at: datetime


class SubscriptionRepository:
    """Persistence for subscription records.

    Args:
        session_factory: Callable returning a SQLAlchemy Session context manager.
    """

    def __init__(self, session_factory: Callable[[], Session]) -> None:
        self._session_factory = session_factory

    def add(
        self,
        user_id: str,
        listing_id: str,
        kind: SubscriptionKind,
        price_at_add: float | None,
        now: datetime,
    ) -> Subscription:
        """Insert a subscription.

        Uses the unique constraint to reject duplicates atomically.

        Raises:
            ConflictError: If the user already holds this subscription.
        """
        try:
            with self._session_factory() as session:
                session.execute(
                    _t.insert(),
                    {
                        "user_id": user_id,
                        "listing_id": listing_id,
                        "kind": kind.value,
                        "price_at_add": price_at_add,
                        "created_at": now,
                    },
                )
                session.commit()
        except IntegrityError as err:
            raise ConflictError(
                f"Listing is already in your {kind.value}",
                listing_id=listing_id,
                kind=kind.value,
            ) from err
        return Subscription(user_id, listing_id, kind, price_at_add, now)

    def remove(self, user_id: str, listing_id: str, kind: SubscriptionKind) -> bool:
        with self._session_factory() as session:
            result = session.execute(
                delete(_t).where(
                    and_(
                        _t.c.user_id == user_id,
                        _t.c.listing_id == listing_id,
                        _t.c.kind == kind.value,
                    )
                )
            )
            session.commit()
        return result.rowcount > 0

    def exists(self, user_id: str, listing_id: str, kind: SubscriptionKind) -> bool:
        with self._session_factory() as session:
            row = session.execute(
                select(_t.c.id).where(
                    and_(
                        _t.c.user_id == user_id,
                        _t.c.listing_id == listing_id,
                        _t.c.kind == kind.value,
                    )
                )
            ).first()
        return row is not None

    def list_for_user(self, user_id: str, kind: SubscriptionKind) -> list[Subscription]:
        with self._session_factory() as session:
            rows = session.execute(
                select(_t)
                .where(and_(_t.c.user_id == user_id, _t.c.kind == kind.value))
                .order_by(_t.c.created_at.desc(), _t.c.id.desc())
            ).all()
        return [
            Subscription(
                user_id=r.user_id,
                listing_id=r.listing_id,
                kind=SubscriptionKind(r.kind),
                price_at_add=r.price_at_add,
                created_at=r.created_at,
            )
            for r in rows
        ]

    def subscriber_ids(
        self,
        listing_id: str,
        kind: SubscriptionKind = SubscriptionKind.WATCHLIST,
    ) -> list[str]:
        with self._session_factory() as session:
            rows = session.execute(
                select(_t.c.user_id)
                .where(and_(_t.c.listing_id == listing_id, _t.c.kind == kind.value))
                .order_by(_t.c.id)
            ).all()
        return [row.user_id for row in rows]

    def count(self, listing_id: str, kind: SubscriptionKind = SubscriptionKind.WATCHLIST) -> int:
        with self._session_factory() as session:
            return int(
                session.execute(
                    select(func.count())
                    .select_from(_t)
                    .where(and_(_t.c.listing_id == listing_id, _t.c.kind == kind.value))
                ).scalar_one()
            )

    def delete_for_listing(self, listing_id: str) -> int:
        """Remove every subscription of every kind referencing ``listing_id``."""
        with self._session_factory() as session:
            result = session.execute(delete(_t).where(_t.c.listing_id == listing_id))
            session.commit()
        logger.info(
            "subscriptions_cascade_deleted",
            extra={"listing_id": listing_id, "deleted": result.rowcount},
        )
        return result.rowcount

    @classmethod
    def ensure_table_exists(cls, session_factory: Callable[[], Session]) -> None:
        """Create the listing_subscriptions table if it does not exist."""
        with session_factory() as session:
            _t.create(session.get_bind(), checkfirst=True)
        logger.info("listing_subscriptions_table_ensured")
