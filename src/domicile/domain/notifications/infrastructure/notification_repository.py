"""Repository for the ``notifications`` table.

All methods are synchronous; services call them via ``asyncio.to_thread``.
Read-state updates return exactly the rows they flipped (UPDATE ... RETURNING),
so the caller learns which recipients to push to.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from sqlalchemy import (
    Boolean,
    Column,
    Index,
    String,
    Table,
    Text,
    and_,
    delete,
    func,
    select,
    update,
)

from domicile.domain.notifications.model import Notification, NotificationType
from domicile.infra.persistence.schema import JSONType, UTCDateTime, metadata

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable
    from datetime import datetime

    from sqlalchemy import Row
    from sqlalchemy.orm import Session
    from sqlalchemy.sql import ColumnElement

logger = logging.getLogger(__name__)

notifications_table = Table(
    "notifications",
    metadata,
    Column("id", String(36), primary_key=True),
    Column("recipient_id", String(64), nullable=False),
    Column("type", String(48), nullable=False),
    Column("title", String(255), nullable=False),
    Column("message", Text, nullable=False),
    Column("listing_id", String(64), nullable=True),
    Column("acting_admin_id", String(64), nullable=True),
    Column("broadcast_group_id", String(36), nullable=True, index=True),
    Column("meta", JSONType, nullable=False, default=dict),
    Column("is_read", Boolean, nullable=False, default=False),
    Column("read_at", UTCDateTime, nullable=True),
    Column("created_at", UTCDateTime, nullable=False),
    Index("ix_notifications_recipient_read", "recipient_id", "is_read", "created_at"),
    Index("ix_notifications_type_created", "type", "created_at"),
)

_t = notifications_table


def _to_values(n: Notification) -> dict[str, Any]:
    return {
        "id": n.id,
        "recipient_id": n.recipient_id,
        "type": n.type.value,
        "title": n.title,
        "message": n.message,
        "listing_id": n.listing_id,
        "acting_admin_id": n.acting_admin_id,
        "broadcast_group_id": n.broadcast_group_id,
        "meta": n.meta,
        "is_read": n.is_read,
        "read_at": n.read_at,
        "created_at": n.created_at,
    }


def _to_notification(row: Row) -> Notification:
    return Notification(
        id=row.id,
        recipient_id=row.recipient_id,
        type=NotificationType(row.type),
        title=row.title,
        message=row.message,
        listing_id=row.listing_id,
        acting_admin_id=row.acting_admin_id,
        broadcast_group_id=row.broadcast_group_id,
        meta=dict(row.meta or {}),
        is_read=bool(row.is_read),
        read_at=row.read_at,
        created_at=row.created_at,
    )


class NotificationRepository:
    """Persistence for per-recipient notification records.

    Args:
        session_factory: Callable returning a SQLAlchemy Session context manager.
    """

    def __init__(self, session_factory: Callable[[], Session]) -> None:
        self._session_factory = session_factory

    # -- Writes --

    def add_many(self, notifications: Iterable[Notification]) -> None:
        """Insert all records in one transaction."""
        values = [_to_values(n) for n in notifications]
        if not values:
            return
        with self._session_factory() as session:
            session.execute(_t.insert(), values)
            session.commit()

    def mark_read(self, notification_id: str, now: datetime) -> bool:
        """Mark one notification read. Returns False if it was already read."""
        with self._session_factory() as session:
            result = session.execute(
                update(_t)
                .where(and_(_t.c.id == notification_id, _t.c.is_read.is_(False)))
                .values(is_read=True, read_at=now)
            )
            session.commit()
        return result.rowcount > 0

    def mark_unread_read(self, condition: ColumnElement[bool], now: datetime) -> list[Notification]:
        """Mark every unread row matching ``condition`` read.

        Returns:
            The rows that changed, with their new read state.
        """
        with self._session_factory() as session:
            rows = session.execute(
                update(_t)
                .where(and_(condition, _t.c.is_read.is_(False)))
                .values(is_read=True, read_at=now)
                .returning(*_t.c)
            ).all()
            session.commit()
        return [_to_notification(row) for row in rows]

    def mark_group_read(
        self,
        broadcast_group_id: str,
        exclude_id: str,
        now: datetime,
    ) -> list[Notification]:
        """Propagate read state to the other copies of one broadcast."""
        return self.mark_unread_read(
            and_(_t.c.broadcast_group_id == broadcast_group_id, _t.c.id != exclude_id),
            now,
        )

    def mark_matching_read(
        self,
        source: Notification,
        recipient_ids: list[str],
        now: datetime,
    ) -> list[Notification]:
        """Propagate read state by content match, for records without a group.

        Matches type, title, message, acting admin and listing among the
        given recipients.
        """
        if not recipient_ids:
            return []
        condition = and_(
            _t.c.id != source.id,
            _t.c.recipient_id.in_(recipient_ids),
            _t.c.type == source.type.value,
            _t.c.title == source.title,
            _t.c.message == source.message,
            _t.c.acting_admin_id.is_(None)
            if source.acting_admin_id is None
            else _t.c.acting_admin_id == source.acting_admin_id,
            _t.c.listing_id.is_(None)
            if source.listing_id is None
            else _t.c.listing_id == source.listing_id,
        )
        return self.mark_unread_read(condition, now)

    def mark_all_read(self, recipient_ids: list[str], now: datetime) -> dict[str, int]:
        """Mark every unread notification of the given recipients read.

        Returns:
            Count of changed rows per recipient that had any.
        """
        if not recipient_ids:
            return {}
        changed = self.mark_unread_read(_t.c.recipient_id.in_(recipient_ids), now)
        counts: dict[str, int] = {}
        for n in changed:
            counts[n.recipient_id] = counts.get(n.recipient_id, 0) + 1
        return counts

    def delete(self, notification_id: str, recipient_id: str) -> bool:
        with self._session_factory() as session:
            result = session.execute(
                delete(_t).where(
                    and_(_t.c.id == notification_id, _t.c.recipient_id == recipient_id)
                )
            )
            session.commit()
        return result.rowcount > 0

    def delete_all(self, recipient_id: str) -> int:
        with self._session_factory() as session:
            result = session.execute(delete(_t).where(_t.c.recipient_id == recipient_id))
            session.commit()
        return result.rowcount

    # -- Reads --

    def get(self, notification_id: str) -> Notification | None:
        with self._session_factory() as session:
            row = session.execute(select(_t).where(_t.c.id == notification_id)).first()
        return _to_notification(row) if row is not None else None

    def list_for_recipient(
        self,
        recipient_id: str,
        *,
        unread_only: bool = False,
        offset: int = 0,
        limit: int = 50,
    ) -> list[Notification]:
        """Newest first."""
        stmt = select(_t).where(_t.c.recipient_id == recipient_id)
        if unread_only:
            stmt = stmt.where(_t.c.is_read.is_(False))
        stmt = stmt.order_by(_t.c.created_at.desc(), _t.c.id).offset(offset).limit(limit)
        with self._session_factory() as session:
            rows = session.execute(stmt).all()
        return [_to_notification(row) for row in rows]

    def unread_count(self, recipient_id: str) -> int:
        with self._session_factory() as session:
            return int(
                session.execute(
                    select(func.count())
                    .select_from(_t)
                    .where(and_(_t.c.recipient_id == recipient_id, _t.c.is_read.is_(False)))
                ).scalar_one()
            )

    def list_by_type(
        self,
        notification_type: NotificationType,
        *,
        created_from: datetime | None = None,
        created_to: datetime | None = None,
    ) -> list[Notification]:
        """Every copy of a notification type, oldest first."""
        stmt = select(_t).where(_t.c.type == notification_type.value)
        if created_from is not None:
            stmt = stmt.where(_t.c.created_at >= created_from)
        if created_to is not None:
            stmt = stmt.where(_t.c.created_at <= created_to)
        stmt = stmt.order_by(_t.c.created_at, _t.c.id)
        with self._session_factory() as session:
            rows = session.execute(stmt).all()
        return [_to_notification(row) for row in rows]

    @classmethod
    def ensure_table_exists(cls, session_factory: Callable[[], Session]) -> None:
        """Create the notifications table if it does not exist."""
        with session_factory() as session:
            _t.create(session.get_bind(), checkfirst=True)
        logger.info("notifications_table_ensured")
