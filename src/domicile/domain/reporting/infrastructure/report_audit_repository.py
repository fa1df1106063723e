"""Append-only ``report_audit`` log.

Rows are claimed with a conditional insert that re-counts the window in
the same statement, so concurrent reports cannot overshoot a cap. A row
is only removed when the report it paid for failed. The composite index
serves the (user, conversation, kind, created_at) window query.
"""

from __future__ import annotations

import logging
from enum import StrEnum
from typing import TYPE_CHECKING, Any

from sqlalchemy import Column, Index, Integer, String, Table, and_, func, literal, select

from domicile.infra.persistence.schema import UTCDateTime, metadata

if TYPE_CHECKING:
    from collections.abc import Callable
    from datetime import datetime

    from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)


class AuditKind(StrEnum):
    MESSAGE = "message"
    CHAT = "chat"


report_audit_table = Table(
    "report_audit",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("user_id", String(64), nullable=False),
    Column("conversation_id", String(64), nullable=False),
    Column("kind", String(16), nullable=False),
    Column("created_at", UTCDateTime, nullable=False),
    Index("ix_report_audit_window", "user_id", "conversation_id", "kind", "created_at"),
)

_t = report_audit_table


def _window(user_id: str, conversation_id: str, kind: AuditKind, since: datetime) -> Any:
    return and_(
        _t.c.user_id == user_id,
        _t.c.conversation_id == conversation_id,
        _t.c.kind == kind.value,
        _t.c.created_at >= since,
    )


class ReportAuditRepository:
    """Counting substrate for report rate limits.

    Args:
        session_factory: Callable returning a SQLAlchemy Session context manager.
    """

    def __init__(self, session_factory: Callable[[], Session]) -> None:
        self._session_factory = session_factory

    def claim(
        self,
        user_id: str,
        conversation_id: str,
        kind: AuditKind,
        since: datetime,
        cap: int,
        now: datetime,
    ) -> int | None:
        """Append a row at ``now`` only if fewer than ``cap`` rows exist since ``since``.

        PostgreSQL takes a transaction-scoped advisory lock on the key first;
        SQLite serializes the statement under its write lock.

        Returns:
            The new row id, or None when the window is full.
        """
        in_window = (
            select(func.count())
            .select_from(_t)
            .where(_window(user_id, conversation_id, kind, since))
            .correlate(None)
            .scalar_subquery()
        )
        row = select(
            literal(user_id, String),
            literal(conversation_id, String),
            literal(kind.value, String),
            literal(now, UTCDateTime),
        ).where(in_window < cap)
        stmt = _t.insert().from_select(
            ["user_id", "conversation_id", "kind", "created_at"], row
        ).returning(_t.c.id)

        with self._session_factory() as session:
            if session.get_bind().dialect.name == "postgresql":
                key = f"report_audit:{user_id}:{conversation_id}:{kind.value}"
                session.execute(select(func.pg_advisory_xact_lock(func.hashtext(key))))
            claimed = session.execute(stmt).scalar_one_or_none()
            session.commit()
        return claimed

    def remove(self, audit_id: int) -> None:
        with self._session_factory() as session:
            session.execute(_t.delete().where(_t.c.id == audit_id))
            session.commit()

    def append(self, user_id: str, conversation_id: str, kind: AuditKind, now: datetime) -> None:
        with self._session_factory() as session:
            session.execute(
                _t.insert(),
                {
                    "user_id": user_id,
                    "conversation_id": conversation_id,
                    "kind": kind.value,
                    "created_at": now,
                },
            )
            session.commit()

    def count_since(
        self,
        user_id: str,
        conversation_id: str,
        kind: AuditKind,
        since: datetime,
    ) -> tuple[int, datetime | None]:
        """Count records at or after ``since``.

        Returns:
            The count and the oldest matching timestamp (None when empty).
        """
        with self._session_factory() as session:
            row = session.execute(
                select(func.count(), func.min(_t.c.created_at)).where(
                    _window(user_id, conversation_id, kind, since)
                )
            ).one()
        count, oldest = row
        return int(count), oldest

    @classmethod
    def ensure_table_exists(cls, session_factory: Callable[[], Session]) -> None:
        """Create the report_audit table if it does not exist."""
        with session_factory() as session:
            _t.create(session.get_bind(), checkfirst=True)
        logger.info("report_audit_table_ensured")
