"""Repository for the ``users`` identity projection.

Implements IdentityDirectoryPort: classifies accounts by role, admin
approval and suspension, and resolves admin-role membership for
admin fan-out.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from sqlalchemy import Column, String, Table, and_, or_, select

from domicile.foundation.domain.principal import (
    AccountStatus,
    ApprovalStatus,
    Principal,
    Role,
)
from domicile.infra.persistence.schema import metadata

if TYPE_CHECKING:
    from collections.abc import Callable

    from sqlalchemy import Row
    from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)

users_table = Table(
    "users",
    metadata,
    Column("id", String(64), primary_key=True),
    Column("username", String(255), nullable=True),
    Column("email", String(255), nullable=True, index=True),
    Column("role", String(16), nullable=False, default=Role.USER.value),
    Column("status", String(16), nullable=False, default=AccountStatus.ACTIVE.value),
    Column(
        "admin_approval_status",
        String(16),
        nullable=False,
        default=ApprovalStatus.PENDING.value,
    ),
)


def _to_principal(row: Row) -> Principal:
    return Principal(
        user_id=row.id,
        role=Role(row.role),
        status=AccountStatus(row.status),
        approval=ApprovalStatus(row.admin_approval_status),
        email=row.email,
        username=row.username,
    )


class UserDirectoryRepository:
    """Identity directory backed by the ``users`` table.

    Args:
        session_factory: Callable returning a SQLAlchemy Session context manager.
    """

    def __init__(self, session_factory: Callable[[], Session]) -> None:
        self._session_factory = session_factory

    def upsert(self, principal: Principal) -> None:
        """Insert or replace the directory entry for ``principal.user_id``."""
        values = {
            "username": principal.username,
            "email": principal.email,
            "role": principal.role.value,
            "status": principal.status.value,
            "admin_approval_status": principal.approval.value,
        }
        with self._session_factory() as session:
            exists = session.execute(
                select(users_table.c.id).where(users_table.c.id == principal.user_id)
            ).first()
            if exists:
                session.execute(
                    users_table.update().where(users_table.c.id == principal.user_id),
                    values,
                )
            else:
                session.execute(users_table.insert(), {"id": principal.user_id, **values})
            session.commit()

    def get_principal(self, user_id: str) -> Principal | None:
        with self._session_factory() as session:
            row = session.execute(
                select(users_table).where(users_table.c.id == user_id)
            ).first()
        return _to_principal(row) if row is not None else None

    def get_many(self, user_ids: list[str]) -> dict[str, Principal]:
        """Return the known accounts among ``user_ids`` keyed by ID."""
        if not user_ids:
            return {}
        with self._session_factory() as session:
            rows = session.execute(
                select(users_table).where(users_table.c.id.in_(set(user_ids)))
            ).all()
        return {row.id: _to_principal(row) for row in rows}

    def list_elevated(self) -> list[Principal]:
        """Active root admins plus approved, active admins."""
        stmt = (
            select(users_table)
            .where(
                and_(
                    users_table.c.status != AccountStatus.SUSPENDED.value,
                    or_(
                        users_table.c.role == Role.ROOTADMIN.value,
                        and_(
                            users_table.c.role == Role.ADMIN.value,
                            users_table.c.admin_approval_status == ApprovalStatus.APPROVED.value,
                        ),
                    ),
                )
            )
            .order_by(users_table.c.id)
        )
        with self._session_factory() as session:
            rows = session.execute(stmt).all()
        return [_to_principal(row) for row in rows]

    @classmethod
    def ensure_table_exists(cls, session_factory: Callable[[], Session]) -> None:
        """Create the users table if it does not exist."""
        with session_factory() as session:
            users_table.create(session.get_bind(), checkfirst=True)
        logger.info("users_table_ensured")
