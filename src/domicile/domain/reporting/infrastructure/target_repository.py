"""Read access to the things a report can point at.

Conversations (appointment chats between a buyer and a seller), their
messages, and listing reviews. This service only reads them; the
``add_*`` writers exist for seeding.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from typing import TYPE_CHECKING

from sqlalchemy import Column, ForeignKey, String, Table, Text, and_, func, select

from domicile.infra.persistence.schema import UTCDateTime, metadata

if TYPE_CHECKING:
    from collections.abc import Callable
    from datetime import datetime

    from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)

conversations_table = Table(
    "conversations",
    metadata,
    Column("id", String(64), primary_key=True),
    Column("listing_id", String(64), nullable=True),
    Column("buyer_id", String(64), nullable=False),
    Column("seller_id", String(64), nullable=False),
    Column("created_at", UTCDateTime, nullable=False),
)

conversation_messages_table = Table(
    "conversation_messages",
    metadata,
    Column("id", String(64), primary_key=True),
    Column(
        "conversation_id",
        String(64),
        ForeignKey("conversations.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    ),
    Column("sender_id", String(64), nullable=False),
    Column("body", Text, nullable=False),
    Column("created_at", UTCDateTime, nullable=False),
)

reviews_table = Table(
    "listing_reviews",
    metadata,
    Column("id", String(64), primary_key=True),
    Column("listing_id", String(64), nullable=False, index=True),
    Column("author_id", String(64), nullable=False),
    Column("comment", Text, nullable=False, default=""),
    Column("created_at", UTCDateTime, nullable=False),
)


@dataclass(frozen=True, slots=True)
class Conversation:
    id: str
    listing_id: str | None
    buyer_id: str
    seller_id: str
    created_at: datetime

    def has_participant(self, user_id: str) -> bool:
        return user_id in (self.buyer_id, self.seller_id)


@dataclass(frozen=True, slots=True)
class ConversationMessage:
    id: str
    conversation_id: str
    sender_id: str
    body: str
    created_at: datetime


@dataclass(frozen=True, slots=True)
class Review:
    id: str
    listing_id: str
    author_id: str
    comment: str
    created_at: datetime


class ReportTargetRepository:
    """Lookups for conversations, messages and reviews.

    Args:
        session_factory: Callable returning a SQLAlchemy Session context manager.
    """

    def __init__(self, session_factory: Callable[[], Session]) -> None:
        self._session_factory = session_factory

    def get_conversation(self, conversation_id: str) -> Conversation | None:
        with self._session_factory() as session:
            row = session.execute(
                select(conversations_table).where(conversations_table.c.id == conversation_id)
            ).first()
        return Conversation(**row._mapping) if row is not None else None

    def get_message(self, conversation_id: str, message_id: str) -> ConversationMessage | None:
        t = conversation_messages_table
        with self._session_factory() as session:
            row = session.execute(
                select(t).where(and_(t.c.id == message_id, t.c.conversation_id == conversation_id))
            ).first()
        return ConversationMessage(**row._mapping) if row is not None else None

    def count_messages(self, conversation_id: str) -> int:
        t = conversation_messages_table
        with self._session_factory() as session:
            return int(
                session.execute(
                    select(func.count())
                    .select_from(t)
                    .where(t.c.conversation_id == conversation_id)
                ).scalar_one()
            )

    def get_review(self, review_id: str) -> Review | None:
        with self._session_factory() as session:
            row = session.execute(
                select(reviews_table).where(reviews_table.c.id == review_id)
            ).first()
        return Review(**row._mapping) if row is not None else None

    def add_conversation(self, conversation: Conversation) -> None:
        with self._session_factory() as session:
            session.execute(conversations_table.insert(), asdict(conversation))
            session.commit()

    def add_message(self, message: ConversationMessage) -> None:
        with self._session_factory() as session:
            session.execute(conversation_messages_table.insert(), asdict(message))
            session.commit()

    def add_review(self, review: Review) -> None:
        with self._session_factory() as session:
            session.execute(reviews_table.insert(), asdict(review))
            session.commit()

    @classmethod
    def ensure_table_exists(cls, session_factory: Callable[[], Session]) -> None:
        """Create the conversation and review tables if they do not exist."""
        with session_factory() as session:
            bind = session.get_bind()
            for table in (conversations_table, conversation_messages_table, reviews_table):
                table.create(bind, checkfirst=True)
        logger.info("report_target_tables_ensured")

