"""Shared fixtures: a file-backed SQLite database, in-process adapters, seeded accounts."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import pytest
from fastapi.testclient import TestClient
from support import (
    ALL_USERS,
    BUYER,
    OWNER,
    SILENT_WATCHER,
    T0,
    WATCHER,
    FixedClock,
    RecordingChannel,
    RecordingEmailSender,
    SequenceTokenGenerator,
    make_listing,
)

from domicile.app import create_domicile_app
from domicile.domain.identity.infrastructure import UserDirectoryRepository
from domicile.domain.listings.infrastructure import ListingRepository
from domicile.domain.notifications import (
    NotificationFanout,
    NotificationRepository,
    NotificationSettings,
    RealtimePusher,
)
from domicile.domain.reporting import (
    Conversation,
    ConversationMessage,
    ReportTargetRepository,
    Review,
)
from domicile.domain.watchlist import SubscriptionKind, SubscriptionRepository
from domicile.infra.persistence import DatabaseManager, DatabaseSettings, metadata

if TYPE_CHECKING:
    from collections.abc import Iterator
    from pathlib import Path

    from fastapi import FastAPI


@pytest.fixture()
def database(tmp_path: Path) -> Iterator[DatabaseManager]:
    """A fresh SQLite file per test with every table created."""
    manager = DatabaseManager(DatabaseSettings(url=f"sqlite:///{tmp_path / 'domicile.db'}"))
    metadata.create_all(manager.get_engine())
    yield manager
    manager.dispose()


@pytest.fixture()
def session_factory(database: DatabaseManager) -> Any:
    return database.get_session_factory()


@pytest.fixture()
def directory(session_factory: Any) -> UserDirectoryRepository:
    repo = UserDirectoryRepository(session_factory)
    for principal in ALL_USERS:
        repo.upsert(principal)
    return repo


@pytest.fixture()
def catalog(session_factory: Any) -> ListingRepository:
    return ListingRepository(session_factory)


@pytest.fixture()
def subscriptions(session_factory: Any) -> SubscriptionRepository:
    return SubscriptionRepository(session_factory)


@pytest.fixture()
def listing(catalog: ListingRepository, subscriptions: SubscriptionRepository) -> dict:
    """A live listing watched by two users, one of them without an email."""
    snapshot = make_listing()
    catalog.add(snapshot)
    for watcher in (WATCHER, SILENT_WATCHER):
        subscriptions.add(
            watcher.user_id, snapshot["id"], SubscriptionKind.WATCHLIST, 250000.0, T0
        )
    subscriptions.add(BUYER.user_id, snapshot["id"], SubscriptionKind.WISHLIST, 250000.0, T0)
    return snapshot


@pytest.fixture()
def targets(session_factory: Any, listing: dict) -> ReportTargetRepository:
    """A buyer/owner conversation about the fixture listing, plus one review."""
    repo = ReportTargetRepository(session_factory)
    repo.add_conversation(Conversation("c-1", listing["id"], BUYER.user_id, OWNER.user_id, T0))
    repo.add_message(ConversationMessage("m-1", "c-1", OWNER.user_id, "Wire the deposit today", T0))
    repo.add_message(ConversationMessage("m-2", "c-1", BUYER.user_id, "Is parking included?", T0))
    repo.add_review(Review("rv-1", listing["id"], WATCHER.user_id, "Overpriced and damp", T0))
    return repo


@pytest.fixture()
def clock() -> FixedClock:
    return FixedClock()


@pytest.fixture()
def channel() -> RecordingChannel:
    return RecordingChannel()


@pytest.fixture()
def mailer() -> RecordingEmailSender:
    return RecordingEmailSender()


@pytest.fixture()
def tokens() -> SequenceTokenGenerator:
    return SequenceTokenGenerator()


@pytest.fixture()
def notifications(session_factory: Any) -> NotificationRepository:
    return NotificationRepository(session_factory)


@pytest.fixture()
def pusher(channel: RecordingChannel) -> RealtimePusher:
    return RealtimePusher(channel, NotificationSettings())


@pytest.fixture()
def fanout(
    notifications: NotificationRepository,
    directory: UserDirectoryRepository,
    subscriptions: SubscriptionRepository,
    pusher: RealtimePusher,
    clock: FixedClock,
) -> NotificationFanout:
    return NotificationFanout(notifications, directory, subscriptions, pusher, clock)


@pytest.fixture()
def app(
    database: DatabaseManager,
    directory: UserDirectoryRepository,
    clock: FixedClock,
    channel: RecordingChannel,
    mailer: RecordingEmailSender,
    tokens: SequenceTokenGenerator,
) -> FastAPI:
    """The fully wired application with in-process adapters and no external services."""
    return create_domicile_app(
        database_manager=database,
        realtime_channel=channel,
        email_sender=mailer,
        clock=clock,
        token_generator=tokens,
        include_infra_lifespans=False,
    )


@pytest.fixture()
def state(app: FastAPI) -> Any:
    """``app.state``: the wired services, for direct service-level tests."""
    return app.state


@pytest.fixture()
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app, raise_server_exceptions=False) as c:
        yield c
