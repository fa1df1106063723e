"""Domicile application factory.

Wires repositories, adapters and domain services onto ``app.state`` and
hands the domain routers to :func:`domicile.infra.fastapi.create_app`.

Usage::

    from domicile.app import create_domicile_app

    app = create_domicile_app()

    # uvicorn
    # uvicorn --factory domicile.app:create_domicile_app
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any

from domicile.domain.identity.infrastructure import UserDirectoryRepository
from domicile.domain.listings.infrastructure import ListingRepository
from domicile.domain.listings.router import router as listings_router
from domicile.domain.notifications import (
    AdminMessenger,
    NotificationFanout,
    NotificationRepository,
    NotificationService,
    RealtimePusher,
    ReportViewService,
    get_notification_settings,
)
from domicile.domain.notifications.router import router as notifications_router
from domicile.domain.reporting import (
    ReportAuditRepository,
    ReportRateLimiter,
    ReportService,
    ReportTargetRepository,
    get_report_settings,
)
from domicile.domain.reporting.router import router as reports_router
from domicile.domain.restoration import (
    DeletionService,
    RestorationService,
    VaultRepository,
    get_restoration_settings,
)
from domicile.domain.restoration.router import router as restoration_router
from domicile.domain.watchlist import ListingAlerts, SubscriptionRepository, WatchlistService
from domicile.domain.watchlist.router import router as watchlist_router
from domicile.foundation.application import (
    LIFESPAN_PRIORITY_SERVICES,
    LifespanContribution,
    SystemClock,
)
from domicile.infra.auth import SecretsTokenGenerator
from domicile.infra.fastapi import AppSettings, create_app
from domicile.infra.messaging import HttpEmailSender, RedisRealtimeChannel, get_email_settings
from domicile.infra.observability import lifespan_contribution as observability_lifespan
from domicile.infra.persistence import get_database_manager, get_redis_factory
from domicile.infra.persistence import lifespan_contribution as persistence_lifespan
from domicile.infra.taskiq import lifespan_contribution as taskiq_lifespan

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from fastapi import FastAPI

    from domicile.foundation.domain.ports import (
        ClockPort,
        EmailSenderPort,
        RealtimeChannelPort,
        TokenGeneratorPort,
    )
    from domicile.infra.persistence import DatabaseManager

logger = logging.getLogger(__name__)


@asynccontextmanager
async def _services_lifespan(app: Any) -> AsyncIterator[None]:
    """Release adapter resources owned by the wired services."""
    try:
        yield
    finally:
        email_sender = getattr(app.state, "email_sender", None)
        aclose = getattr(email_sender, "aclose", None)
        if aclose is not None:
            await aclose()
            logger.info("email_sender_closed")


_services_contribution = LifespanContribution(
    name="services",
    hook=_services_lifespan,
    priority=LIFESPAN_PRIORITY_SERVICES,
)


def create_domicile_app(
    *,
    settings: AppSettings | None = None,
    database_manager: DatabaseManager | None = None,
    realtime_channel: RealtimeChannelPort | None = None,
    email_sender: EmailSenderPort | None = None,
    clock: ClockPort | None = None,
    token_generator: TokenGeneratorPort | None = None,
    include_infra_lifespans: bool = True,
) -> FastAPI:
    """Create the Domicile API.

    Every adapter defaults to its production implementation configured from
    the environment. Tests pass in-process replacements and usually disable
    the infrastructure lifespans that need PostgreSQL and Redis.

    Args:
        settings: Application settings. If ``None``, loaded from environment.
        database_manager: Database to use. Defaults to the environment one.
        realtime_channel: Realtime push transport. Defaults to Redis pub/sub.
        email_sender: Transactional email adapter. Defaults to the HTTP API.
        clock: Time source. Defaults to the system clock.
        token_generator: Restoration token source. Defaults to ``secrets``.
        include_infra_lifespans: Register the observability, persistence and
            TaskIQ lifespan hooks.
    """
    notification_settings = get_notification_settings()
    restoration_settings = get_restoration_settings()
    report_settings = get_report_settings()

    manager = database_manager or get_database_manager()
    session_factory = manager.get_session_factory()
    clock = clock or SystemClock()
    email_sender = email_sender or HttpEmailSender(get_email_settings())
    token_generator = token_generator or SecretsTokenGenerator(restoration_settings.token_bytes)
    channel = realtime_channel or RedisRealtimeChannel(
        get_redis_factory(), notification_settings.realtime_channel_prefix
    )

    directory = UserDirectoryRepository(session_factory)
    catalog = ListingRepository(session_factory)
    subscriptions = SubscriptionRepository(session_factory)
    notifications = NotificationRepository(session_factory)
    vault = VaultRepository(session_factory)
    targets = ReportTargetRepository(session_factory)
    audit = ReportAuditRepository(session_factory)

    pusher = RealtimePusher(channel, notification_settings)
    fanout = NotificationFanout(notifications, directory, subscriptions, pusher, clock)

    hooks: list[LifespanContribution] = [_services_contribution]
    if include_infra_lifespans:
        hooks += [
            observability_lifespan,
            persistence_lifespan,
            taskiq_lifespan,
        ]

    app = create_app(
        settings,
        routers=[
            restoration_router,
            listings_router,
            notifications_router,
            watchlist_router,
            reports_router,
        ],
        lifespan_hooks=hooks,
    )

    state = app.state
    state.database_manager = manager
    state.identity_directory = directory
    state.email_sender = email_sender
    state.skip_redis_health = realtime_channel is not None and not include_infra_lifespans

    state.notification_service = NotificationService(notifications, directory, pusher, clock)
    state.admin_messenger = AdminMessenger(fanout, directory)
    state.report_views = ReportViewService(notifications)
    state.watchlist_service = WatchlistService(subscriptions, catalog, clock)
    state.listing_alerts = ListingAlerts(fanout, directory, email_sender, notification_settings)
    state.deletion_service = DeletionService(
        catalog,
        vault,
        subscriptions,
        directory,
        fanout,
        email_sender,
        token_generator,
        clock,
        restoration_settings,
        notification_settings,
    )
    state.restoration_service = RestorationService(
        vault, catalog, directory, fanout, email_sender, clock, notification_settings
    )
    state.report_service = ReportService(
        fanout,
        targets,
        catalog,
        ReportRateLimiter(audit, clock),
        email_sender,
        report_settings,
        notification_settings,
    )

    logger.info(
        "domicile_app_created",
        extra={"infra_lifespans": include_infra_lifespans},
    )
    return app
