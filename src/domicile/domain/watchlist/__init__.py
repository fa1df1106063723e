"""Domicile Domain Watchlist -- subscriptions and listing change alerts."""

from domicile.domain.watchlist.alerts import ListingAlerts
from domicile.domain.watchlist.infrastructure import (
    Subscription,
    SubscriptionKind,
    SubscriptionRepository,
    subscriptions_table,
)
from domicile.domain.watchlist.service import WatchlistService

__all__ = [
    "ListingAlerts",
    "Subscription",
    "SubscriptionKind",
    "SubscriptionRepository",
    "WatchlistService",
    "subscriptions_table",
]
