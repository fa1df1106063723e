"""Subscription persistence."""

from domicile.domain.watchlist.infrastructure.subscription_repository import (
    Subscription,
    SubscriptionKind,
    SubscriptionRepository,
    subscriptions_table,
)

__all__ = [
    "Subscription",
    "SubscriptionKind",
    "SubscriptionRepository",
    "subscriptions_table",
]
