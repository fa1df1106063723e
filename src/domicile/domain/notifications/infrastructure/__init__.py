"""Notification persistence."""

from domicile.domain.notifications.infrastructure.notification_repository import (
    NotificationRepository,
    notifications_table,
)

__all__ = ["NotificationRepository", "notifications_table"]
