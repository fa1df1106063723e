"""Domicile Domain Notifications -- fan-out, read sync and report views."""

from domicile.domain.notifications.announcements import AdminMessenger
from domicile.domain.notifications.fanout import NotificationFanout, Push, RealtimePusher
from domicile.domain.notifications.infrastructure import (
    NotificationRepository,
    notifications_table,
)
from domicile.domain.notifications.model import (
    Audience,
    Notification,
    NotificationDraft,
    NotificationType,
)
from domicile.domain.notifications.read_sync import NotificationService
from domicile.domain.notifications.report_views import (
    ReportSort,
    ReportView,
    ReportViewService,
    SortOrder,
    dedupe_reports,
)
from domicile.domain.notifications.settings import (
    NotificationSettings,
    get_notification_settings,
)

__all__ = [
    "AdminMessenger",
    "Audience",
    "Notification",
    "NotificationDraft",
    "NotificationFanout",
    "NotificationRepository",
    "NotificationService",
    "NotificationSettings",
    "NotificationType",
    "Push",
    "RealtimePusher",
    "ReportSort",
    "ReportView",
    "ReportViewService",
    "SortOrder",
    "dedupe_reports",
    "get_notification_settings",
    "notifications_table",
]
