"""Domicile Domain Reporting -- user reports to admins, with rate limits."""

from domicile.domain.reporting.infrastructure import (
    AuditKind,
    Conversation,
    ConversationMessage,
    ReportAuditRepository,
    ReportTargetRepository,
    Review,
)
from domicile.domain.reporting.rate_limit import (
    DailyWindow,
    RateLimitPolicy,
    ReportRateLimiter,
    TrailingWindow,
)
from domicile.domain.reporting.service import ReportKind, ReportReceipt, ReportService
from domicile.domain.reporting.settings import ReportSettings, get_report_settings

__all__ = [
    "AuditKind",
    "Conversation",
    "ConversationMessage",
    "DailyWindow",
    "RateLimitPolicy",
    "ReportAuditRepository",
    "ReportKind",
    "ReportRateLimiter",
    "ReportReceipt",
    "ReportService",
    "ReportSettings",
    "ReportTargetRepository",
    "Review",
    "TrailingWindow",
    "get_report_settings",
]
