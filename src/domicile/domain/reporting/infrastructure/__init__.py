"""Report audit log and report target lookups."""

from domicile.domain.reporting.infrastructure.report_audit_repository import (
    AuditKind,
    ReportAuditRepository,
    report_audit_table,
)
from domicile.domain.reporting.infrastructure.target_repository import (
    Conversation,
    ConversationMessage,
    ReportTargetRepository,
    Review,
    conversation_messages_table,
    conversations_table,
    reviews_table,
)

__all__ = [
    "AuditKind",
    "Conversation",
    "ConversationMessage",
    "ReportAuditRepository",
    "ReportTargetRepository",
    "Review",
    "conversation_messages_table",
    "conversations_table",
    "report_audit_table",
    "reviews_table",
]
