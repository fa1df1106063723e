"""Deduplicated admin report listing.

Admin fan-out stores one report notification per admin. The console shows
one item per logical report: copies are grouped by report kind, reporter,
reason, target and message identity (or excerpt). Fields come from
``meta``; records created before ``meta`` was populated are parsed from
their ``Label: value`` message lines instead.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from datetime import UTC
from enum import StrEnum
from typing import TYPE_CHECKING, Any

from domicile.domain.notifications.model import NotificationType

if TYPE_CHECKING:
    from datetime import datetime

    from domicile.domain.notifications.infrastructure import NotificationRepository
    from domicile.domain.notifications.model import Notification

_LEGACY_LABELS = {
    "type": "report_kind",
    "report type": "report_kind",
    "reporter": "reporter_name",
    "reported by": "reporter_name",
    "reporter id": "reporter_id",
    "reason": "reason",
    "category": "reason",
    "target": "target_id",
    "appointment": "target_id",
    "conversation": "target_id",
    "property": "target_id",
    "review": "target_id",
    "message id": "message_id",
    "message": "excerpt",
    "message excerpt": "excerpt",
    "details": "details",
    "additional details": "details",
}


class ReportSort(StrEnum):
    DATE = "date"
    REPORTER = "reporter"
    TYPE = "type"


class SortOrder(StrEnum):
    ASC = "asc"
    DESC = "desc"


@dataclass(frozen=True, slots=True)
class ReportView:
    """One logical report, represented by its earliest stored copy."""

    notification_id: str
    report_kind: str
    reporter_id: str | None
    reporter_name: str | None
    reason: str | None
    target_id: str | None
    message_id: str | None
    excerpt: str | None
    details: str | None
    title: str
    message: str
    created_at: datetime
    copies: int

    def matches(self, search: str) -> bool:
        needle = search.casefold()
        haystack = (
            self.report_kind,
            self.reporter_id,
            self.reporter_name,
            self.reason,
            self.target_id,
            self.excerpt,
            self.details,
            self.title,
        )
        return any(needle in value.casefold() for value in haystack if value)

    def to_payload(self) -> dict[str, Any]:
        return {
            "notificationId": self.notification_id,
            "reportKind": self.report_kind,
            "reporterId": self.reporter_id,
            "reporterName": self.reporter_name,
            "reason": self.reason,
            "targetId": self.target_id,
            "messageId": self.message_id,
            "excerpt": self.excerpt,
            "details": self.details,
            "title": self.title,
            "message": self.message,
            "createdAt": self.created_at.isoformat(),
            "copies": self.copies,
        }


def _dedup_key(
    kind: str,
    reporter: str | None,
    reason: str | None,
    target: str | None,
    message_id: str | None,
    excerpt: str | None,
) -> tuple[Any, ...]:
    return (kind, reporter, reason, target, message_id or excerpt)


def _as_utc(value: datetime | None) -> datetime | None:
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=UTC)


def parse_legacy_fields(message: str) -> dict[str, str]:
    """Extract ``Label: value`` lines from a report message body."""
    fields: dict[str, str] = {}
    for line in message.splitlines():
        label, sep, value = line.partition(":")
        if not sep:
            continue
        key = _LEGACY_LABELS.get(label.strip().casefold())
        if key and key not in fields and value.strip():
            fields[key] = value.strip()
    return fields


def report_fields(notification: Notification) -> dict[str, Any]:
    """Structured report fields, from ``meta`` or parsed from the message."""
    if notification.meta.get("report_kind"):
        return notification.meta
    return parse_legacy_fields(notification.message)


def dedupe_reports(notifications: list[Notification]) -> list[ReportView]:
    """Collapse per-admin copies into one view per logical report.

    ``notifications`` must be ordered oldest first; the first copy seen
    represents its group.
    """
    groups: dict[tuple[Any, ...], tuple[Notification, dict[str, Any]]] = {}
    counts: dict[tuple[Any, ...], int] = {}
    for n in notifications:
        fields = report_fields(n)
        key = _dedup_key(
            fields.get("report_kind") or "unknown",
            fields.get("reporter_id") or fields.get("reporter_name"),
            fields.get("reason"),
            fields.get("target_id"),
            fields.get("message_id"),
            fields.get("excerpt"),
        )
        groups.setdefault(key, (n, fields))
        counts[key] = counts.get(key, 0) + 1

    return [
        ReportView(
            notification_id=n.id,
            report_kind=fields.get("report_kind") or "unknown",
            reporter_id=fields.get("reporter_id"),
            reporter_name=fields.get("reporter_name"),
            reason=fields.get("reason"),
            target_id=fields.get("target_id"),
            message_id=fields.get("message_id"),
            excerpt=fields.get("excerpt"),
            details=fields.get("details"),
            title=n.title,
            message=n.message,
            created_at=n.created_at,
            copies=counts[key],
        )
        for key, (n, fields) in groups.items()
    ]


def filter_and_sort(
    views: list[ReportView],
    *,
    reporter: str | None = None,
    search: str | None = None,
    sort: ReportSort = ReportSort.DATE,
    order: SortOrder = SortOrder.DESC,
) -> list[ReportView]:
    if reporter:
        needle = reporter.casefold()
        views = [
            v
            for v in views
            if any(needle in (value or "").casefold() for value in (v.reporter_name, v.reporter_id))
        ]
    if search:
        views = [v for v in views if v.matches(search)]

    def _key(v: ReportView) -> tuple[Any, ...]:
        match sort:
            case ReportSort.REPORTER:
                return ((v.reporter_name or v.reporter_id or "").casefold(), v.created_at)
            case ReportSort.TYPE:
                return (v.report_kind, v.created_at)
            case _:
                return (v.created_at,)

    return sorted(views, key=_key, reverse=order == SortOrder.DESC)


class ReportViewService:
    """Read model behind the admin report console."""

    def __init__(self, repository: NotificationRepository) -> None:
        self._repository = repository

    async def list_reports(
        self,
        *,
        created_from: datetime | None = None,
        created_to: datetime | None = None,
        reporter: str | None = None,
        search: str | None = None,
        sort: ReportSort = ReportSort.DATE,
        order: SortOrder = SortOrder.DESC,
    ) -> list[ReportView]:
        created_from, created_to = _as_utc(created_from), _as_utc(created_to)
        copies = await asyncio.to_thread(
            lambda: self._repository.list_by_type(
                NotificationType.REPORT, created_from=created_from, created_to=created_to
            )
        )
        return filter_and_sort(
            dedupe_reports(copies), reporter=reporter, search=search, sort=sort, order=order
        )
