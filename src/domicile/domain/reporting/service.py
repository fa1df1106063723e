"""User reports routed to every current admin.

Four report shapes: a single chat message, a whole chat conversation, a
property and a review. Each one validates its target, fans out one
``report`` notification per admin and stores the machine-readable fields
in ``meta``; the message body is a ``Label: value`` rendering for humans.

Message and chat reports are rate limited per reporter and conversation.
A slot is claimed right before the fan-out and given back if the fan-out
fails, so only delivered reports count against the cap.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING, Any

from domicile.domain.notifications.model import NotificationDraft, NotificationType
from domicile.domain.reporting.infrastructure import AuditKind
from domicile.domain.reporting.rate_limit import DailyWindow, RateLimitPolicy, TrailingWindow
from domicile.foundation.application.best_effort import run_best_effort
from domicile.foundation.domain.exceptions import (
    AuthorizationError,
    NotFoundError,
    ValidationError,
)
from domicile.foundation.domain.ports import OutboundEmail

if TYPE_CHECKING:
    from domicile.domain.notifications.fanout import NotificationFanout
    from domicile.domain.notifications.settings import NotificationSettings
    from domicile.domain.reporting.infrastructure import Conversation, ReportTargetRepository
    from domicile.domain.reporting.rate_limit import ReportRateLimiter
    from domicile.domain.reporting.settings import ReportSettings
    from domicile.foundation.domain.ports import EmailSenderPort, ListingCatalogPort
    from domicile.foundation.domain.principal import Principal

logger = logging.getLogger(__name__)


class ReportKind(StrEnum):
    MESSAGE = "message"
    CHAT = "chat"
    PROPERTY = "property"
    REVIEW = "review"


@dataclass(frozen=True, slots=True)
class ReportReceipt:
    report_kind: ReportKind
    target_id: str
    admins_notified: int


def _required(field: str, value: str | None) -> str:
    value = (value or "").strip()
    if not value:
        raise ValidationError(field, "is required")
    return value


def _optional(value: str | None) -> str | None:
    return (value or "").strip() or None


def _humanize(category: str) -> str:
    return category.replace("_", " ").strip().capitalize()


def _render(*pairs: tuple[str, Any]) -> str:
    return "\n".join(f"{label}: {value}" for label, value in pairs if value not in (None, ""))


def _reporter_label(reporter: Principal) -> str:
    name = reporter.username or reporter.user_id
    return f"{name} ({reporter.email})" if reporter.email else name


class ReportService:
    """Accepts user reports and notifies the admin role."""

    def __init__(
        self,
        fanout: NotificationFanout,
        targets: ReportTargetRepository,
        catalog: ListingCatalogPort,
        limiter: ReportRateLimiter,
        email_sender: EmailSenderPort,
        settings: ReportSettings,
        notification_settings: NotificationSettings,
    ) -> None:
        self._fanout = fanout
        self._targets = targets
        self._catalog = catalog
        self._limiter = limiter
        self._email = email_sender
        self._settings = settings
        self._timeout = notification_settings.side_effect_timeout_seconds
        self._message_policy = RateLimitPolicy(
            AuditKind.MESSAGE, settings.message_daily_cap, DailyWindow(settings.zone)
        )
        self._chat_policy = RateLimitPolicy(
            AuditKind.CHAT, settings.chat_hourly_cap, TrailingWindow()
        )

    def _base_meta(self, kind: ReportKind, reporter: Principal, target_id: str) -> dict[str, Any]:
        return {
            "report_kind": kind.value,
            "reporter_id": reporter.user_id,
            "reporter_name": reporter.username,
            "reporter_email": reporter.email,
            "target_id": target_id,
        }

    async def _conversation_for(self, reporter: Principal, conversation_id: str) -> Conversation:
        conversation = await asyncio.to_thread(self._targets.get_conversation, conversation_id)
        if conversation is None:
            raise NotFoundError("Conversation", conversation_id)
        if not conversation.has_participant(reporter.user_id) and not reporter.is_elevated:
            raise AuthorizationError(
                "Only participants can report this conversation",
                context={"conversation_id": conversation_id, "principal_id": reporter.user_id},
            )
        return conversation

    async def _listing_name(self, listing_id: str | None) -> str | None:
        if not listing_id:
            return None
        listing = await asyncio.to_thread(self._catalog.get, listing_id)
        return listing.get("name") if listing else None

    async def _notify_admins(self, draft: NotificationDraft, kind: ReportKind) -> int:
        created = await self._fanout.to_admins(draft)
        logger.info(
            "report_submitted",
            extra={
                "report_kind": kind.value,
                "target_id": draft.meta.get("target_id"),
                "reporter_id": draft.meta.get("reporter_id"),
                "admins_notified": len(created),
            },
        )
        return len(created)

    async def _notify_limited(
        self,
        reporter: Principal,
        conversation_id: str,
        policy: RateLimitPolicy,
        draft: NotificationDraft,
        kind: ReportKind,
    ) -> int:
        slot = await self._limiter.acquire(reporter.user_id, conversation_id, policy)
        try:
            return await self._notify_admins(draft, kind)
        except Exception:
            await self._limiter.release(slot)
            raise

    async def report_message(
        self,
        reporter: Principal,
        conversation_id: str,
        message_id: str,
        reason: str,
        details: str | None = None,
    ) -> ReportReceipt:
        """Report one chat message.

        Raises:
            ValidationError: Missing conversation, message or reason.
            NotFoundError: Unknown conversation, or message not in it.
            AuthorizationError: Reporter is not a participant.
            RateLimitedError: Daily message report cap reached.
        """
        conversation_id = _required("conversation_id", conversation_id)
        message_id = _required("message_id", message_id)
        reason = _required("reason", reason)
        details = _optional(details)

        conversation = await self._conversation_for(reporter, conversation_id)
        message = await asyncio.to_thread(
            self._targets.get_message, conversation_id, message_id
        )
        if message is None:
            raise NotFoundError("Message", message_id, conversation_id=conversation_id)

        excerpt = (message.body or "[no content]")[: self._settings.excerpt_length]
        listing_name = await self._listing_name(conversation.listing_id)
        draft = NotificationDraft(
            type=NotificationType.REPORT,
            title="Chat message reported",
            message=_render(
                ("Reason", reason),
                ("Reporter", _reporter_label(reporter)),
                ("Conversation", conversation_id),
                ("Property", listing_name),
                ("Message ID", message_id),
                ("Message excerpt", excerpt),
                ("Additional details", details),
            ),
            listing_id=conversation.listing_id,
            meta={
                **self._base_meta(ReportKind.MESSAGE, reporter, conversation_id),
                "reason": reason,
                "details": details,
                "message_id": message_id,
                "message_sender_id": message.sender_id,
                "excerpt": excerpt,
                "buyer_id": conversation.buyer_id,
                "seller_id": conversation.seller_id,
                "listing_name": listing_name,
            },
        )
        notified = await self._notify_limited(
            reporter, conversation_id, self._message_policy, draft, ReportKind.MESSAGE
        )
        return ReportReceipt(ReportKind.MESSAGE, conversation_id, notified)

    async def report_chat(
        self,
        reporter: Principal,
        conversation_id: str,
        reason: str,
        details: str | None = None,
    ) -> ReportReceipt:
        """Report a whole conversation.

        Raises:
            ValidationError: Missing conversation or reason.
            NotFoundError: Unknown conversation.
            AuthorizationError: Reporter is not a participant.
            RateLimitedError: Hourly chat report cap reached.
        """
        conversation_id = _required("conversation_id", conversation_id)
        reason = _required("reason", reason)
        details = _optional(details)

        conversation = await self._conversation_for(reporter, conversation_id)

        message_count = await asyncio.to_thread(self._targets.count_messages, conversation_id)
        listing_name = await self._listing_name(conversation.listing_id)
        draft = NotificationDraft(
            type=NotificationType.REPORT,
            title="Chat conversation reported",
            message=_render(
                ("Reason", reason),
                ("Reporter", _reporter_label(reporter)),
                ("Conversation", conversation_id),
                ("Property", listing_name),
                ("Total messages", message_count),
                ("Additional details", details),
            ),
            listing_id=conversation.listing_id,
            meta={
                **self._base_meta(ReportKind.CHAT, reporter, conversation_id),
                "reason": reason,
                "details": details,
                "message_count": message_count,
                "buyer_id": conversation.buyer_id,
                "seller_id": conversation.seller_id,
                "listing_name": listing_name,
            },
        )
        notified = await self._notify_limited(
            reporter, conversation_id, self._chat_policy, draft, ReportKind.CHAT
        )
        return ReportReceipt(ReportKind.CHAT, conversation_id, notified)

    async def report_property(
        self,
        reporter: Principal,
        listing_id: str,
        category: str,
        details: str | None = None,
    ) -> ReportReceipt:
        """Report a listing. The reporter gets an acknowledgement email.

        Raises:
            ValidationError: Missing category.
            NotFoundError: Unknown listing.
        """
        category = _required("category", category)
        details = _optional(details)
        listing = await asyncio.to_thread(self._catalog.get, listing_id)
        if listing is None:
            raise NotFoundError("Listing", listing_id)

        draft = NotificationDraft(
            type=NotificationType.REPORT,
            title="Property reported",
            message=_render(
                ("Reason", _humanize(category)),
                ("Reporter", _reporter_label(reporter)),
                ("Property", f"{listing.get('name')} ({listing_id})"),
                ("Additional details", details),
            ),
            listing_id=listing_id,
            meta={
                **self._base_meta(ReportKind.PROPERTY, reporter, listing_id),
                "reason": category,
                "details": details,
                "listing_name": listing.get("name"),
                "listing_owner_id": listing.get("owner_id"),
            },
        )
        notified = await self._notify_admins(draft, ReportKind.PROPERTY)
        if reporter.email:
            await run_best_effort(
                "report_acknowledgement_email",
                self._email.send(
                    OutboundEmail(
                        to=reporter.email,
                        subject="We received your report",
                        template="property_report_acknowledgement",
                        params={
                            "username": reporter.username,
                            "listing_id": listing_id,
                            "listing_name": listing.get("name"),
                            "category": _humanize(category),
                            "details": details,
                        },
                    )
                ),
                self._timeout,
                listing_id=listing_id,
                recipient_id=reporter.user_id,
            )
        return ReportReceipt(ReportKind.PROPERTY, listing_id, notified)

    async def report_review(
        self,
        reporter: Principal,
        review_id: str,
        category: str,
        reason: str | None = None,
    ) -> ReportReceipt:
        """Report a listing review.

        Raises:
            ValidationError: Missing category.
            NotFoundError: Unknown review.
        """
        category = _required("category", category)
        reason = _optional(reason)
        review = await asyncio.to_thread(self._targets.get_review, review_id)
        if review is None:
            raise NotFoundError("Review", review_id)

        listing_name = await self._listing_name(review.listing_id)
        draft = NotificationDraft(
            type=NotificationType.REPORT,
            title="Review reported",
            message=_render(
                ("Reason", _humanize(category)),
                ("Reporter", _reporter_label(reporter)),
                ("Review", review_id),
                ("Property", listing_name or "Unknown"),
                ("Additional details", reason),
            ),
            listing_id=review.listing_id,
            meta={
                **self._base_meta(ReportKind.REVIEW, reporter, review_id),
                "reason": category,
                "details": reason,
                "review_author_id": review.author_id,
                "listing_name": listing_name,
            },
        )
        notified = await self._notify_admins(draft, ReportKind.REVIEW)
        return ReportReceipt(ReportKind.REVIEW, review_id, notified)
