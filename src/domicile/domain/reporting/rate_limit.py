"""Report rate limits over the append-only audit log.

Two window shapes, kept separate on purpose:

- ``DailyWindow``: fixed calendar day, starting at local midnight in the
  configured zone. All slots free up together at the next midnight.
- ``TrailingWindow``: the last ``length`` of time. A slot frees up when the
  oldest counted record leaves the window.

``acquire`` counts the window and appends the audit row in one statement
before any notification is created. ``release`` drops that row again when
the fan-out fails.
"""

from __future__ import annotations

import asyncio
import logging
import math
from dataclasses import dataclass
from datetime import UTC, datetime, time, timedelta, tzinfo
from typing import TYPE_CHECKING, Protocol

from domicile.foundation.domain.exceptions import RateLimitedError

if TYPE_CHECKING:
    from domicile.domain.reporting.infrastructure import AuditKind, ReportAuditRepository
    from domicile.foundation.domain.ports import ClockPort

logger = logging.getLogger(__name__)


class RateWindow(Protocol):
    label: str

    def start(self, now: datetime) -> datetime:
        """Earliest instant counted at ``now``."""
        ...

    def frees_at(self, now: datetime, oldest: datetime | None) -> datetime:
        """When the next slot becomes available."""
        ...


@dataclass(frozen=True, slots=True)
class DailyWindow:
    zone: tzinfo = UTC
    label: str = "day"

    def start(self, now: datetime) -> datetime:
        local = now.astimezone(self.zone)
        return datetime.combine(local.date(), time(0), tzinfo=self.zone).astimezone(UTC)

    def frees_at(self, now: datetime, oldest: datetime | None) -> datetime:
        tomorrow = now.astimezone(self.zone).date() + timedelta(days=1)
        return datetime.combine(tomorrow, time(0), tzinfo=self.zone).astimezone(UTC)


@dataclass(frozen=True, slots=True)
class TrailingWindow:
    length: timedelta = timedelta(hours=1)
    label: str = "hour"

    def start(self, now: datetime) -> datetime:
        return now - self.length

    def frees_at(self, now: datetime, oldest: datetime | None) -> datetime:
        return (oldest or now) + self.length


@dataclass(frozen=True, slots=True)
class RateLimitPolicy:
    """Cap on one report kind per user and conversation."""

    kind: AuditKind
    cap: int
    window: RateWindow


class ReportRateLimiter:
    def __init__(self, audit: ReportAuditRepository, clock: ClockPort) -> None:
        self._audit = audit
        self._clock = clock

    async def acquire(self, user_id: str, conversation_id: str, policy: RateLimitPolicy) -> int:
        """Claim one slot of ``policy`` for this user and conversation.

        Returns:
            The audit row id, to hand back to :meth:`release` if the report fails.

        Raises:
            RateLimitedError: ``cap`` reports already counted in the window.
        """
        now = self._clock.now()
        start = policy.window.start(now)
        audit_id = await asyncio.to_thread(
            self._audit.claim,
            user_id,
            conversation_id,
            policy.kind,
            start,
            policy.cap,
            now,
        )
        if audit_id is not None:
            return audit_id

        count, oldest = await asyncio.to_thread(
            self._audit.count_since, user_id, conversation_id, policy.kind, start
        )
        retry_after = math.ceil((policy.window.frees_at(now, oldest) - now).total_seconds())
        logger.info(
            "report_rate_limited",
            extra={
                "user_id": user_id,
                "conversation_id": conversation_id,
                "report_kind": policy.kind.value,
                "count": count,
                "cap": policy.cap,
            },
        )
        raise RateLimitedError(
            cap=policy.cap,
            window=policy.window.label,
            retry_after_seconds=max(retry_after, 1),
            conversation_id=conversation_id,
            report_kind=policy.kind.value,
        )

    async def release(self, audit_id: int) -> None:
        """Give back a slot whose report was not delivered."""
        await asyncio.to_thread(self._audit.remove, audit_id)
