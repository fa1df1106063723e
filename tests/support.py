"""In-process adapters, seeded accounts and listing builders shared by the tests."""

from __future__ import annotations

import itertools
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING, Any

from domicile.foundation.domain.principal import AccountStatus, ApprovalStatus, Principal, Role

if TYPE_CHECKING:
    from domicile.foundation.domain.ports import OutboundEmail

T0 = datetime(2026, 3, 14, 12, 0, tzinfo=UTC)


class FixedClock:
    """Clock that only moves when told to."""

    def __init__(self, now: datetime = T0) -> None:
        self._now = now

    def now(self) -> datetime:
        return self._now

    def set(self, value: datetime) -> None:
        self._now = value

    def advance(self, **delta: float) -> None:
        self._now += timedelta(**delta)


class RecordingChannel:
    """Realtime channel that records every publish; selected recipients fail."""

    def __init__(self) -> None:
        self.published: list[tuple[str, str, dict[str, Any]]] = []
        self.failing: set[str] = set()

    async def publish(self, recipient_ref: str, event: str, payload: dict[str, Any]) -> None:
        if recipient_ref in self.failing:
            msg = f"socket closed for {recipient_ref}"
            raise ConnectionError(msg)
        self.published.append((recipient_ref, event, payload))

    def events_for(self, recipient_ref: str, event: str | None = None) -> list[dict[str, Any]]:
        return [
            payload
            for ref, name, payload in self.published
            if ref == recipient_ref and (event is None or name == event)
        ]


class RecordingEmailSender:
    """Email sender that records accepted messages; can be told to fail."""

    def __init__(self) -> None:
        self.sent: list[OutboundEmail] = []
        self.fail = False

    async def send(self, email: OutboundEmail) -> bool:
        if self.fail:
            msg = "email provider unavailable"
            raise ConnectionError(msg)
        self.sent.append(email)
        return True

    def templates(self) -> list[str]:
        return [e.template for e in self.sent]


class SequenceTokenGenerator:
    """Deterministic restoration tokens: ``tok-0001``, ``tok-0002``, ..."""

    def __init__(self) -> None:
        self._counter = itertools.count(1)

    def generate_token(self) -> str:
        return f"tok-{next(self._counter):04d}"


OWNER = Principal("u-owner", email="olivia@example.com", username="olivia")
BUYER = Principal("u-buyer", email="bruno@example.com", username="bruno")
WATCHER = Principal("u-watcher", email="wanda@example.com", username="wanda")
SILENT_WATCHER = Principal("u-silent", username="silent")
ADMIN = Principal(
    "u-admin",
    role=Role.ADMIN,
    approval=ApprovalStatus.APPROVED,
    email="ada@example.com",
    username="ada",
)
ROOT = Principal("u-root", role=Role.ROOTADMIN, email="root@example.com", username="root")
PENDING_ADMIN = Principal("u-pending", role=Role.ADMIN, username="pending")
SUSPENDED_ADMIN = Principal(
    "u-banned-admin",
    role=Role.ADMIN,
    approval=ApprovalStatus.APPROVED,
    status=AccountStatus.SUSPENDED,
    username="banned",
)
SUSPENDED_USER = Principal("u-suspended", status=AccountStatus.SUSPENDED, username="suspended")

ALL_USERS = (
    OWNER,
    BUYER,
    WATCHER,
    SILENT_WATCHER,
    ADMIN,
    ROOT,
    PENDING_ADMIN,
    SUSPENDED_ADMIN,
    SUSPENDED_USER,
)


def make_listing(
    listing_id: str = "l-1", owner_id: str = OWNER.user_id, **overrides: Any
) -> dict[str, Any]:
    listing = {
        "id": listing_id,
        "owner_id": owner_id,
        "name": "Harbour View Loft",
        "description": "Two bedrooms above the marina",
        "address": "12 Quay Street",
        "regular_price": 250000.0,
        "discount_price": None,
        "offer": False,
        "status": "available",
        "images": ["https://img.example.com/loft.jpg"],
        "attributes": {"bedrooms": 2, "parking": True},
        "created_at": (T0 - timedelta(days=90)).isoformat(),
        "updated_at": (T0 - timedelta(days=3)).isoformat(),
    }
    listing.update(overrides)
    return listing


def headers_for(principal: Principal) -> dict[str, str]:
    return {"X-User-ID": principal.user_id}

