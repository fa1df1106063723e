"""Port interface for outbound transactional email.

Email is fire-and-forget: a failed send never rolls back the operation
that requested it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable


@dataclass(frozen=True, slots=True)
class OutboundEmail:
    """A single transactional email.

    Attributes:
        to: Recipient address.
        subject: Subject line.
        template: Template identifier understood by the sender.
        params: Template parameters.
    """

    to: str
    subject: str
    template: str
    params: dict[str, Any] = field(default_factory=dict)


@runtime_checkable
class EmailSenderPort(Protocol):
    """Port for sending transactional email."""

    async def send(self, email: OutboundEmail) -> bool:
        """Send ``email``. Returns True if the provider accepted it."""
        ...
