"""Port interface for the realtime push channel.

Pushes are a best-effort side channel. Callers always persist first and
never let a publish failure change persisted state.
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

NOTIFICATION_CREATED = "notificationCreated"
NOTIFICATION_MARKED_AS_READ = "notificationMarkedAsRead"
ALL_NOTIFICATIONS_MARKED_AS_READ = "allNotificationsMarkedAsRead"


@runtime_checkable
class RealtimeChannelPort(Protocol):
    """Port for pushing one event to one connected recipient."""

    async def publish(self, recipient_ref: str, event: str, payload: dict[str, Any]) -> None:
        """Deliver ``event`` with ``payload`` to ``recipient_ref``.

        Raises:
            Exception: Any transport failure. Callers treat it as soft.
        """
        ...
