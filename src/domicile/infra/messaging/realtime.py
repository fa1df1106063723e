"""Redis pub/sub realtime channel.

Implements RealtimeChannelPort. Each recipient has a dedicated channel
``"{prefix}:{recipient_ref}"``; socket gateways subscribe per connected
user and relay the JSON message ``{"event": ..., "payload": ...}``.
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from domicile.infra.persistence.redis_client import RedisFactory

logger = logging.getLogger(__name__)


def channel_name(prefix: str, recipient_ref: str) -> str:
    return f"{prefix}:{recipient_ref}"


class RedisRealtimeChannel:
    """Publishes notification events to per-recipient Redis channels."""

    def __init__(self, redis_factory: RedisFactory, prefix: str = "notifications") -> None:
        self._redis_factory = redis_factory
        self._prefix = prefix

    async def publish(self, recipient_ref: str, event: str, payload: dict[str, Any]) -> None:
        client = await self._redis_factory.get_client()
        message = json.dumps({"event": event, "payload": payload}, default=str)
        receivers = await client.publish(channel_name(self._prefix, recipient_ref), message)
        logger.debug(
            "realtime_event_published",
            extra={"recipient_ref": recipient_ref, "push_event": event, "receivers": receivers},
        )
