"""Domicile Infra Messaging -- realtime push and outbound email adapters."""

from domicile.infra.messaging.email import HttpEmailSender, render_text
from domicile.infra.messaging.realtime import RedisRealtimeChannel, channel_name
from domicile.infra.messaging.settings import EmailSettings, get_email_settings

__all__ = [
    "EmailSettings",
    "HttpEmailSender",
    "RedisRealtimeChannel",
    "channel_name",
    "get_email_settings",
    "render_text",
]
