"""Domain port interfaces for hexagonal architecture.

Ports define abstract interfaces that the domain layer uses to interact
with external services. Implementations (adapters) live in infrastructure.
"""

from domicile.foundation.domain.ports.clock import ClockPort
from domicile.foundation.domain.ports.email_sender import EmailSenderPort, OutboundEmail
from domicile.foundation.domain.ports.identity_directory import IdentityDirectoryPort
from domicile.foundation.domain.ports.listing_catalog import ListingCatalogPort
from domicile.foundation.domain.ports.realtime_channel import (
    ALL_NOTIFICATIONS_MARKED_AS_READ,
    NOTIFICATION_CREATED,
    NOTIFICATION_MARKED_AS_READ,
    RealtimeChannelPort,
)
from domicile.foundation.domain.ports.token_generator import TokenGeneratorPort

__all__ = [
    "ALL_NOTIFICATIONS_MARKED_AS_READ",
    "NOTIFICATION_CREATED",
    "NOTIFICATION_MARKED_AS_READ",
    "ClockPort",
    "EmailSenderPort",
    "IdentityDirectoryPort",
    "ListingCatalogPort",
    "OutboundEmail",
    "RealtimeChannelPort",
    "TokenGeneratorPort",
]
