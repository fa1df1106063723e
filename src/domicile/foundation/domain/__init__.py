"""Domicile Foundation Domain -- pure Python domain primitives.

This package provides the foundational domain building blocks shared by
every bounded context: exceptions, the principal value object and the
port interfaces implemented by infrastructure adapters.
"""

from domicile.foundation.domain.exceptions import (
    AlreadyRestoredError,
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    DomainError,
    NotFoundError,
    RateLimitedError,
    TokenExpiredOrUsedError,
    ValidationError,
)
from domicile.foundation.domain.ports import (
    ClockPort,
    EmailSenderPort,
    IdentityDirectoryPort,
    ListingCatalogPort,
    OutboundEmail,
    RealtimeChannelPort,
    TokenGeneratorPort,
)
from domicile.foundation.domain.principal import (
    AccountStatus,
    ApprovalStatus,
    Principal,
    Role,
)

__all__ = [
    "AccountStatus",
    "AlreadyRestoredError",
    "ApprovalStatus",
    "AuthenticationError",
    "AuthorizationError",
    "ClockPort",
    "ConflictError",
    "DomainError",
    "EmailSenderPort",
    "IdentityDirectoryPort",
    "ListingCatalogPort",
    "NotFoundError",
    "OutboundEmail",
    "Principal",
    "RateLimitedError",
    "RealtimeChannelPort",
    "Role",
    "TokenExpiredOrUsedError",
    "TokenGeneratorPort",
    "ValidationError",
]
