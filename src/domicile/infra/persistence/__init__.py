"""Domicile Infra Persistence -- engines, session factories, schema, Redis."""

from domicile.infra.persistence.database import (
    DatabaseManager,
    DatabaseSettings,
    get_database_manager,
    get_session_factory,
)
from domicile.infra.persistence.lifespan import lifespan_contribution
from domicile.infra.persistence.redis_client import (
    RedisFactory,
    RedisSettings,
    get_redis_factory,
)
from domicile.infra.persistence.schema import JSONType, UTCDateTime, metadata

__all__ = [
    "DatabaseManager",
    "DatabaseSettings",
    "JSONType",
    "RedisFactory",
    "RedisSettings",
    "UTCDateTime",
    "get_database_manager",
    "get_redis_factory",
    "get_session_factory",
    "lifespan_contribution",
    "metadata",
]
