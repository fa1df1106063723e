"""Redis configuration and async client factory.

Redis carries the realtime notification channel (pub/sub). The client is
created lazily and shared for the life of the process.

Example:
    >>> from domicile.infra.persistence.redis_client import get_redis_factory
    >>> client = await get_redis_factory().get_client()
    >>> await client.publish("notifications:42", b"{}")
"""

from __future__ import annotations

from functools import lru_cache
from typing import Any

import redis.asyncio as aioredis
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class RedisSettings(BaseSettings):
    """Configuration for the Redis connection.

    Environment Variables:
        REDIS_URL: Full connection URL. Takes precedence when set.
        REDIS_HOST / REDIS_PORT / REDIS_DB / REDIS_PASSWORD: Individual parts.
        REDIS_POOL_SIZE: Maximum connections in pool (default: 10)
        REDIS_SOCKET_TIMEOUT: Socket timeout in seconds (default: 5.0)
        REDIS_SOCKET_CONNECT_TIMEOUT: Connection timeout in seconds (default: 5.0)

    Example:
        >>> RedisSettings(host="myhost", port=6380).get_url()
        'redis://myhost:6380/0'
    """

    model_config = SettingsConfigDict(
        env_prefix="REDIS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    url: str | None = Field(default=None, description="Full Redis URL (redis://host:port/db)")
    host: str = Field(default="localhost", description="Redis host")
    port: int = Field(default=6379, ge=1, le=65535, description="Redis port")
    db: int = Field(default=0, ge=0, le=15, description="Redis database number (0-15)")
    password: str | None = Field(default=None, repr=False, description="Redis password")

    pool_size: int = Field(default=10, ge=1, le=100, description="Maximum connections in pool")
    socket_timeout: float = Field(default=5.0, ge=0.1, description="Socket timeout in seconds")
    socket_connect_timeout: float = Field(
        default=5.0, ge=0.1, description="Connection timeout in seconds"
    )

    def get_url(self) -> str:
        """Return ``url`` if set, otherwise build one from the individual parts."""
        if self.url:
            return self.url
        if self.password:
            return f"redis://:{self.password}@{self.host}:{self.port}/{self.db}"
        return f"redis://{self.host}:{self.port}/{self.db}"


class RedisFactory:
    """Factory for a lazily created, pooled Redis async client.

    Usage:
        factory = RedisFactory(RedisSettings())
        client = await factory.get_client()
        await factory.close()
    """

    def __init__(self, settings: RedisSettings) -> None:
        self._settings = settings
        self._client: Any = None

    @property
    def settings(self) -> RedisSettings:
        return self._settings

    async def get_client(self) -> Any:
        """Get the Redis async client, creating it on first access."""
        if self._client is None:
            self._client = aioredis.from_url(
                self._settings.get_url(),
                max_connections=self._settings.pool_size,
                socket_timeout=self._settings.socket_timeout,
                socket_connect_timeout=self._settings.socket_connect_timeout,
                decode_responses=False,
            )
        return self._client

    async def close(self) -> None:
        """Close the Redis client and release pooled connections."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None


@lru_cache(maxsize=1)
def get_redis_factory() -> RedisFactory:
    """Get cached Redis factory singleton configured from the environment."""
    return RedisFactory(RedisSettings())
