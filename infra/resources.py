"""Infrastructure resources: Redis.

This module is part of the infra layer and must not import from application features.
"""
from typing import Optional

import redis.asyncio as redis


class RedisResource:
    """Redis resource for dependency injection."""

    def __init__(self, redis_url: str, socket_timeout: Optional[float] = None):
        self.redis_url = redis_url
        self.socket_timeout = socket_timeout
        self.client: Optional[redis.Redis] = None

    async def init(self):
        """Initialize Redis client (lazy, no network I/O)."""
        if self.client is None:
            self.client = redis.Redis.from_url(
                self.redis_url,
                decode_responses=True,
                socket_timeout=self.socket_timeout,
                socket_connect_timeout=self.socket_timeout,
            )
        return self

    async def connect(self):
        """Verify the connection with a PING."""
        assert self.client is not None, "Redis client not initialized"
        await self.client.ping()

    def get_client(self) -> redis.Redis:
        if self.client is None:
            raise RuntimeError("Redis not initialized. Call init() first.")
        return self.client

    async def disconnect(self):
        """Disconnect from Redis."""
        if self.client is not None:
            await self.client.aclose()
            self.client = None
