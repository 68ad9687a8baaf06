"""Redis connection pool."""

import redis.asyncio as redis
from fastapi import Request


def create_redis(url: str) -> redis.Redis:
    """Create a Redis client backed by a connection pool."""
    return redis.from_url(  # type: ignore[no-untyped-call]
        url,
        encoding="utf-8",
        decode_responses=True,
        max_connections=50,
    )


def get_redis(request: Request) -> redis.Redis:
    """Get the Redis client (FastAPI dependency)."""
    client: redis.Redis | None = getattr(request.app.state, "redis", None)
    if client is None:
        msg = "Redis not initialized on app.state"
        raise RuntimeError(msg)
    return client
