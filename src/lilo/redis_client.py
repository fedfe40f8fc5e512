"""Redis client used for request rate limiting.

Redis is optional at runtime: until `init_redis` runs, `get_redis`
raises RuntimeError and callers fall back to running without it.
"""

import redis.asyncio as redis
from redis.exceptions import RedisError

_client: redis.Redis | None = None


async def init_redis(url: str, max_connections: int = 20) -> None:
    """Create the shared client (connections open lazily on first command)."""
    global _client  # noqa: PLW0603
    _client = redis.from_url(  # type: ignore[no-untyped-call]
        url,
        encoding="utf-8",
        decode_responses=True,
        max_connections=max_connections,
    )


async def close_redis() -> None:
    global _client  # noqa: PLW0603
    if _client is not None:
        await _client.aclose()
        _client = None


def get_redis() -> redis.Redis:
    """Get the shared client. Raises RuntimeError before `init_redis`."""
    if _client is None:
        msg = "Redis not initialized. Call init_redis() first."
        raise RuntimeError(msg)
    return _client


async def ping_redis() -> bool:
    """True if Redis answers PING."""
    try:
        return bool(await get_redis().ping())
    except (RuntimeError, RedisError, OSError):
        return False
