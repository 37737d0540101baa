"""
Rate Limiting Module

Sliding-window rate limiting for public endpoints, backed by Redis sorted
sets. Falls back to an in-process store when Redis is unavailable, which
only limits per worker.
"""

import logging
import time
import uuid

from fastapi import HTTPException, Request, status

from app.core.redis import get_redis

logger = logging.getLogger(__name__)

# {key: (window_seconds, [timestamp, ...])}
_memory_store: dict[str, tuple[int, list[float]]] = {}

# Store size at which expired keys are swept
MEMORY_SWEEP_THRESHOLD = 1024


class RateLimitExceeded(HTTPException):
    """Raised when a client exceeds its request budget."""

    def __init__(self, limit: int, window_seconds: int):
        super().__init__(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail=f"Rate limit exceeded. Maximum {limit} requests per {window_seconds} seconds.",
            headers={"Retry-After": str(window_seconds)},
        )


async def _check_rate_limit_redis(client, key: str, limit: int, window_seconds: int) -> bool:
    now = time.time()
    window_start = now - window_seconds

    pipe = client.pipeline()
    pipe.zremrangebyscore(key, 0, window_start)
    pipe.zcard(key)
    # Member must be unique per request or concurrent hits collapse into one
    pipe.zadd(key, {f"{now}:{uuid.uuid4().hex}": now})
    pipe.expire(key, window_seconds)
    results = await pipe.execute()

    return results[1] < limit


def _sweep_memory_store(now: float) -> None:
    """Drop keys whose newest hit has left its window."""
    stale = [
        key
        for key, (window_seconds, hits) in _memory_store.items()
        if not hits or hits[-1] <= now - window_seconds
    ]
    for key in stale:
        del _memory_store[key]


def _check_rate_limit_memory(key: str, limit: int, window_seconds: int) -> bool:
    now = time.time()
    if len(_memory_store) >= MEMORY_SWEEP_THRESHOLD:
        _sweep_memory_store(now)

    window_start = now - window_seconds
    _, previous = _memory_store.get(key, (window_seconds, []))
    hits = [ts for ts in previous if ts > window_start]
    if len(hits) >= limit:
        if hits:
            _memory_store[key] = (window_seconds, hits)
        else:
            _memory_store.pop(key, None)
        return False

    hits.append(now)
    _memory_store[key] = (window_seconds, hits)
    return True


async def check_rate_limit(key: str, limit: int, window_seconds: int) -> bool:
    """
    Check whether a request identified by ``key`` is within its limit.

    Args:
        key: Unique key for the limited action (e.g. "applications:submit:1.2.3.4")
        limit: Maximum requests allowed in the window
        window_seconds: Window length in seconds

    Returns:
        True if the request is allowed, False if the limit is exceeded
    """
    client = get_redis()
    if client is not None:
        try:
            return await _check_rate_limit_redis(client, key, limit, window_seconds)
        except Exception as e:
            logger.warning(f"Redis rate limit check failed, using memory: {e}")

    return _check_rate_limit_memory(key, limit, window_seconds)


def client_key(request: Request, action: str) -> str:
    """Build a rate limit key from the client IP and an action name."""
    client_ip = request.client.host if request.client else "unknown"
    return f"rate_limit:{action}:{client_ip}"


async def enforce_rate_limit(
    request: Request, action: str, limit: int, window_seconds: int
) -> None:
    """
    Raise RateLimitExceeded when the caller is over budget for ``action``.

    Raises:
        RateLimitExceeded: HTTP 429 with a Retry-After header
    """
    key = client_key(request, action)
    if not await check_rate_limit(key, limit, window_seconds):
        logger.warning(f"Rate limit exceeded for {key}: {limit}/{window_seconds}s")
        raise RateLimitExceeded(limit, window_seconds)


__all__ = [
    "RateLimitExceeded",
    "check_rate_limit",
    "client_key",
    "enforce_rate_limit",
]
