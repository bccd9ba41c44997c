"""
Optional per-account throttle for provider calls.

Uses Redis when PROVIDER_RATE_LIMIT_PER_ACCOUNT_PER_MINUTE is set.
If not set or Redis unavailable, no limit is applied.
"""

from __future__ import annotations

import logging
from typing import Optional

import redis

logger = logging.getLogger(__name__)

RATE_LIMIT_WINDOW_SECONDS = 60


def get_redis_client(host: str, port: int) -> Optional[redis.Redis]:
    try:
        return redis.Redis(host=host, port=port, socket_timeout=1)
    except redis.RedisError as e:
        logger.warning("Redis unavailable, provider rate limit disabled: %s", e)
        return None


def check_provider_rate_limit(
    account_id: str,
    redis_client: Optional[redis.Redis],
    limit_per_minute: Optional[int],
) -> bool:
    """
    Check if calls for ``account_id`` are within the per-minute budget.
    Returns True if allowed, False if rate limited.
    If redis_client or limit_per_minute is None, always returns True.
    """
    if redis_client is None or limit_per_minute is None or limit_per_minute <= 0:
        return True
    key = f"inbox_sync:ratelimit:provider:{account_id}"
    try:
        pipe = redis_client.pipeline()
        pipe.incr(key)
        pipe.ttl(key)
        count, ttl = pipe.execute()
        if ttl < 0:
            # Only the call that opens the window sets its expiry
            redis_client.expire(key, RATE_LIMIT_WINDOW_SECONDS)
        return count <= limit_per_minute
    except redis.RedisError as e:
        logger.warning("Rate limit check failed, allowing request: %s", e)
        return True
