"""Redis async client for shared rate-limit counters."""

from typing import Optional

import redis.asyncio as redis


def create_redis_client(redis_url: Optional[str]) -> Optional[redis.Redis]:
    """Create a Redis client, or None when no URL is configured."""
    if not redis_url:
        return None
    return redis.from_url(redis_url, decode_responses=True)
