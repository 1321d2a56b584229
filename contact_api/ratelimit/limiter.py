"""Fixed-window rate limiter."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import redis.asyncio as redis
import structlog

from contact_api.ratelimit.stores import (
    CounterStore,
    CounterStoreUnavailable,
    InMemoryCounterStore,
    RedisCounterStore,
)

logger = structlog.get_logger()

CONTACT_LIMIT_MESSAGE = "Too many contact form submissions. Please try again later."
API_LIMIT_MESSAGE = "Too many requests. Please try again later."


@dataclass(frozen=True)
class RateLimitDecision:
    allowed: bool
    limit: int
    remaining: int
    reset_after: float

    def headers(self) -> dict[str, str]:
        """Standard ``RateLimit-*`` response headers."""
        return {
            "RateLimit-Limit": str(self.limit),
            "RateLimit-Remaining": str(self.remaining),
            "RateLimit-Reset": str(max(int(self.reset_after + 0.999), 0)),
        }


class RateLimiter:
    """Counts hits per client key and denies those over ``limit`` per window.

    Every hit counts, whether or not the request later succeeds.
    """

    def __init__(self, name: str, store: CounterStore, limit: int, message: str):
        self.name = name
        self.store = store
        self.limit = limit
        self.message = message

    async def hit(self, client_key: str) -> RateLimitDecision:
        """Charge one hit to ``client_key``.

        If the counter store is unreachable the request is allowed and the
        outage is logged.
        """
        try:
            count = await self.store.increment(f"{self.name}:{client_key}")
        except CounterStoreUnavailable as e:
            logger.error("rate_limit_store_unavailable", limiter=self.name, error=str(e))
            return RateLimitDecision(
                allowed=True,
                limit=self.limit,
                remaining=self.limit,
                reset_after=self.store.window_seconds,
            )
        allowed = count.hits <= self.limit
        decision = RateLimitDecision(
            allowed=allowed,
            limit=self.limit,
            remaining=max(self.limit - count.hits, 0),
            reset_after=count.reset_after,
        )
        if not allowed:
            logger.warning(
                "rate_limit_exceeded",
                limiter=self.name,
                client=client_key,
                hits=count.hits,
                limit=self.limit,
            )
        return decision

    async def close(self) -> None:
        await self.store.close()


def build_limiter(
    name: str,
    window_minutes: int,
    max_requests: int,
    message: str,
    redis_client: Optional[redis.Redis] = None,
) -> RateLimiter:
    """Create a limiter backed by Redis when a client is given, else in-process."""
    window_seconds = window_minutes * 60
    store: CounterStore
    if redis_client is not None:
        store = RedisCounterStore(redis_client, window_seconds)
    else:
        store = InMemoryCounterStore(window_seconds)

    logger.info(
        "rate_limiter_configured",
        limiter=name,
        backend=type(store).__name__,
        window_minutes=window_minutes,
        max_requests=max_requests,
    )
    return RateLimiter(name, store, max_requests, message)
