"""Counter storage backends for fixed-window rate limiting."""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Callable, Protocol

import redis.asyncio as redis
from cachetools import TTLCache
from redis.exceptions import RedisError


class CounterStoreUnavailable(Exception):
    """The counter backend could not be reached."""


@dataclass(frozen=True)
class WindowCount:
    """Hits recorded for a key in its current window."""

    hits: int
    reset_after: float  # seconds until the window closes


class CounterStore(Protocol):
    """Protocol for rate-limit counter backends."""

    window_seconds: float

    async def increment(self, key: str) -> WindowCount:
        """Count one hit for ``key`` and return the window total."""
        ...

    async def close(self) -> None:
        ...


class InMemoryCounterStore:
    """Process-local counters held in a TTL cache.

    Each key's window opens on its first hit and lasts ``window_seconds``.
    Counters are not shared between processes.
    """

    def __init__(
        self,
        window_seconds: float,
        maxsize: int = 10_000,
        timer: Callable[[], float] = time.monotonic,
    ):
        self.window_seconds = window_seconds
        self._timer = timer
        # Entries are mutated in place so the expiry set on insert is kept
        self._counters: TTLCache[str, list[float]] = TTLCache(
            maxsize=maxsize, ttl=window_seconds, timer=timer
        )

    async def increment(self, key: str) -> WindowCount:
        now = self._timer()
        entry = self._counters.get(key)
        if entry is None:
            entry = [0, now + self.window_seconds]
            self._counters[key] = entry
        entry[0] += 1
        return WindowCount(hits=int(entry[0]), reset_after=max(entry[1] - now, 0.0))

    async def close(self) -> None:
        self._counters.clear()


class RedisCounterStore:
    """Counters shared through Redis, for deployments with several instances."""

    def __init__(
        self,
        redis_client: redis.Redis,
        window_seconds: float,
        prefix: str = "ratelimit:",
    ):
        self.redis = redis_client
        self.window_seconds = window_seconds
        self.prefix = prefix

    def _key(self, key: str) -> str:
        return f"{self.prefix}{key}"

    async def increment(self, key: str) -> WindowCount:
        redis_key = self._key(key)
        # SET NX opens the window with its expiry; INCR keeps the TTL
        pipe = self.redis.pipeline(transaction=True)
        pipe.set(redis_key, 0, ex=int(self.window_seconds), nx=True)
        pipe.incr(redis_key)
        pipe.pttl(redis_key)
        try:
            _, hits, ttl_ms = await pipe.execute()
        except RedisError as e:
            raise CounterStoreUnavailable(str(e)) from e

        if ttl_ms is None or ttl_ms < 0:
            reset_after = self.window_seconds
        else:
            reset_after = ttl_ms / 1000
        return WindowCount(hits=int(hits), reset_after=reset_after)

    async def close(self) -> None:
        # The Redis client is owned by the application lifespan
        return None
