"""Tests for fixed-window rate limiting and its counter stores."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from contact_api.errors import RateLimitError
from contact_api.ratelimit.limiter import (
    CONTACT_LIMIT_MESSAGE,
    RateLimiter,
    build_limiter,
)
from contact_api.ratelimit.stores import (
    CounterStoreUnavailable,
    InMemoryCounterStore,
    RedisCounterStore,
)


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def limiter(clock):
    store = InMemoryCounterStore(window_seconds=900, timer=clock)
    return RateLimiter("contact", store, limit=5, message=CONTACT_LIMIT_MESSAGE)


class TestInMemoryCounterStore:
    """Test process-local counters."""

    @pytest.mark.asyncio
    async def test_counts_hits_per_key(self, clock):
        store = InMemoryCounterStore(window_seconds=60, timer=clock)
        assert (await store.increment("a")).hits == 1
        assert (await store.increment("a")).hits == 2
        assert (await store.increment("b")).hits == 1

    @pytest.mark.asyncio
    async def test_window_does_not_slide_on_hits(self, clock):
        store = InMemoryCounterStore(window_seconds=60, timer=clock)
        await store.increment("a")
        clock.advance(40)
        count = await store.increment("a")
        assert count.hits == 2
        assert count.reset_after == pytest.approx(20)

    @pytest.mark.asyncio
    async def test_window_resets_after_expiry(self, clock):
        store = InMemoryCounterStore(window_seconds=60, timer=clock)
        await store.increment("a")
        await store.increment("a")
        clock.advance(61)
        count = await store.increment("a")
        assert count.hits == 1
        assert count.reset_after == pytest.approx(60)


class TestRateLimiter:
    """Test allow/deny decisions."""

    @pytest.mark.asyncio
    async def test_allows_up_to_limit(self, limiter):
        decisions = [await limiter.hit("10.0.0.1") for _ in range(5)]
        assert all(d.allowed for d in decisions)
        assert [d.remaining for d in decisions] == [4, 3, 2, 1, 0]

    @pytest.mark.asyncio
    async def test_denies_over_limit(self, limiter):
        for _ in range(5):
            await limiter.hit("10.0.0.1")
        decision = await limiter.hit("10.0.0.1")
        assert not decision.allowed
        assert decision.remaining == 0

    @pytest.mark.asyncio
    async def test_clients_are_independent(self, limiter):
        for _ in range(6):
            await limiter.hit("10.0.0.1")
        assert (await limiter.hit("10.0.0.2")).allowed

    @pytest.mark.asyncio
    async def test_allows_again_after_window(self, limiter, clock):
        for _ in range(6):
            await limiter.hit("10.0.0.1")
        clock.advance(901)
        assert (await limiter.hit("10.0.0.1")).allowed

    @pytest.mark.asyncio
    async def test_decision_headers(self, limiter):
        decision = await limiter.hit("10.0.0.1")
        assert decision.headers() == {
            "RateLimit-Limit": "5",
            "RateLimit-Remaining": "4",
            "RateLimit-Reset": "900",
        }

    def test_rate_limit_error_payload(self):
        error = RateLimitError(CONTACT_LIMIT_MESSAGE, limit=5, reset_after=12.2)
        assert error.status_code == 429
        assert error.payload() == {"success": False, "error": CONTACT_LIMIT_MESSAGE}
        assert error.headers()["Retry-After"] == "13"


class TestRedisCounterStore:
    """Test Redis-backed counters with a mock client."""

    def _redis(self, results):
        pipe = MagicMock()
        pipe.execute = AsyncMock(return_value=results)
        client = MagicMock()
        client.pipeline = MagicMock(return_value=pipe)
        return client, pipe

    @pytest.mark.asyncio
    async def test_increment_uses_one_transaction(self):
        client, pipe = self._redis([True, 1, 900_000])
        store = RedisCounterStore(client, window_seconds=900)

        count = await store.increment("contact:10.0.0.1")

        client.pipeline.assert_called_once_with(transaction=True)
        pipe.set.assert_called_once_with("ratelimit:contact:10.0.0.1", 0, ex=900, nx=True)
        pipe.incr.assert_called_once_with("ratelimit:contact:10.0.0.1")
        assert count.hits == 1
        assert count.reset_after == pytest.approx(900)

    @pytest.mark.asyncio
    async def test_missing_ttl_falls_back_to_window(self):
        client, _ = self._redis([None, 3, -1])
        store = RedisCounterStore(client, window_seconds=60)
        count = await store.increment("k")
        assert count.hits == 3
        assert count.reset_after == 60

    @pytest.mark.asyncio
    async def test_redis_error_raises_unavailable(self):
        client, pipe = self._redis([])
        pipe.execute = AsyncMock(side_effect=RedisConnectionError("Connection refused"))
        store = RedisCounterStore(client, window_seconds=60)

        with pytest.raises(CounterStoreUnavailable):
            await store.increment("k")

    @pytest.mark.asyncio
    async def test_limiter_allows_when_redis_is_down(self):
        client, pipe = self._redis([])
        pipe.execute = AsyncMock(side_effect=RedisConnectionError("Connection refused"))
        limiter = RateLimiter("api", RedisCounterStore(client, window_seconds=900), 100, "Too many requests.")

        decision = await limiter.hit("10.0.0.1")

        assert decision.allowed
        assert decision.remaining == 100
        assert decision.reset_after == 900


class TestBuildLimiter:
    def test_in_memory_without_redis(self):
        limiter = build_limiter("api", 15, 100, "Too many requests.")
        assert isinstance(limiter.store, InMemoryCounterStore)
        assert limiter.store.window_seconds == 900
        assert limiter.limit == 100

    def test_redis_when_client_given(self):
        limiter = build_limiter("api", 15, 100, "Too many requests.", redis_client=MagicMock())
        assert isinstance(limiter.store, RedisCounterStore)
