"""Unit tests for the Redis fixed-window rate limiter."""

import pytest

from worknow.adapters.rate_limit.redis_fixed_window import RedisFixedWindowRateLimiter


@pytest.mark.asyncio
async def test_nth_request_reports_remaining(fake_redis) -> None:
    limiter = RedisFixedWindowRateLimiter(fake_redis, limit=5, window_seconds=60)

    for n in range(1, 6):
        result = await limiter.consume("k")
        assert result.allowed is True
        assert result.remaining == 5 - n
        assert result.limit == 5


@pytest.mark.asyncio
async def test_request_over_limit_is_blocked(fake_redis) -> None:
    limiter = RedisFixedWindowRateLimiter(fake_redis)
    results = [await limiter.consume("ip:1.2.3.4") for _ in range(101)]

    assert all(r.allowed for r in results[:100])
    assert results[100].allowed is False
    assert results[100].remaining == 0
    assert results[100].reset_seconds == 3600


@pytest.mark.asyncio
async def test_counter_key_and_expiry(fake_redis) -> None:
    limiter = RedisFixedWindowRateLimiter(fake_redis, limit=3, window_seconds=60)

    await limiter.consume("ip:1.2.3.4")

    assert fake_redis.data["rate_limit:ip:1.2.3.4"] == "1"
    assert await fake_redis.ttl("rate_limit:ip:1.2.3.4") == 60


@pytest.mark.asyncio
async def test_resets_on_new_window(fake_redis) -> None:
    limiter = RedisFixedWindowRateLimiter(fake_redis, limit=1, window_seconds=10)

    assert (await limiter.consume("k")).allowed is True
    blocked = await limiter.consume("k")
    assert blocked.allowed is False

    fake_redis.advance(10)
    assert (await limiter.consume("k")).allowed is True


@pytest.mark.asyncio
async def test_isolated_by_identifier(fake_redis) -> None:
    limiter = RedisFixedWindowRateLimiter(fake_redis, limit=1, window_seconds=60)

    assert (await limiter.consume("k1")).allowed is True
    assert (await limiter.consume("k1")).allowed is False
    assert (await limiter.consume("k2")).allowed is True


@pytest.mark.asyncio
async def test_per_call_overrides(fake_redis) -> None:
    limiter = RedisFixedWindowRateLimiter(fake_redis, limit=100, window_seconds=3600)

    first = await limiter.consume("k", limit=1, window_seconds=30)
    second = await limiter.consume("k", limit=1, window_seconds=30)

    assert first.allowed is True
    assert first.reset_seconds == 30
    assert second.allowed is False


@pytest.mark.asyncio
async def test_counter_without_expiry_is_healed(fake_redis) -> None:
    # Counter left behind by a request that died between INCR and EXPIRE
    fake_redis.data["rate_limit:k"] = "7"
    limiter = RedisFixedWindowRateLimiter(fake_redis, limit=100, window_seconds=60)

    result = await limiter.consume("k")

    assert result.remaining == 92
    assert result.reset_seconds == 60
    assert await fake_redis.ttl("rate_limit:k") == 60


@pytest.mark.asyncio
async def test_fails_open_when_store_unavailable(broken_redis) -> None:
    limiter = RedisFixedWindowRateLimiter(broken_redis, limit=100, window_seconds=3600)

    result = await limiter.consume("ip:1.2.3.4")

    assert result.allowed is True
    assert result.remaining == 100
    assert result.reset_seconds == 3600
    assert result.limit == 100


@pytest.mark.parametrize(
    "kwargs",
    [
        {"limit": 0, "window_seconds": 60},
        {"limit": 1, "window_seconds": 0},
    ],
)
def test_invalid_constructor_args(fake_redis, kwargs: dict) -> None:
    with pytest.raises(ValueError):
        RedisFixedWindowRateLimiter(fake_redis, **kwargs)


@pytest.mark.asyncio
async def test_empty_identifier_rejected(fake_redis) -> None:
    limiter = RedisFixedWindowRateLimiter(fake_redis)

    with pytest.raises(ValueError):
        await limiter.consume("")


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "overrides",
    [
        {"limit": 0},
        {"window_seconds": 0},
    ],
)
async def test_explicit_zero_override_is_rejected(fake_redis, overrides: dict) -> None:
    limiter = RedisFixedWindowRateLimiter(fake_redis)

    with pytest.raises(ValueError):
        await limiter.consume("k", **overrides)

    assert "rate_limit:k" not in fake_redis.data
