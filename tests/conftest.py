"""Pytest configuration and fixtures shared across all test modules.

Environment variables are set before any ``worknow`` import so the global
settings object is built with test values. Redis is replaced by
``FakeRedis``, an in-memory double of the async command subset the app uses.
"""

import fnmatch
import math
import os
from typing import Any

os.environ["APP_ENV"] = "testing"
os.environ.pop("LLM_API_KEY", None)
os.environ.setdefault("APP_API_KEY_REQUIRED", "true")
os.environ.setdefault("APP_API_KEYS", "test-api-key-123,test-api-key-456")
os.environ.setdefault("LOG_LEVEL", "WARNING")

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import ResponseError

from worknow.core.app_factory import create_app
from worknow.core.config import settings
from worknow.core.dependencies import CacheServices, build_cache_services

TEST_API_KEY = "test-api-key-123"


class FakeRedis:
    """In-memory stand-in for ``redis.asyncio.Redis`` with decode_responses=True.

    Expiry uses a manual clock: call ``advance(seconds)`` to move time.
    """

    def __init__(self) -> None:
        self.data: dict[str, Any] = {}
        self.expiry: dict[str, float] = {}
        self.now = 0.0
        self.published: list[tuple[str, str]] = []
        self.closed = False

    def advance(self, seconds: float) -> None:
        self.now += seconds
        self._purge()

    def _purge(self) -> None:
        for key, expires_at in list(self.expiry.items()):
            if expires_at <= self.now:
                self.data.pop(key, None)
                self.expiry.pop(key, None)

    async def get(self, key: str) -> str | None:
        self._purge()
        return self.data.get(key)

    async def setex(self, key: str, ttl: int, value: str) -> bool:
        self.data[key] = value
        self.expiry[key] = self.now + ttl
        return True

    async def delete(self, *keys: str) -> int:
        deleted = 0
        for key in keys:
            if key in self.data:
                deleted += 1
            self.data.pop(key, None)
            self.expiry.pop(key, None)
        return deleted

    async def incr(self, key: str) -> int:
        self._purge()
        value = int(self.data.get(key, "0")) + 1
        self.data[key] = str(value)
        return value

    async def expire(self, key: str, ttl: int) -> bool:
        if key not in self.data:
            return False
        self.expiry[key] = self.now + ttl
        return True

    async def ttl(self, key: str) -> int:
        self._purge()
        if key not in self.data:
            return -2
        if key not in self.expiry:
            return -1
        return int(math.ceil(self.expiry[key] - self.now))

    async def rename(self, src: str, dst: str) -> bool:
        self._purge()
        if src not in self.data:
            raise ResponseError("no such key")
        self.data[dst] = self.data.pop(src)
        self.expiry.pop(dst, None)
        if src in self.expiry:
            self.expiry[dst] = self.expiry.pop(src)
        return True

    async def sadd(self, key: str, *members: str) -> int:
        members_set = self.data.setdefault(key, set())
        before = len(members_set)
        members_set.update(members)
        return len(members_set) - before

    async def smembers(self, key: str) -> set[str]:
        self._purge()
        return set(self.data.get(key, set()))

    async def lpush(self, key: str, *values: str) -> int:
        items = self.data.setdefault(key, [])
        for value in values:
            items.insert(0, value)
        return len(items)

    @staticmethod
    def _slice(items: list, start: int, stop: int) -> list:
        return items[start:] if stop == -1 else items[start:stop + 1]

    async def ltrim(self, key: str, start: int, stop: int) -> bool:
        if key in self.data:
            self.data[key] = self._slice(self.data[key], start, stop)
        return True

    async def lrange(self, key: str, start: int, stop: int) -> list[str]:
        self._purge()
        return self._slice(self.data.get(key, []), start, stop)

    async def publish(self, channel: str, message: str) -> int:
        self.published.append((channel, message))
        return 0

    async def ping(self) -> bool:
        return True

    async def info(self, section: str | None = None) -> dict[str, Any]:
        return {"used_memory": 1024, "used_memory_human": "1.00K"}

    async def flushdb(self) -> bool:
        self.data.clear()
        self.expiry.clear()
        return True

    async def scan_iter(self, match: str = "*", count: int | None = None):
        self._purge()
        for key in list(self.data):
            if fnmatch.fnmatchcase(key, match):
                yield key

    async def aclose(self) -> None:
        self.closed = True


class BrokenRedis:
    """Every command fails as if the Redis server were unreachable."""

    def __getattr__(self, name: str):
        async def _fail(*args: Any, **kwargs: Any) -> Any:
            raise RedisConnectionError("Error 111 connecting to localhost:6379. Connection refused.")

        return _fail

    async def scan_iter(self, *args: Any, **kwargs: Any):
        raise RedisConnectionError("Error 111 connecting to localhost:6379. Connection refused.")
        yield  # pragma: no cover


@pytest.fixture
def fake_redis() -> FakeRedis:
    return FakeRedis()


@pytest.fixture
def broken_redis() -> BrokenRedis:
    return BrokenRedis()


@pytest.fixture
def services(fake_redis: FakeRedis) -> CacheServices:
    return build_cache_services(settings, client=fake_redis)


@pytest.fixture
def app(services: CacheServices) -> FastAPI:
    return create_app(services)


@pytest.fixture
def client(app: FastAPI) -> TestClient:
    return TestClient(app)


@pytest.fixture
def broken_app(broken_redis: BrokenRedis) -> FastAPI:
    return create_app(build_cache_services(settings, client=broken_redis))


@pytest.fixture
def auth_headers() -> dict[str, str]:
    return {"X-API-Key": TEST_API_KEY}
