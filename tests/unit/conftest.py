"""Fixtures shared by unit tests: an in-memory Redis double, a manual clock, cache services."""

from __future__ import annotations

import asyncio
import fnmatch
from typing import Any, AsyncIterator

import pytest

from uiforge.cache import (
    CacheService,
    RedisConfig,
    RedisConnectionManager,
    RemoteCache,
    TTLStore,
)


class FakeRedis:
    """Subset of the redis-py async client backed by a dict.

    ``fail_with`` makes every command raise; ``ping_delay`` stalls the
    connect probe; ``close_error`` makes ``aclose`` raise.
    """

    def __init__(self) -> None:
        self.data: dict[str, bytes] = {}
        self.ttls: dict[str, int] = {}
        self.fail_with: BaseException | None = None
        self.ping_delay: float = 0.0
        self.close_error: BaseException | None = None
        self.closed = False
        self.commands: list[str] = []

    def _command(self, name: str) -> None:
        self.commands.append(name)
        if self.fail_with is not None:
            raise self.fail_with

    async def ping(self) -> bool:
        if self.ping_delay:
            await asyncio.sleep(self.ping_delay)
        self._command("PING")
        return True

    async def get(self, key: str) -> bytes | None:
        self._command("GET")
        return self.data.get(key)

    async def setex(self, key: str, ttl: int, value: bytes) -> bool:
        self._command("SETEX")
        self.data[key] = value
        self.ttls[key] = ttl
        return True

    async def delete(self, *keys: Any) -> int:
        self._command("DEL")
        deleted = 0
        for key in keys:
            key = key.decode() if isinstance(key, bytes) else key
            if self.data.pop(key, None) is not None:
                deleted += 1
            self.ttls.pop(key, None)
        return deleted

    async def exists(self, key: str) -> int:
        self._command("EXISTS")
        return int(key in self.data)

    async def scan_iter(self, match: str = "*", count: int | None = None) -> AsyncIterator[bytes]:
        self._command("SCAN")
        for key in list(self.data):
            if fnmatch.fnmatchcase(key, match):
                yield key.encode()

    async def dbsize(self) -> int:
        self._command("DBSIZE")
        return len(self.data)

    async def info(self, section: str | None = None) -> dict[str, Any]:
        self._command("INFO")
        return {"used_memory_human": "1.05M"}

    async def aclose(self) -> None:
        self.closed = True
        if self.close_error is not None:
            raise self.close_error


class FakeRedisFactory:
    """Client factory that hands out one FakeRedis and records each call."""

    def __init__(self, client: FakeRedis) -> None:
        self.client = client
        self.calls: list[tuple[str, dict[str, Any]]] = []

    def __call__(self, url: str, **options: Any) -> FakeRedis:
        self.calls.append((url, options))
        return self.client


@pytest.fixture
def fake_redis() -> FakeRedis:
    return FakeRedis()


@pytest.fixture
def redis_factory(fake_redis: FakeRedis) -> FakeRedisFactory:
    return FakeRedisFactory(fake_redis)


@pytest.fixture
def redis_config() -> RedisConfig:
    return RedisConfig(url="redis://localhost:6379/0", connect_timeout=0.2)


@pytest.fixture
def manager(redis_config: RedisConfig, redis_factory: FakeRedisFactory) -> RedisConnectionManager:
    return RedisConnectionManager(redis_config, client_factory=redis_factory)


class FakeClock:
    """Monotonic clock advanced by hand."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store(clock: FakeClock) -> TTLStore:
    return TTLStore(clock=clock)


@pytest.fixture
def cache(store: TTLStore, manager: RedisConnectionManager) -> CacheService:
    """Service with both tiers; Redis is the fake."""
    return CacheService(store=store, remote=RemoteCache(manager))


@pytest.fixture
def memory_cache(store: TTLStore) -> CacheService:
    """Service without a remote tier."""
    return CacheService(store=store)
