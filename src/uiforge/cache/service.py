"""Unified cache facade.

Every operation tries Redis first and falls back to the in-process TTL store
when Redis is unreachable or the command fails. Callers only ever see a
value, None, or a boolean; Redis errors never cross this layer.

Example:
    cache = CacheService.from_settings()

    await cache.cache_component("42", component)
    component = await cache.get_cached_component("42")

    await cache.close()  # during application shutdown
"""

from __future__ import annotations

import logging
import time
from typing import Any, Awaitable, Callable, Literal, TypeVar

from pydantic import BaseModel

from uiforge.cache.codec import Codec, json_codec
from uiforge.cache.keys import CacheKeys, CacheTTL
from uiforge.cache.memory import TTLStore
from uiforge.cache.redis import RedisConfig, RedisConnectionManager, RemoteCache
from uiforge.cache.result import RemoteResult
from uiforge.config import Settings, settings
from uiforge.observability.metrics import (
    record_cache_fallback,
    record_cache_hit,
    record_cache_miss,
    record_cache_operation,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

CacheType = Literal["redis", "memory"]


class CacheStats(BaseModel):
    """Cache statistics for one user."""

    cache_type: CacheType
    is_redis_available: bool
    connection_state: str
    total_keys: int
    user_keys: int
    memory_info: str


class CacheService:
    """Two-tier cache: Redis with an in-process TTL store as backstop.

    ``remote`` may be None for contexts without access to Redis (CLI
    helpers, tests); every operation then goes straight to the store.
    """

    def __init__(
        self,
        store: TTLStore | None = None,
        remote: RemoteCache | None = None,
        codec: Codec[Any] = json_codec,
        default_ttl: int = CacheTTL.DEFAULT,
    ):
        self.store = store or TTLStore(default_ttl=default_ttl)
        self.remote = remote
        self.codec = codec
        self.default_ttl = default_ttl

    @classmethod
    def from_settings(cls, source: Settings | None = None) -> CacheService:
        """Build the service with a Redis manager configured from settings."""
        source = source or settings
        manager = RedisConnectionManager(RedisConfig.from_settings(source))
        return cls(
            store=TTLStore(default_ttl=source.cache_default_ttl),
            remote=RemoteCache(manager),
            default_ttl=source.cache_default_ttl,
        )

    @property
    def manager(self) -> RedisConnectionManager | None:
        return self.remote.manager if self.remote is not None else None

    def is_redis_available(self) -> bool:
        return self.manager is not None and self.manager.is_available()

    async def close(self) -> None:
        """Close the Redis connection. Call once during application shutdown."""
        if self.manager is not None:
            await self.manager.disconnect()

    # -------------------------------------------------------------------------
    # Fallback policy
    # -------------------------------------------------------------------------

    async def _with_fallback(
        self,
        operation: str,
        remote_call: Callable[[RemoteCache], Awaitable[RemoteResult[T]]],
        fallback: Callable[[], T],
    ) -> tuple[T, CacheType]:
        start = time.perf_counter()

        if self.remote is not None:
            result = await remote_call(self.remote)
            if result.ok:
                record_cache_operation(operation, time.perf_counter() - start, "redis")
                return result.value, "redis"  # type: ignore[return-value]

            record_cache_fallback(operation)
            if result.transport_error:
                logger.warning(f"Redis {operation} error, using fallback: {result.error}")
            elif self.manager is not None and self.manager.configured:
                logger.debug(f"Redis not available for {operation}, using fallback")
            start = time.perf_counter()

        # The in-process tier is the backstop; its errors are defects and propagate
        value = fallback()
        record_cache_operation(operation, time.perf_counter() - start, "memory")
        return value, "memory"

    # -------------------------------------------------------------------------
    # Primitives
    # -------------------------------------------------------------------------

    async def get(self, key: str, codec: Codec[Any] | None = None) -> Any | None:
        """Return the cached value for ``key`` or None."""
        codec = codec or self.codec
        value, tier = await self._with_fallback(
            "get",
            lambda remote: remote.get(key, codec),
            lambda: self.store.get(key),
        )
        if value is None:
            record_cache_miss(tier)
            logger.debug(f"Cache miss: {key} ({tier})")
        else:
            record_cache_hit(tier)
            logger.debug(f"Cache hit: {key} ({tier})")
        return value

    async def set(
        self,
        key: str,
        value: Any,
        ttl: int | None = None,
        codec: Codec[Any] | None = None,
    ) -> bool:
        """Store ``value`` under ``key`` for ``ttl`` seconds."""
        codec = codec or self.codec
        ttl_seconds = self.default_ttl if ttl is None else ttl
        result, _ = await self._with_fallback(
            "set",
            lambda remote: remote.set(key, value, ttl_seconds, codec),
            lambda: self.store.set(key, value, ttl_seconds),
        )
        return result

    async def delete(self, key: str) -> bool:
        """Delete ``key``. Absent keys are not an error."""
        result, _ = await self._with_fallback(
            "delete",
            lambda remote: remote.delete(key),
            lambda: self.store.delete(key),
        )
        return result

    async def exists(self, key: str) -> bool:
        result, _ = await self._with_fallback(
            "exists",
            lambda remote: remote.exists(key),
            lambda: self.store.exists(key),
        )
        return result

    async def invalidate(self, *keys: str) -> bool:
        """Delete keys from both tiers.

        Unlike ``delete``, the in-process copy is removed even when Redis
        served the call, so a later fallback read cannot return it.
        """
        if not keys:
            return True
        result, tier = await self._with_fallback(
            "invalidate",
            lambda remote: remote.delete(*keys),
            lambda: all([self.store.delete(key) for key in keys]),
        )
        if tier == "redis":
            for key in keys:
                self.store.delete(key)
        return result

    async def sweep_remote(self, pattern: str) -> RemoteResult[int]:
        """Delete Redis keys matching ``pattern``.

        Only the Redis tier is swept; the result reports whether it ran.
        """
        if self.remote is None:
            return RemoteResult.unavailable()
        return await self.remote.delete_pattern(pattern)

    async def get_or_set(
        self,
        key: str,
        loader: Callable[[], Awaitable[T | None]],
        ttl: int | None = None,
        codec: Codec[Any] | None = None,
    ) -> T | None:
        """Cache-aside read: return the cached value or load, store and return it.

        ``None`` results from the loader are not cached.
        """
        cached = await self.get(key, codec)
        if cached is not None:
            return cached  # type: ignore[no-any-return]

        value = await loader()
        if value is not None:
            await self.set(key, value, ttl, codec)
        return value

    async def clear(self) -> bool:
        """Clear the in-process tier and every application namespace in Redis."""
        self.store.clear()
        ok = True
        for namespace in CacheKeys.NAMESPACES:
            result = await self.sweep_remote(CacheKeys.namespace_pattern(namespace))
            if not result.ok and not result.is_unavailable:
                logger.error(f"Failed to clear Redis namespace {namespace}: {result.error}")
                ok = False
        return ok

    # -------------------------------------------------------------------------
    # Domain helpers
    # -------------------------------------------------------------------------

    async def cache_session(self, user_id: str | int, data: Any) -> bool:
        """Cache the signed-in user's session snapshot (30 minutes)."""
        return await self.set(CacheKeys.session(user_id), data, CacheTTL.SESSION)

    async def get_cached_session(self, user_id: str | int) -> Any | None:
        return await self.get(CacheKeys.session(user_id))

    async def cache_user_sessions(self, user_id: str | int, sessions: list[Any]) -> bool:
        """Cache the list of a user's work sessions (10 minutes)."""
        return await self.set(CacheKeys.user_sessions(user_id), sessions, CacheTTL.USER_SESSIONS)

    async def get_cached_user_sessions(self, user_id: str | int) -> list[Any] | None:
        return await self.get(CacheKeys.user_sessions(user_id))

    async def cache_component(self, component_id: str | int, data: Any) -> bool:
        """Cache a generated component with its version history (1 hour)."""
        return await self.set(CacheKeys.component(component_id), data, CacheTTL.COMPONENT)

    async def get_cached_component(self, component_id: str | int) -> Any | None:
        return await self.get(CacheKeys.component(component_id))

    async def cache_user(self, email: str, data: Any) -> bool:
        """Cache an authentication record snapshot (1 hour)."""
        return await self.set(CacheKeys.user(email), data, CacheTTL.USER)

    async def get_cached_user(self, email: str) -> Any | None:
        return await self.get(CacheKeys.user(email))

    async def cache_work_session(self, session_id: str | int, data: Any) -> bool:
        """Cache a work session aggregate by its own id (1 hour)."""
        return await self.set(CacheKeys.work_session(session_id), data, CacheTTL.WORK_SESSION)

    async def get_cached_work_session(self, session_id: str | int) -> Any | None:
        return await self.get(CacheKeys.work_session(session_id))

    async def cache_chat_history(
        self, user_id: str | int, session_id: str | int, messages: list[Any]
    ) -> bool:
        return await self.set(
            CacheKeys.chat_history(user_id, session_id), messages, CacheTTL.CHAT_HISTORY
        )

    async def get_cached_chat_history(
        self, user_id: str | int, session_id: str | int
    ) -> list[Any] | None:
        return await self.get(CacheKeys.chat_history(user_id, session_id))

    # -------------------------------------------------------------------------
    # Stats
    # -------------------------------------------------------------------------

    async def stats(self, user_id: str | int | None = None) -> CacheStats:
        """Report which tier is serving and how many keys it holds."""
        pattern = CacheKeys.user_pattern(user_id) if user_id is not None else None

        if self.remote is not None:
            result = await self.remote.stats(pattern)
            if result.ok and result.value is not None:
                return CacheStats(
                    cache_type="redis",
                    is_redis_available=True,
                    connection_state=self.remote.manager.state.value,
                    total_keys=result.value["total_keys"],
                    user_keys=result.value["user_keys"],
                    memory_info=result.value["memory_info"],
                )
            if not result.is_unavailable:
                logger.error(f"Redis stats error: {result.error}")

        return CacheStats(
            cache_type="memory",
            is_redis_available=False,
            connection_state=self.manager.state.value if self.manager is not None else "disabled",
            total_keys=len(self.store),
            user_keys=len(self.store.keys(pattern)) if pattern is not None else 0,
            memory_info="In-memory cache active",
        )
