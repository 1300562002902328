"""Redis tier for uiforge.

Provides:
- RedisConnectionManager: lazily-established, coalesced connection with
  connect timeout, capped linear reconnect backoff and availability tracking
- RemoteCache: cache commands that report their outcome as RemoteResult
  instead of raising

Uses the redis-py async client.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Awaitable, Callable, TypeVar
from urllib.parse import urlsplit, urlunsplit

import redis.asyncio as redis
from redis.asyncio.retry import Retry
from redis.backoff import AbstractBackoff
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import TimeoutError as RedisTimeoutError

from uiforge.cache.codec import Codec, json_codec
from uiforge.cache.exceptions import CacheSerializationError
from uiforge.cache.result import RemoteResult
from uiforge.config import Settings, settings
from uiforge.observability.metrics import set_redis_connection_state

if TYPE_CHECKING:
    from redis.asyncio import Redis

logger = logging.getLogger(__name__)

T = TypeVar("T")

ClientFactory = Callable[..., "Redis"]

# Failures of the connection itself; these mark Redis unavailable
TRANSPORT_ERRORS: tuple[type[BaseException], ...] = (
    RedisConnectionError,
    RedisTimeoutError,
    OSError,
)


# -----------------------------------------------------------------------------
# Configuration
# -----------------------------------------------------------------------------


@dataclass
class RedisConfig:
    """Redis connection configuration."""

    url: str | None = None
    connect_timeout: float = 5.0
    max_reconnect_attempts: int = 3
    reconnect_delay_step: float = 0.1
    reconnect_delay_max: float = 3.0
    tls_hosts: tuple[str, ...] = ("upstash.io",)

    @classmethod
    def from_settings(cls, source: Settings | None = None) -> RedisConfig:
        """Create config from application settings."""
        source = source or settings
        return cls(
            url=source.redis_url,
            connect_timeout=source.redis_connect_timeout,
            max_reconnect_attempts=source.redis_max_reconnect_attempts,
            reconnect_delay_step=source.redis_reconnect_delay_step,
            reconnect_delay_max=source.redis_reconnect_delay_max,
            tls_hosts=tuple(source.redis_tls_host_list),
        )

    def requires_tls(self) -> bool:
        """Whether the URL points at a managed endpoint that needs TLS."""
        if not self.url:
            return False
        try:
            host = urlsplit(self.url).hostname or ""
        except ValueError:
            return False
        return any(host == h or host.endswith(f".{h}") for h in self.tls_hosts)

    def connection_url(self) -> str | None:
        """URL to connect with, upgraded to rediss:// for managed endpoints."""
        if not self.url:
            return None
        parts = urlsplit(self.url)
        if parts.scheme == "redis" and self.requires_tls():
            return urlunsplit(parts._replace(scheme="rediss"))
        return self.url


def redact_url(url: str | None) -> str:
    """Hide credentials in a Redis URL for logging."""
    if not url:
        return "<unset>"
    try:
        parts = urlsplit(url)
    except ValueError:
        return "<unparseable>"
    if parts.password is None:
        return url
    netloc = parts.netloc.rsplit("@", 1)[-1]
    user = f"{parts.username}:***@" if parts.username else "***@"
    return urlunsplit(parts._replace(netloc=f"{user}{netloc}"))


class LinearBackoff(AbstractBackoff):
    """Reconnect delay growing linearly with the failure count, capped."""

    def __init__(self, step: float = 0.1, cap: float = 3.0) -> None:
        self._step = step
        self._cap = cap

    def compute(self, failures: int) -> float:
        return min(failures * self._step, self._cap)


def default_client_factory(url: str, **options: Any) -> Redis:
    """Build a redis-py async client. Does not open a socket."""
    return redis.from_url(url, **options)  # type: ignore[no-untyped-call]


# -----------------------------------------------------------------------------
# Connection Manager
# -----------------------------------------------------------------------------


class ConnectionState(str, Enum):
    """Connection state machine."""

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    UNAVAILABLE = "unavailable"


@dataclass
class ConnectionMetrics:
    """Counters for Redis connection lifecycle."""

    connection_attempts: int = 0
    successful_connections: int = 0
    failed_connections: int = 0
    disconnections: int = 0
    current_state: str = ConnectionState.DISCONNECTED.value
    last_error: str | None = field(default=None)

    def to_dict(self) -> dict[str, Any]:
        return {
            "connection_attempts": self.connection_attempts,
            "successful_connections": self.successful_connections,
            "failed_connections": self.failed_connections,
            "disconnections": self.disconnections,
            "state": self.current_state,
            "last_error": self.last_error,
        }


class RedisConnectionManager:
    """Owns the single Redis connection of the process.

    - connect() is idempotent; concurrent callers share one in-flight attempt
    - a failed or timed-out attempt marks Redis unavailable, and later
      connect() calls return None without retrying until reset()
    - without a configured URL the manager is inert and never builds a client
    """

    def __init__(
        self,
        config: RedisConfig,
        client_factory: ClientFactory = default_client_factory,
    ) -> None:
        self.config = config
        self._client_factory = client_factory
        self._client: Redis | None = None
        self._state = ConnectionState.DISCONNECTED
        self._pending: asyncio.Task[Redis | None] | None = None
        self.metrics = ConnectionMetrics()

        if not config.url:
            logger.warning("REDIS_URL not provided, using in-memory cache only")

    @property
    def state(self) -> ConnectionState:
        """Get current connection state."""
        return self._state

    @property
    def configured(self) -> bool:
        return bool(self.config.url)

    def is_available(self) -> bool:
        """True while a connected client handle is held."""
        return self._state == ConnectionState.CONNECTED and self._client is not None

    def _set_state(self, state: ConnectionState) -> None:
        self._state = state
        self.metrics.current_state = state.value
        set_redis_connection_state(state.value)

    def _client_options(self) -> dict[str, Any]:
        return {
            "encoding": "utf-8",
            "decode_responses": False,  # Values are codec-encoded bytes
            "socket_connect_timeout": self.config.connect_timeout,
            "retry": Retry(
                LinearBackoff(self.config.reconnect_delay_step, self.config.reconnect_delay_max),
                self.config.max_reconnect_attempts,
            ),
            "retry_on_error": [RedisConnectionError, RedisTimeoutError],
        }

    async def connect(self) -> Redis | None:
        """Return a connected client, or None when Redis cannot be used."""
        if not self.configured:
            return None

        if self._pending is not None:
            return await asyncio.shield(self._pending)

        if self.is_available():
            return self._client

        if self._state == ConnectionState.UNAVAILABLE:
            return None

        task = asyncio.ensure_future(self._create_connection())
        self._pending = task
        task.add_done_callback(self._clear_pending)
        return await asyncio.shield(task)

    def _clear_pending(self, task: asyncio.Task[Redis | None]) -> None:
        # Runs when the attempt itself finishes, even if every waiter was cancelled
        if self._pending is task:
            self._pending = None

    async def _create_connection(self) -> Redis | None:
        self._set_state(ConnectionState.CONNECTING)
        self.metrics.connection_attempts += 1

        if self._client is not None:
            stale, self._client = self._client, None
            await self._close_client(stale)

        client: Redis | None = None
        url: str | None = None
        try:
            url = self.config.connection_url()
            if url is None:
                raise ValueError("no connection URL")
            client = self._client_factory(url, **self._client_options())
            await asyncio.wait_for(client.ping(), timeout=self.config.connect_timeout)
        except asyncio.TimeoutError:
            self._connection_failed(f"connection timed out after {self.config.connect_timeout}s")
        except Exception as e:
            self._connection_failed(str(e))
        else:
            self._client = client
            self.metrics.successful_connections += 1
            self._set_state(ConnectionState.CONNECTED)
            logger.info(f"Redis connected at {redact_url(url)}")
            return client

        if client is not None:
            await self._close_client(client)
        return None

    def _connection_failed(self, reason: str) -> None:
        self.metrics.failed_connections += 1
        self.metrics.last_error = reason
        self._set_state(ConnectionState.UNAVAILABLE)
        logger.warning(f"Failed to connect to Redis ({reason}), using in-memory cache")

    def mark_unavailable(self, error: BaseException | str) -> None:
        """Record a transport failure; later connect() calls short-circuit."""
        reason = str(error)
        self.metrics.last_error = reason
        if self._state != ConnectionState.UNAVAILABLE:
            logger.warning(f"Redis marked unavailable: {reason}")
        self._set_state(ConnectionState.UNAVAILABLE)

    async def _close_client(self, client: Redis) -> None:
        try:
            await client.aclose()
        except Exception as e:
            logger.warning(f"Error closing Redis connection: {e}")

    async def disconnect(self) -> None:
        """Close the connection; the handle is always cleared afterwards."""
        if self._pending is not None and not self._pending.done():
            self._pending.cancel()
            try:
                await self._pending
            except asyncio.CancelledError:
                pass
        self._pending = None

        client, self._client = self._client, None
        if client is not None:
            await self._close_client(client)
            self.metrics.disconnections += 1
            logger.info("Redis connection closed")

        if self._state != ConnectionState.UNAVAILABLE:
            self._set_state(ConnectionState.DISCONNECTED)

    async def reset(self) -> None:
        """Forget a previous failure so the next connect() tries again."""
        await self.disconnect()
        self._set_state(ConnectionState.DISCONNECTED)
        logger.info("Redis connection state reset")

    async def health_check(self) -> dict[str, Any]:
        """Return connection health status."""
        return {
            "configured": self.configured,
            "available": self.is_available(),
            "state": self._state.value,
            "url": redact_url(self.config.url),
            "tls": self.config.requires_tls(),
            "metrics": self.metrics.to_dict(),
        }


# -----------------------------------------------------------------------------
# Remote cache operations
# -----------------------------------------------------------------------------


class RemoteCache:
    """Cache commands against Redis, reported as RemoteResult.

    Never raises: connection problems, rejected commands and undecodable
    payloads all come back as failed results. Transport failures also mark
    the connection manager unavailable.
    """

    SCAN_COUNT = 100

    def __init__(self, manager: RedisConnectionManager):
        self.manager = manager

    async def _run(
        self, operation: str, command: Callable[[Redis], Awaitable[T]]
    ) -> RemoteResult[T]:
        try:
            client = await self.manager.connect()
        except Exception as e:
            logger.warning(f"Redis connect failed during {operation}: {e}")
            return RemoteResult.failure(f"{type(e).__name__}: {e}")
        if client is None:
            return RemoteResult.unavailable()

        try:
            return RemoteResult.success(await command(client))
        except CacheSerializationError as e:
            logger.warning(f"Redis {operation} returned a value that could not be decoded: {e}")
            return RemoteResult.failure(str(e))
        except TRANSPORT_ERRORS as e:
            self.manager.mark_unavailable(e)
            return RemoteResult.failure(f"{type(e).__name__}: {e}", transport_error=True)
        except Exception as e:
            logger.warning(f"Redis {operation} failed: {e}")
            return RemoteResult.failure(f"{type(e).__name__}: {e}")

    async def get(self, key: str, codec: Codec[Any] = json_codec) -> RemoteResult[Any]:
        async def command(client: Redis) -> Any:
            raw = await client.get(key)
            return None if raw is None else codec.decode(raw)

        return await self._run("GET", command)

    async def set(
        self, key: str, value: Any, ttl: int, codec: Codec[Any] = json_codec
    ) -> RemoteResult[bool]:
        try:
            payload = codec.encode(value)
        except CacheSerializationError as e:
            logger.warning(f"Value for {key} could not be encoded for Redis SET: {e}")
            return RemoteResult.failure(str(e))

        async def command(client: Redis) -> bool:
            await client.setex(key, ttl, payload)
            return True

        return await self._run("SET", command)

    async def delete(self, *keys: str) -> RemoteResult[bool]:
        async def command(client: Redis) -> bool:
            if keys:
                await client.delete(*keys)
            return True

        return await self._run("DEL", command)

    async def exists(self, key: str) -> RemoteResult[bool]:
        async def command(client: Redis) -> bool:
            return bool(await client.exists(key))

        return await self._run("EXISTS", command)

    async def delete_pattern(self, pattern: str) -> RemoteResult[int]:
        """Delete every key matching ``pattern``; the value is the count deleted."""

        async def command(client: Redis) -> int:
            keys = [key async for key in client.scan_iter(match=pattern, count=self.SCAN_COUNT)]
            if not keys:
                return 0
            return int(await client.delete(*keys))

        return await self._run("SCAN+DEL", command)

    async def stats(self, key_pattern: str | None = None) -> RemoteResult[dict[str, Any]]:
        """Key counts and memory summary for the stats endpoint."""

        async def command(client: Redis) -> dict[str, Any]:
            total_keys = int(await client.dbsize())
            matching = 0
            if key_pattern is not None:
                async for _ in client.scan_iter(match=key_pattern, count=self.SCAN_COUNT):
                    matching += 1
            memory = await client.info("memory")
            used = memory.get("used_memory_human", "N/A") if isinstance(memory, dict) else "N/A"
            return {
                "total_keys": total_keys,
                "user_keys": matching,
                "memory_info": f"used_memory:{used}",
            }

        return await self._run("STATS", command)

    async def ping(self) -> RemoteResult[bool]:
        async def command(client: Redis) -> bool:
            return bool(await client.ping())

        return await self._run("PING", command)
