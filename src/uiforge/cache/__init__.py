"""Cache layer for uiforge.

Two tiers behind one facade:
- Redis, when REDIS_URL is configured and reachable
- An in-process TTL store, used whenever Redis is not
- Namespaced keys with per-namespace TTLs
- Explicit invalidation after sessions, components or sign-in state change
"""

from uiforge.cache.codec import Codec, JsonCodec, ModelCodec
from uiforge.cache.invalidation import CacheInvalidator
from uiforge.cache.keys import CacheKeys, CacheTTL
from uiforge.cache.memory import TTLStore
from uiforge.cache.redis import (
    ConnectionState,
    RedisConfig,
    RedisConnectionManager,
    RemoteCache,
)
from uiforge.cache.result import RemoteResult
from uiforge.cache.service import CacheService, CacheStats

__all__ = [
    # Facade
    "CacheService",
    "CacheStats",
    "CacheInvalidator",
    # Keys
    "CacheKeys",
    "CacheTTL",
    # Tiers
    "TTLStore",
    "RedisConfig",
    "RedisConnectionManager",
    "RemoteCache",
    "ConnectionState",
    "RemoteResult",
    # Codecs
    "Codec",
    "JsonCodec",
    "ModelCodec",
]
