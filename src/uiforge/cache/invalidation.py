"""Cache invalidation triggered by data mutations.

Request handlers call these after a state change so list and detail views
are not served stale from cache. Invalidation never raises: a cache that
fails to clear heals through TTL expiry, and must not block sign-out or the
write that triggered it.

Example:
    invalidator = CacheInvalidator(cache)

    # After deleting a work session
    await invalidator.on_session_deleted(user_id, session_id)

    # On sign-out
    await invalidator.on_sign_out(user_id)
"""

from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable

from uiforge.cache.keys import CacheKeys, CacheTTL
from uiforge.cache.service import CacheService

logger = logging.getLogger(__name__)


class CacheInvalidator:
    """Clears the cache entries affected by a mutation, across both tiers."""

    def __init__(self, cache: CacheService):
        self.cache = cache

    async def _guarded(self, operation: str, action: Callable[[], Awaitable[Any]]) -> bool:
        try:
            await action()
            return True
        except Exception:
            logger.exception(f"Cache invalidation failed: {operation}")
            return False

    async def invalidate_user_cache(self, user_id: str | int) -> bool:
        """Drop a user's session snapshot, session list and chat histories.

        Chat history keys are found by pattern, which needs Redis; without
        it they are left to expire on their own TTL.
        """
        try:
            await self.cache.invalidate(
                CacheKeys.session(user_id),
                CacheKeys.user_sessions(user_id),
            )
        except Exception:
            logger.exception(f"Failed to invalidate user cache for {user_id}")
            return False

        pattern = CacheKeys.chat_history_pattern(user_id)
        try:
            result = await self.cache.sweep_remote(pattern)
        except Exception:
            logger.exception(f"Error clearing chat history cache for {user_id}")
            return True

        if result.ok:
            logger.debug(f"Cleared {result.value} chat history keys for {user_id}")
        elif result.is_unavailable:
            logger.debug(f"Redis unavailable, skipped chat history sweep for {user_id}")
        else:
            logger.error(f"Error clearing chat history cache for {user_id}: {result.error}")
        return True

    async def invalidate_keys(self, *keys: str) -> bool:
        """Delete specific keys from both tiers."""
        return await self._guarded(f"keys {list(keys)}", lambda: self.cache.invalidate(*keys))

    # -------------------------------------------------------------------------
    # Mutation hooks
    # -------------------------------------------------------------------------

    async def on_sign_out(self, user_id: str | int) -> bool:
        return await self.invalidate_user_cache(user_id)

    async def on_session_created(
        self, user_id: str | int, session_id: str | int, session: Any
    ) -> bool:
        """The user's session list changed; the new session is cached warm."""

        async def action() -> None:
            await self.cache.invalidate(CacheKeys.user_sessions(user_id))
            await self.cache.set(CacheKeys.work_session(session_id), session, CacheTTL.WORK_SESSION)

        return await self._guarded("session created", action)

    async def on_session_updated(
        self, user_id: str | int, session_id: str | int, session: Any
    ) -> bool:
        """Rewrite the session detail and drop the list that shows its title."""

        async def action() -> None:
            await self.cache.set(CacheKeys.work_session(session_id), session, CacheTTL.WORK_SESSION)
            await self.cache.invalidate(CacheKeys.user_sessions(user_id))

        return await self._guarded("session updated", action)

    async def on_session_deleted(self, user_id: str | int, session_id: str | int) -> bool:
        return await self._guarded(
            "session deleted",
            lambda: self.cache.invalidate(
                CacheKeys.work_session(session_id),
                CacheKeys.chat_history(user_id, session_id),
                CacheKeys.user_sessions(user_id),
            ),
        )

    async def on_component_updated(
        self, component_id: str | int, session_id: str | int, component: Any
    ) -> bool:
        """Rewrite the component and drop the session aggregate embedding it."""

        async def action() -> None:
            await self.cache.cache_component(component_id, component)
            await self.cache.invalidate(CacheKeys.work_session(session_id))

        return await self._guarded("component updated", action)
