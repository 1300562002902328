"""Cache administration endpoints.

- GET  /cache/stats                  - tier in use and key counts
- POST /cache/users/{user_id}/clear  - drop everything cached for one user

Authentication is supplied by the host application as router dependencies.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Query
from pydantic import BaseModel

from uiforge.api.deps import CacheDep, InvalidatorDep
from uiforge.cache import CacheStats
from uiforge.observability import LogContext

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/cache", tags=["cache"])


class ClearCacheResponse(BaseModel):
    message: str
    success: bool


@router.get("/stats", response_model=CacheStats)
async def get_cache_stats(
    cache: CacheDep,
    user_id: str | None = Query(default=None, description="Count keys belonging to this user"),
) -> CacheStats:
    """Report which tier is serving and how many keys it holds."""
    return await cache.stats(user_id)


@router.post("/users/{user_id}/clear", response_model=ClearCacheResponse)
async def clear_user_cache(user_id: str, invalidator: InvalidatorDep) -> ClearCacheResponse:
    """Invalidate a user's session snapshot, session list and chat histories."""
    with LogContext(user_id=user_id):
        success = await invalidator.invalidate_user_cache(user_id)
        if success:
            logger.info("User cache cleared")
            message = "User cache cleared successfully"
        else:
            message = "Cache clear completed with some errors"
    return ClearCacheResponse(message=message, success=success)
