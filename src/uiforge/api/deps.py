"""Shared FastAPI dependencies for uiforge routers."""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends, Request

from uiforge.cache import CacheInvalidator, CacheService


def get_cache(request: Request) -> CacheService:
    """The CacheService created by the application lifespan."""
    cache: CacheService = request.app.state.cache
    return cache


def get_invalidator(cache: Annotated[CacheService, Depends(get_cache)]) -> CacheInvalidator:
    return CacheInvalidator(cache)


CacheDep = Annotated[CacheService, Depends(get_cache)]
InvalidatorDep = Annotated[CacheInvalidator, Depends(get_invalidator)]
