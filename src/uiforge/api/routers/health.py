"""Health check endpoints for uiforge.

- /health/live  - Liveness probe (always returns OK if process is running)
- /health/ready - Readiness probe (reports which cache tier is serving)

The in-process tier always works, so a missing Redis degrades the service
but never makes it unready.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from enum import Enum
from typing import Any

from fastapi import APIRouter

from uiforge.api.deps import CacheDep
from uiforge.cache import CacheService

router = APIRouter(tags=["health"])


class HealthStatus(str, Enum):
    """Health check status."""

    HEALTHY = "healthy"
    DEGRADED = "degraded"


@dataclass
class ComponentHealth:
    """Health status of a single component."""

    name: str
    status: HealthStatus
    latency_ms: float
    message: str | None = None

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "name": self.name,
            "status": self.status.value,
            "latency_ms": round(self.latency_ms, 2),
        }
        if self.message:
            result["message"] = self.message
        return result


async def check_redis(cache: CacheService) -> ComponentHealth:
    """Ping Redis through the cache's remote tier."""
    start = time.monotonic()
    if cache.remote is None:
        return ComponentHealth(
            name="redis",
            status=HealthStatus.DEGRADED,
            latency_ms=0.0,
            message="Remote cache disabled",
        )

    result = await cache.remote.ping()
    latency = (time.monotonic() - start) * 1000
    if result.ok:
        return ComponentHealth(name="redis", status=HealthStatus.HEALTHY, latency_ms=latency)
    return ComponentHealth(
        name="redis",
        status=HealthStatus.DEGRADED,
        latency_ms=latency,
        message=f"Using in-memory cache: {result.error}",
    )


@router.get("/health/live")
async def live() -> dict[str, str]:
    """Liveness probe."""
    return {"status": "ok"}


@router.get("/health/ready")
async def ready(cache: CacheDep) -> dict[str, Any]:
    """Readiness probe.

    Returns 200 in both states; ``status`` is ``healthy`` while Redis serves
    and ``degraded`` while the in-process tier does.
    """
    redis_health = await check_redis(cache)
    body: dict[str, Any] = {
        "status": redis_health.status.value,
        "cache_type": "redis" if redis_health.status == HealthStatus.HEALTHY else "memory",
        "components": [redis_health.to_dict()],
    }
    if cache.manager is not None:
        body["redis"] = await cache.manager.health_check()
    return body
