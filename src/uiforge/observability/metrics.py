"""Prometheus metrics for uiforge.

Provides metrics collection and exposure:
- Cache metrics (hits, misses, latency) per tier
- Fallback counts when the remote tier is bypassed
- Remote connection state

Usage:
    from uiforge.observability.metrics import record_cache_hit

    record_cache_hit("redis")
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from prometheus_client import REGISTRY, Counter, Gauge, Histogram, generate_latest

from uiforge.config import settings

logger = logging.getLogger(__name__)

# Gauge values for uiforge_redis_connection_state
CONNECTION_STATE_VALUES = {
    "disconnected": 0,
    "connecting": 1,
    "connected": 2,
    "unavailable": 3,
}


@dataclass
class MetricsRegistry:
    """Registry for Prometheus metrics."""

    cache_hits_total: Any = None
    cache_misses_total: Any = None
    cache_operation_duration_seconds: Any = None
    cache_fallbacks_total: Any = None
    redis_connection_state: Any = None

    _initialized: bool = field(default=False, repr=False)
    _registry: Any = field(default=None, repr=False)

    def initialize(self) -> None:
        """Initialize Prometheus metrics."""
        if self._initialized:
            return

        if not settings.enable_metrics:
            logger.info("Metrics are disabled")
            self._initialized = True
            return

        self._registry = REGISTRY

        self.cache_hits_total = Counter(
            "uiforge_cache_hits_total",
            "Cache hits",
            ["cache_type"],
        )

        self.cache_misses_total = Counter(
            "uiforge_cache_misses_total",
            "Cache misses",
            ["cache_type"],
        )

        self.cache_operation_duration_seconds = Histogram(
            "uiforge_cache_operation_duration_seconds",
            "Cache operation latency in seconds",
            ["operation", "cache_type"],
            buckets=(0.0001, 0.0005, 0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.5),
        )

        self.cache_fallbacks_total = Counter(
            "uiforge_cache_fallbacks_total",
            "Operations served by the in-process cache after the remote tier failed",
            ["operation"],
        )

        self.redis_connection_state = Gauge(
            "uiforge_redis_connection_state",
            "Redis connection state (0=disconnected, 1=connecting, 2=connected, 3=unavailable)",
        )

        self._initialized = True
        logger.info("Prometheus metrics initialized")

    def generate_latest(self) -> bytes:
        """Generate Prometheus metrics in exposition format."""
        if not settings.enable_metrics or self._registry is None:
            return b"# Metrics disabled\n"
        return generate_latest(self._registry)


# Global metrics registry
metrics_registry = MetricsRegistry()


def get_metrics() -> MetricsRegistry:
    """Get the global metrics registry.

    Initializes metrics on first access.
    """
    if not metrics_registry._initialized:
        metrics_registry.initialize()
    return metrics_registry


def record_cache_hit(cache_type: str = "redis") -> None:
    """Record cache hit."""
    metrics = get_metrics()
    if metrics.cache_hits_total:
        metrics.cache_hits_total.labels(cache_type=cache_type).inc()


def record_cache_miss(cache_type: str = "redis") -> None:
    """Record cache miss."""
    metrics = get_metrics()
    if metrics.cache_misses_total:
        metrics.cache_misses_total.labels(cache_type=cache_type).inc()


def record_cache_operation(operation: str, duration: float, cache_type: str = "redis") -> None:
    """Record cache operation duration.

    Args:
        operation: Cache operation (get, set, delete, exists)
        duration: Operation duration in seconds
        cache_type: Tier that served the operation (redis, memory)
    """
    metrics = get_metrics()
    if metrics.cache_operation_duration_seconds:
        metrics.cache_operation_duration_seconds.labels(
            operation=operation,
            cache_type=cache_type,
        ).observe(duration)


def record_cache_fallback(operation: str) -> None:
    """Record an operation that fell back to the in-process tier."""
    metrics = get_metrics()
    if metrics.cache_fallbacks_total:
        metrics.cache_fallbacks_total.labels(operation=operation).inc()


def set_redis_connection_state(state: str) -> None:
    """Publish the Redis connection state gauge."""
    metrics = get_metrics()
    if metrics.redis_connection_state:
        metrics.redis_connection_state.set(CONNECTION_STATE_VALUES.get(state, 0))
