"""Observability module for uiforge.

Provides metrics and structured logging:
- Prometheus cache metrics
- JSON structured logging with correlation IDs
"""

from uiforge.observability.logging import (
    LogContext,
    configure_logging,
    request_id_var,
    user_id_var,
)
from uiforge.observability.metrics import (
    get_metrics,
    metrics_registry,
)

__all__ = [
    # Logging
    "configure_logging",
    "LogContext",
    "request_id_var",
    "user_id_var",
    # Metrics
    "metrics_registry",
    "get_metrics",
]
