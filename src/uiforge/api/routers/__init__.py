"""API routers for uiforge."""

from uiforge.api.routers import cache, health, metrics

__all__ = ["cache", "health", "metrics"]
