"""Cache exceptions.

Raised only below ``CacheService``; the remote adapter turns them into
failed ``RemoteResult`` values, so callers of the service never see them.

Exception hierarchy:
    CacheError
    └── CacheSerializationError
"""

from __future__ import annotations

from typing import Any


class CacheError(Exception):
    """Base exception for cache errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            details_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.message} ({details_str})"
        return self.message


class CacheSerializationError(CacheError):
    """A value could not be encoded for, or decoded from, the remote cache."""
