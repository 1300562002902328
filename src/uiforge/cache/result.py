"""Explicit outcome of a remote cache call."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class RemoteResult(Generic[T]):
    """Outcome of one remote cache operation.

    ``ok`` is False when the operation did not run against Redis (no
    connection) or failed there. ``transport_error`` marks failures of the
    connection itself, as opposed to a single rejected command.
    """

    UNAVAILABLE = "redis unavailable"

    ok: bool
    value: T | None = None
    error: str | None = None
    transport_error: bool = False

    @property
    def is_unavailable(self) -> bool:
        """True when no command was sent because Redis was not connected."""
        return not self.ok and self.error == self.UNAVAILABLE

    @classmethod
    def success(cls, value: T) -> "RemoteResult[T]":
        return cls(ok=True, value=value)

    @classmethod
    def failure(cls, error: str, transport_error: bool = False) -> "RemoteResult[T]":
        return cls(ok=False, error=error, transport_error=transport_error)

    @classmethod
    def unavailable(cls) -> "RemoteResult[T]":
        """Result for calls made while no Redis connection is available."""
        return cls(ok=False, error=cls.UNAVAILABLE)
