"""HTTP surface for uiforge."""

from uiforge.api.app import create_app

__all__ = ["create_app"]
