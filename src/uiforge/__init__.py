"""uiforge: two-tier cache for generated UI components and work sessions."""

__version__ = "0.1.0"
