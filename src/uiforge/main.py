"""Main entry point for the uiforge CLI.

Usage:
    python -m uiforge.main --help
    uiforge --help  # If installed via pip/uv
"""

from uiforge.cli import main

if __name__ == "__main__":
    main()
