"""CLI commands for uiforge.

Provides command-line interface using Typer:
- uiforge serve: Run the API server
- uiforge cache: Inspect and clear the configured cache

Usage:
    uiforge --help
    uiforge serve --port 8080
    uiforge cache stats --user-id 42
    uiforge cache clear-user 42
    uiforge cache ping
"""

import typer

from uiforge.cli.cache_cmd import app as cache_app
from uiforge.cli.serve import app as serve_app

app = typer.Typer(
    name="uiforge",
    help="uiforge: cache service for generated UI components",
    no_args_is_help=True,
)

app.add_typer(serve_app, name="serve")
app.add_typer(cache_app, name="cache")


@app.callback()
def callback() -> None:
    """uiforge: cache service for generated UI components."""


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
