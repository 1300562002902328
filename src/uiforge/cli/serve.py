"""CLI command for running the API server.

Usage:
    uiforge serve
    uiforge serve --port 8080 --host 0.0.0.0
    uiforge serve --reload --log-level debug
"""

from __future__ import annotations

import typer

from uiforge.config import settings

app = typer.Typer(help="Run the uiforge API server")


@app.callback(invoke_without_command=True)
def serve(
    host: str = typer.Option(
        settings.host,
        "--host",
        "-h",
        help="Host to bind to",
    ),
    port: int = typer.Option(
        settings.port,
        "--port",
        "-p",
        help="Port to listen on",
    ),
    reload: bool = typer.Option(
        False,
        "--reload",
        "-r",
        help="Enable auto-reload for development",
    ),
    log_level: str = typer.Option(
        "info",
        "--log-level",
        "-l",
        help="Log level: debug, info, warning, error",
    ),
) -> None:
    """Run the uiforge API server.

    Runs a single worker process with its own in-process cache tier.
    """
    import uvicorn

    typer.echo("Starting uiforge server...")
    typer.echo(f"  Host: {host}")
    typer.echo(f"  Port: {port}")
    typer.echo(f"  Log level: {log_level}")
    if reload:
        typer.echo("  Reload: enabled")
    typer.echo()

    uvicorn.run(
        app="uiforge.api.app:create_app",
        factory=True,
        host=host,
        port=port,
        reload=reload,
        log_level=log_level.lower(),
    )
