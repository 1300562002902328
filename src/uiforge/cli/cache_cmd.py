"""CLI commands for inspecting and clearing the cache.

Usage:
    uiforge cache stats
    uiforge cache stats --user-id 42 --format json
    uiforge cache clear-user 42
    uiforge cache ping

Each command builds a CacheService from settings, so it reaches the Redis
instance named by REDIS_URL. Without it, commands run against an empty
in-process store and report the memory tier.
"""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, TypeVar

import orjson
import typer
from rich.console import Console

from uiforge.cache import CacheInvalidator, CacheService

T = TypeVar("T")

app = typer.Typer(help="Inspect and clear the uiforge cache", no_args_is_help=True)

console = Console()


def build_cache() -> CacheService:
    """Cache service used by the commands in this module."""
    return CacheService.from_settings()


def _run(action: Callable[[CacheService], Awaitable[T]]) -> T:
    async def runner() -> T:
        cache = build_cache()
        try:
            return await action(cache)
        finally:
            await cache.close()

    return asyncio.run(runner())


@app.command("stats")
def stats(
    user_id: str | None = typer.Option(
        None,
        "--user-id",
        "-u",
        help="Also count keys belonging to this user",
    ),
    output_format: str = typer.Option(
        "text",
        "--format",
        "-f",
        help="Output format: text, json",
    ),
) -> None:
    """Show which cache tier is serving and how many keys it holds."""
    result = _run(lambda cache: cache.stats(user_id))

    if output_format == "json":
        typer.echo(orjson.dumps(result.model_dump(), option=orjson.OPT_INDENT_2).decode())
        return

    color = "green" if result.cache_type == "redis" else "yellow"
    console.print(f"[bold]Cache type:[/bold] [{color}]{result.cache_type}[/{color}]")
    console.print(f"  Connection: {result.connection_state}")
    console.print(f"  Total keys: {result.total_keys}")
    if user_id is not None:
        console.print(f"  User keys:  {result.user_keys}")
    console.print(f"  Memory:     {result.memory_info}")


@app.command("clear-user")
def clear_user(
    user_id: str = typer.Argument(..., help="User whose cached data is dropped"),
) -> None:
    """Invalidate a user's session snapshot, session list and chat histories."""
    success = _run(lambda cache: CacheInvalidator(cache).invalidate_user_cache(user_id))

    if success:
        console.print(f"[green]✓[/green] User cache cleared for {user_id}")
    else:
        console.print(f"[red]✗[/red] Cache clear for {user_id} completed with some errors")
        raise typer.Exit(code=1)


@app.command("ping")
def ping() -> None:
    """Check that the configured Redis answers."""

    async def action(cache: CacheService) -> tuple[bool, str | None]:
        if cache.remote is None:
            return False, "remote cache disabled"
        result = await cache.remote.ping()
        return result.ok, result.error

    ok, error = _run(action)

    if ok:
        console.print("[green]✓[/green] Redis is available")
    else:
        console.print(f"[red]✗[/red] Redis unavailable: {error}")
        raise typer.Exit(code=1)
