"""Tests for the uiforge CLI."""

from __future__ import annotations

import orjson
import pytest
from redis.exceptions import ConnectionError as RedisConnectionError
from typer.testing import CliRunner

from uiforge.cli import app
from uiforge.cli import cache_cmd
from uiforge.cache import CacheService

runner = CliRunner()


@pytest.fixture
def use_cache(monkeypatch: pytest.MonkeyPatch):
    """Make the cache commands operate on a given service."""

    def install(cache: CacheService) -> CacheService:
        monkeypatch.setattr(cache_cmd, "build_cache", lambda: cache)
        return cache

    return install


class TestCacheCommands:
    """Test `uiforge cache` subcommands."""

    def test_stats_text(self, use_cache, cache, fake_redis) -> None:
        """Text stats name the serving tier."""
        use_cache(cache)
        fake_redis.data["session:7"] = b"{}"
        result = runner.invoke(app, ["cache", "stats", "--user-id", "7"])
        assert result.exit_code == 0
        assert "Cache type: redis" in result.output
        assert "User keys:  1" in result.output

    def test_stats_json(self, use_cache, memory_cache) -> None:
        """JSON stats are machine readable."""
        use_cache(memory_cache)
        result = runner.invoke(app, ["cache", "stats", "--format", "json"])
        assert result.exit_code == 0
        data = orjson.loads(result.output)
        assert data["cache_type"] == "memory"
        assert data["connection_state"] == "disabled"

    def test_clear_user(self, use_cache, cache, fake_redis) -> None:
        """clear-user drops the user's keys."""
        use_cache(cache)
        fake_redis.data.update({"session:7": b"{}", "chat_history:7:a": b"[]", "component:1": b"{}"})
        result = runner.invoke(app, ["cache", "clear-user", "7"])
        assert result.exit_code == 0
        assert "User cache cleared for 7" in result.output
        assert list(fake_redis.data) == ["component:1"]

    def test_ping_ok(self, use_cache, cache) -> None:
        """ping succeeds when Redis answers."""
        use_cache(cache)
        result = runner.invoke(app, ["cache", "ping"])
        assert result.exit_code == 0
        assert "Redis is available" in result.output

    def test_ping_unavailable(self, use_cache, cache, fake_redis) -> None:
        """ping exits non-zero when Redis is down."""
        use_cache(cache)
        fake_redis.fail_with = RedisConnectionError("refused")
        result = runner.invoke(app, ["cache", "ping"])
        assert result.exit_code == 1
        assert "Redis unavailable" in result.output

    def test_ping_without_remote(self, use_cache, memory_cache) -> None:
        """ping reports a disabled remote tier."""
        use_cache(memory_cache)
        result = runner.invoke(app, ["cache", "ping"])
        assert result.exit_code == 1
        assert "remote cache disabled" in result.output

    def test_closes_connection(self, use_cache, cache, fake_redis) -> None:
        """Each command closes the Redis connection it opened."""
        use_cache(cache)
        runner.invoke(app, ["cache", "ping"])
        assert fake_redis.closed is True


class TestServeCommand:
    """Test `uiforge serve`."""

    def test_runs_uvicorn(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """serve hands the app factory to uvicorn."""
        calls: list[dict] = []
        monkeypatch.setattr("uvicorn.run", lambda **kwargs: calls.append(kwargs))

        result = runner.invoke(app, ["serve", "--port", "9000"])
        assert result.exit_code == 0
        assert calls[0]["app"] == "uiforge.api.app:create_app"
        assert calls[0]["factory"] is True
        assert calls[0]["port"] == 9000
