"""Tests for cache key generation."""

from uiforge.cache.keys import CacheKeys, CacheTTL


class TestCacheKeys:
    """Test cache key generation."""

    def test_user_key(self) -> None:
        """User key is namespaced by email."""
        assert CacheKeys.user("ada@example.com") == "user:ada@example.com"

    def test_session_key(self) -> None:
        """Session snapshot key uses the user id."""
        assert CacheKeys.session(17) == "session:17"

    def test_work_session_shares_session_namespace(self) -> None:
        """Work session key lives in the session namespace."""
        assert CacheKeys.work_session("abc") == "session:abc"

    def test_user_sessions_key(self) -> None:
        """Session list key has correct format."""
        assert CacheKeys.user_sessions("17") == "user_sessions:17"

    def test_component_key(self) -> None:
        """Component key has correct format."""
        assert CacheKeys.component(42) == "component:42"

    def test_chat_history_key(self) -> None:
        """Chat history key carries user and session ids."""
        assert CacheKeys.chat_history("17", "abc") == "chat_history:17:abc"

    def test_chat_history_pattern(self) -> None:
        """Chat history pattern covers every session of the user."""
        assert CacheKeys.chat_history_pattern("17") == "chat_history:17:*"

    def test_user_pattern(self) -> None:
        """User pattern matches any key mentioning the id."""
        assert CacheKeys.user_pattern("17") == "*17*"

    def test_namespace_pattern(self) -> None:
        """Namespace pattern matches every key in it."""
        assert CacheKeys.namespace_pattern("component") == "component:*"

    def test_parse_valid_key(self) -> None:
        """Valid key is parsed correctly."""
        result = CacheKeys.parse_key("component:42")
        assert result == {"namespace": "component", "identifier": "42"}

    def test_parse_chat_history_key(self) -> None:
        """Chat history key is split into user and session."""
        result = CacheKeys.parse_key("chat_history:17:abc")
        assert result == {"namespace": "chat_history", "user_id": "17", "session_id": "abc"}

    def test_parse_invalid_key_returns_none(self) -> None:
        """Invalid key returns None."""
        assert CacheKeys.parse_key("invalid") is None
        assert CacheKeys.parse_key("other:prefix") is None
        assert CacheKeys.parse_key("component:") is None
        assert CacheKeys.parse_key("chat_history:17") is None


class TestCacheTTL:
    """Test namespace TTL defaults."""

    def test_ttl_values(self) -> None:
        """TTLs match the per-namespace durations."""
        assert CacheTTL.SESSION == 1800
        assert CacheTTL.USER_SESSIONS == 600
        assert CacheTTL.COMPONENT == 3600
        assert CacheTTL.USER == 3600
        assert CacheTTL.CHAT_HISTORY == 3600
        assert CacheTTL.DEFAULT == 3600
