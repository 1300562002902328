"""Cache key schema for uiforge.

Key format: {namespace}:{identifier}[:{identifier}]

Namespaces:
- user: authentication record snapshot, keyed by email
- session: user session snapshot (by user id) or work session (by session id)
- user_sessions: the list of a user's work sessions
- component: a generated component with its version history
- chat_history: ordered chat messages of a work session, keyed by user and session
"""

from __future__ import annotations

from typing import Literal

Namespace = Literal["user", "session", "user_sessions", "component", "chat_history"]


class CacheTTL:
    """Default time-to-live per namespace, in seconds."""

    DEFAULT = 3600
    USER = 3600
    SESSION = 1800
    WORK_SESSION = 3600
    USER_SESSIONS = 600
    COMPONENT = 3600
    CHAT_HISTORY = 3600


class CacheKeys:
    """Cache key generator following consistent naming convention."""

    NAMESPACES: tuple[Namespace, ...] = ("user", "session", "user_sessions", "component", "chat_history")

    @staticmethod
    def user(email: str) -> str:
        """Key for an authentication record snapshot."""
        return f"user:{email}"

    @staticmethod
    def session(user_id: str | int) -> str:
        """Key for the signed-in user's session snapshot."""
        return f"session:{user_id}"

    @staticmethod
    def work_session(session_id: str | int) -> str:
        """Key for a work session aggregate (messages and components)."""
        return f"session:{session_id}"

    @staticmethod
    def user_sessions(user_id: str | int) -> str:
        """Key for the list of a user's work sessions."""
        return f"user_sessions:{user_id}"

    @staticmethod
    def component(component_id: str | int) -> str:
        """Key for a generated component."""
        return f"component:{component_id}"

    @staticmethod
    def chat_history(user_id: str | int, session_id: str | int) -> str:
        """Key for the chat messages of one work session."""
        return f"chat_history:{user_id}:{session_id}"

    @staticmethod
    def chat_history_pattern(user_id: str | int) -> str:
        """Pattern matching every chat history key of a user.

        Use with Redis SCAN + DEL for cache invalidation.
        """
        return f"chat_history:{user_id}:*"

    @staticmethod
    def user_pattern(user_id: str | int) -> str:
        """Pattern matching any key that mentions the user id."""
        return f"*{user_id}*"

    @classmethod
    def namespace_pattern(cls, namespace: Namespace) -> str:
        """Pattern matching every key in one namespace."""
        return f"{namespace}:*"

    @classmethod
    def parse_key(cls, key: str) -> dict[str, str] | None:
        """Parse a cache key into its components.

        Returns None if the key is not in a known namespace.
        """
        namespace, sep, rest = key.partition(":")
        if not sep or not rest or namespace not in cls.NAMESPACES:
            return None

        if namespace == "chat_history":
            user_id, sep, session_id = rest.partition(":")
            if not sep or not user_id or not session_id:
                return None
            return {"namespace": namespace, "user_id": user_id, "session_id": session_id}

        return {"namespace": namespace, "identifier": rest}
