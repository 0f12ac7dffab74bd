"""Redis key templates and TTL constants.

Centralized management of all Redis keys used in the application to prevent
conflicts and make maintenance easier.
"""


class RedisKeys:
    """Redis key templates and helper methods."""

    # ============================================================================
    # Browser Session Keys
    # ============================================================================

    # Per-session value
    # Format: session:{session_id}:{field}
    # TTL: session lifetime (1 day by default)
    SESSION_TTL = 86400

    # Session fields
    CURRENT_USER_FIELD = "user_id"
    LOGIN_COMPLETE_FIELD = "is_login_complete"

    @staticmethod
    def session_value(session_id: str, field: str) -> str:
        """
        Get the key holding one field of a browser session.

        Args:
            session_id: Opaque browser session identifier.
            field: Session field name.

        Returns:
            Redis key string.
        """
        return f"session:{session_id}:{field}"

    @staticmethod
    def oauth_state_field(provider: str) -> str:
        """
        Get the session field holding the pending OAuth state for a provider.

        Args:
            provider: Provider name.

        Returns:
            Session field name.
        """
        return f"oauth_state:{provider}"
