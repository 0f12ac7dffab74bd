"""
Browser session store.

Redis-backed key/value storage scoped to one browser session. Every field
expires with the session TTL, so pending OAuth state never outlives the
session it was issued to.
"""

from secrets import token_urlsafe
from typing import Any

from .redis_keys import RedisKeys


def new_session_id() -> str:
    """Generate an opaque browser session identifier."""
    return token_urlsafe(32)


class SessionStore:
    """Per-browser-session storage on top of Redis."""

    def __init__(
        self, redis: Any, session_id: str, ttl_seconds: int = RedisKeys.SESSION_TTL
    ) -> None:
        """
        Initialize session store.

        Args:
            redis: Async Redis client (``decode_responses=True``).
            session_id: Opaque browser session identifier.
            ttl_seconds: Lifetime of every stored field.
        """
        self.redis = redis
        self.session_id = session_id
        self.ttl_seconds = ttl_seconds

    def _key(self, field: str) -> str:
        return RedisKeys.session_value(self.session_id, field)

    async def get(self, field: str) -> str | None:
        """Read a session field."""
        return await self.redis.get(self._key(field))

    async def set(self, field: str, value: str) -> None:
        """Write a session field, resetting its expiry."""
        await self.redis.setex(self._key(field), self.ttl_seconds, value)

    async def remove(self, field: str) -> None:
        """Delete a session field."""
        await self.redis.delete(self._key(field))

    async def pop(self, field: str) -> str | None:
        """
        Read and delete a session field in one transaction.

        Two concurrent callers never both observe the value.

        Args:
            field: Session field name.

        Returns:
            The stored value, or None if it was absent.
        """
        key = self._key(field)
        async with self.redis.pipeline(transaction=True) as pipe:
            value, _deleted = await pipe.get(key).delete(key).execute()
        return value

    async def set_current_user(self, user_id: str) -> None:
        """Bind the session to an authenticated user."""
        await self.set(RedisKeys.CURRENT_USER_FIELD, user_id)

    async def get_current_user(self) -> str | None:
        """Get the authenticated user ID, if any."""
        return await self.get(RedisKeys.CURRENT_USER_FIELD)

    async def mark_login_complete(self) -> None:
        """Flag the login as fully complete (no pending second factor)."""
        await self.set(RedisKeys.LOGIN_COMPLETE_FIELD, "1")

    async def is_login_complete(self) -> bool:
        """Check whether the login was marked complete."""
        return await self.get(RedisKeys.LOGIN_COMPLETE_FIELD) == "1"

    async def regenerate(self) -> None:
        """
        Move to a new session ID.

        The login fields of the old session are deleted; other fields stay
        behind under the old ID and expire with it.
        """
        await self.clear()
        self.session_id = new_session_id()

    async def clear(self) -> None:
        """Log out: drop the authenticated user and completion flag."""
        await self.redis.delete(
            self._key(RedisKeys.CURRENT_USER_FIELD),
            self._key(RedisKeys.LOGIN_COMPLETE_FIELD),
        )
