"""
FastAPI dependencies.

Provides dependency injection for database sessions, Redis, browser sessions
and services.
"""

from typing import Annotated

from fastapi import Depends, HTTPException, Request, Response, status
from redis.asyncio import Redis
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from portal_core.schemas import UserResponse
from portal_core.services import OAuthService
from portal_core.session_store import SessionStore, new_session_id
from portal_database.models import User
from portal_database.session import get_session

from .config import settings

# Global Redis client, set by the application lifespan
redis_client: Redis | None = None


async def get_redis_pool() -> Redis:
    """
    Get the global Redis client.

    Returns:
        Async Redis client.

    Raises:
        RuntimeError: If Redis is not initialized.
    """
    if redis_client is None:
        raise RuntimeError("Redis pool not initialized")
    return redis_client


async def get_session_store(
    request: Request,
    redis: Annotated[Redis, Depends(get_redis_pool)],
) -> SessionStore:
    """
    Get the browser session of the current request.

    A new session ID is issued when the request carries no session cookie;
    routes that answer with their own Response must set the cookie themselves.

    Args:
        request: Current request.
        redis: Redis client.

    Returns:
        Session store bound to the browser session.
    """
    session_id = request.cookies.get(settings.session_cookie_name) or new_session_id()
    return SessionStore(redis, session_id, ttl_seconds=settings.session_ttl_seconds)


def get_oauth_service(session: Annotated[AsyncSession, Depends(get_session)]) -> OAuthService:
    """Get OAuth service instance."""
    return OAuthService(session)


async def get_current_user(
    session_store: Annotated[SessionStore, Depends(get_session_store)],
    session: Annotated[AsyncSession, Depends(get_session)],
) -> UserResponse:
    """
    Get the user logged in on the current browser session.

    Args:
        session_store: Browser session.
        session: Database session.

    Returns:
        Current user information.

    Raises:
        HTTPException: If the session is not fully logged in.
    """
    user_id = await session_store.get_current_user()
    if not user_id or not await session_store.is_login_complete():
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")

    stmt = (
        select(User)
        .where(User.id == user_id)
        .options(selectinload(User.oauth_accounts))
        .execution_options(populate_existing=True)
    )
    result = await session.execute(stmt)
    user = result.scalar_one_or_none()

    if not user or not user.is_active:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")

    return UserResponse.model_validate(user)


def attach_session_cookie(response: Response, session_store: SessionStore) -> Response:
    """
    Set the browser session cookie on a response.

    Args:
        response: Outgoing response.
        session_store: Browser session to reference.

    Returns:
        The same response.
    """
    response.set_cookie(
        key=settings.session_cookie_name,
        value=session_store.session_id,
        max_age=settings.session_ttl_seconds,
        httponly=True,
        secure=settings.session_cookie_secure,
        samesite="lax",
    )
    return response
