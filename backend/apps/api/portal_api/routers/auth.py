"""
Authentication router.

Provides endpoints for listing OAuth providers, the current session user,
and logout.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Response

from portal_core.schemas import OAuthProvidersResponse, UserResponse
from portal_core.services import OAuthService
from portal_core.session_store import SessionStore

from ..dependencies import (
    attach_session_cookie,
    get_current_user,
    get_oauth_service,
    get_session_store,
)

router = APIRouter()


@router.get("/oauth/providers")
async def list_oauth_providers(
    oauth_service: Annotated[OAuthService, Depends(get_oauth_service)],
) -> OAuthProvidersResponse:
    """
    List OAuth providers available on the login page.

    Args:
        oauth_service: OAuth service.

    Returns:
        Whether OAuth login is enabled, and the enabled provider names.
    """
    providers = await oauth_service.get_available_providers()
    return OAuthProvidersResponse(oauth_enabled=bool(providers), providers=providers)


@router.get("/me")
async def get_me(
    current_user: Annotated[UserResponse, Depends(get_current_user)],
) -> UserResponse:
    """
    Get the user logged in on this browser session.

    Args:
        current_user: Current authenticated user.

    Returns:
        User profile data with linked accounts.
    """
    return current_user


@router.post("/logout")
async def logout(
    response: Response,
    session_store: Annotated[SessionStore, Depends(get_session_store)],
) -> dict[str, str]:
    """
    Log the browser session out.

    Returns:
        Success message.
    """
    await session_store.clear()
    attach_session_cookie(response, session_store)
    return {"message": "Logged out successfully"}
