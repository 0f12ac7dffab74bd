"""
OAuth router.

Browser-facing endpoints of the authorization-code flow: the redirect to the
provider and the provider callback. Every callback outcome is a redirect, so
no provider or internal error detail reaches the browser.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import RedirectResponse

from portal_core import get_logger
from portal_core.config import oauth_config
from portal_core.services import CallbackStatus, OAuthService
from portal_core.session_store import SessionStore

from ..dependencies import attach_session_cookie, get_oauth_service, get_session_store

logger = get_logger(__name__)

router = APIRouter()


def _redirect(url: str, session_store: SessionStore) -> RedirectResponse:
    response = RedirectResponse(url, status_code=status.HTTP_302_FOUND)
    response.headers["Cache-Control"] = "no-store"
    attach_session_cookie(response, session_store)
    return response


@router.get("/authorize/{provider}")
async def oauth_authorize(
    provider: str,
    request: Request,
    oauth_service: Annotated[OAuthService, Depends(get_oauth_service)],
    session_store: Annotated[SessionStore, Depends(get_session_store)],
) -> RedirectResponse:
    """
    Redirect the browser to the provider's authorization page.

    Args:
        provider: Provider name.
        request: Current request (its authority forms the callback URL).
        oauth_service: OAuth service.
        session_store: Browser session.

    Returns:
        Redirect to the provider.

    Raises:
        HTTPException: 404 if the provider is unavailable, 403 if the
            authorization URL cannot be built.
    """
    try:
        auth_url = await oauth_service.initiate(provider, session_store, str(request.base_url))
    except ValueError:
        logger.exception("[OAuth] failed to build authorization URL", extra={"provider": provider})
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")

    if auth_url is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not Found")

    return _redirect(auth_url, session_store)


@router.get("/callback/{provider}")
async def oauth_callback(
    provider: str,
    request: Request,
    oauth_service: Annotated[OAuthService, Depends(get_oauth_service)],
    session_store: Annotated[SessionStore, Depends(get_session_store)],
    code: str | None = None,
    state: str | None = None,
    error: str | None = None,
) -> RedirectResponse:
    """
    Handle the provider redirect after authorization.

    Args:
        provider: Provider name.
        request: Current request.
        oauth_service: OAuth service.
        session_store: Browser session.
        code: Authorization code.
        state: State token echoed by the provider.
        error: Error code set by the provider.

    Returns:
        Redirect to the dashboard on success, to the login page otherwise.

    Raises:
        HTTPException: 404 if the provider is unavailable.
    """
    try:
        result = await oauth_service.complete(
            provider,
            session_store,
            str(request.base_url),
            state=state,
            code=code,
            error=error,
        )
    except Exception:
        logger.exception("[OAuth] callback failed unexpectedly", extra={"provider": provider})
        return _redirect(oauth_config.login_redirect_url, session_store)

    if result.status is CallbackStatus.UNAVAILABLE:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not Found")

    if result.status is CallbackStatus.COMPLETED:
        return _redirect(oauth_config.dashboard_redirect_url, session_store)

    return _redirect(oauth_config.login_redirect_url, session_store)
