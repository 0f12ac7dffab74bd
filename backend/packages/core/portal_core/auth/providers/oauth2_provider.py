"""
Generic OAuth 2.0 authorization-code provider.

This module implements the three network operations every supported provider
(Google, GitHub, generic OpenID-Connect style) shares: authorization URL
construction, token requests and resource-owner (userinfo) fetches. Providers
differ only in their configured endpoints.
"""

from time import time
from typing import Any, Self, cast
from urllib.parse import parse_qsl, urlencode, urlparse

import httpx

from portal_core import get_logger
from portal_core.config import oauth_config
from portal_core.schemas.oauth import ProviderConfig

from .base import AccessTokenResult, IdentityProviderError

logger = get_logger(__name__)


def parse_scopes(scope: str | None, default: str | None = None) -> list[str]:
    """
    Split a scope string into an ordered list of scopes.

    Args:
        scope: Space-separated scopes; irregular whitespace is tolerated.
        default: Scope string used when none is configured
            (defaults to ``OAUTH_DEFAULT_SCOPE``).

    Returns:
        Non-empty scope tokens in their original order.
    """
    if scope is None or not scope.strip():
        scope = default or oauth_config.default_scope
    return scope.split()


class OAuth2Provider:
    """
    OAuth 2.0 authorization-code client parameterized by endpoint URLs.

    Usable as an async context manager; the HTTP client it creates is closed
    on exit.
    """

    def __init__(
        self,
        config: ProviderConfig,
        timeout: float = 10.0,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """
        Initialize OAuth2 provider.

        Args:
            config: Resolved provider configuration.
            timeout: Timeout in seconds for each outbound request.
            http_client: Optional pre-built HTTP client (not closed by this object).
        """
        self.config = config
        self.timeout = timeout
        self._http_client = http_client
        self._owns_http_client = http_client is None

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(self, *_exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the HTTP client if this provider created it."""
        if self._http_client is not None and self._owns_http_client:
            await self._http_client.aclose()
            self._http_client = None

    @property
    def provider(self) -> str:
        return self.config.provider

    @staticmethod
    def _sanitize_url_for_logs(url: str) -> str:
        parsed = urlparse(url)
        if not parsed.scheme or not parsed.netloc:
            return "<invalid-url>"
        return f"{parsed.scheme}://{parsed.netloc}{parsed.path}"

    async def _get_http_client(self) -> httpx.AsyncClient:
        """
        Get or create the HTTP client for provider network calls.
        """
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(timeout=self.timeout)
            self._owns_http_client = True
        return self._http_client

    @staticmethod
    def _parse_body(response: httpx.Response) -> Any:
        """
        Parse a provider response body.

        Token endpoints that ignore ``Accept`` answer form-encoded; anything
        unparseable is returned as text.
        """
        content_type = response.headers.get("content-type", "")
        if "x-www-form-urlencoded" in content_type or content_type.startswith("text/plain"):
            return dict(parse_qsl(response.text))
        try:
            return response.json()
        except ValueError:
            return response.text

    def get_authorization_url(
        self,
        state: str,
        redirect_uri: str,
        scopes: list[str] | None = None,
    ) -> str:
        """
        Generate the provider authorization URL.

        Args:
            state: CSRF protection state parameter.
            redirect_uri: OAuth callback URL.
            scopes: Scopes to request (defaults to the configured scopes).

        Returns:
            Authorization URL to redirect the user to.

        Raises:
            ValueError: If the authorization endpoint is not configured.
        """
        auth_endpoint = self.config.authorization_endpoint
        if not auth_endpoint:
            raise ValueError(f"Authorization endpoint not configured for {self.provider}")

        requested = scopes if scopes is not None else self.config.scopes
        params = {
            "client_id": self.config.client_id,
            "redirect_uri": redirect_uri,
            "scope": " ".join(requested),
            "response_type": "code",
            "state": state,
        }

        separator = "&" if "?" in auth_endpoint else "?"
        return f"{auth_endpoint}{separator}{urlencode(params)}"

    async def exchange_code(self, code: str, redirect_uri: str) -> AccessTokenResult:
        """
        Exchange an authorization code for tokens.

        Args:
            code: Authorization code from the callback.
            redirect_uri: Callback URL used in the authorization request.

        Returns:
            Access token result.

        Raises:
            IdentityProviderError: If the provider rejects the code or is unreachable.
        """
        return await self._request_token(
            {
                "grant_type": "authorization_code",
                "code": code,
                "redirect_uri": redirect_uri,
            }
        )

    async def refresh_token(self, refresh_token: str) -> AccessTokenResult:
        """
        Obtain a new access token with a refresh token.

        Args:
            refresh_token: Refresh token previously issued by the provider.

        Returns:
            Access token result.

        Raises:
            IdentityProviderError: If the provider rejects the refresh or is unreachable.
        """
        return await self._request_token(
            {
                "grant_type": "refresh_token",
                "refresh_token": refresh_token,
            }
        )

    async def _request_token(self, grant: dict[str, str]) -> AccessTokenResult:
        token_endpoint = self.config.token_endpoint
        if not token_endpoint:
            raise IdentityProviderError(f"Token endpoint not configured for {self.provider}")

        client = await self._get_http_client()
        try:
            response = await client.post(
                token_endpoint,
                data={
                    **grant,
                    "client_id": self.config.client_id,
                    "client_secret": self.config.client_secret,
                },
                headers={"Accept": "application/json"},
            )
        except httpx.HTTPError as e:
            safe_url = self._sanitize_url_for_logs(token_endpoint)
            raise IdentityProviderError(f"Token endpoint unreachable: {safe_url}") from e

        payload = self._parse_body(response)

        if not response.is_success:
            raise IdentityProviderError(
                f"Token request failed (status={response.status_code})",
                status_code=response.status_code,
                payload=payload,
            )

        if not isinstance(payload, dict):
            raise IdentityProviderError(
                "Invalid token response: expected JSON object",
                status_code=response.status_code,
                payload=payload,
            )

        if payload.get("error"):
            raise IdentityProviderError(
                f"Token request rejected: {payload['error']}",
                status_code=response.status_code,
                payload=payload,
            )

        access_token = payload.get("access_token")
        if not access_token:
            raise IdentityProviderError(
                "Token response missing access_token",
                status_code=response.status_code,
                payload=payload,
            )

        logger.debug(
            "[OAuth] token request succeeded",
            extra={"provider": self.provider, "grant_type": grant["grant_type"]},
        )

        return AccessTokenResult(
            access_token=str(access_token),
            refresh_token=payload.get("refresh_token") or None,
            expires_at=self._expires_at(payload),
            token_type=payload.get("token_type"),
            raw=cast(dict[str, Any], payload),
        )

    @staticmethod
    def _expires_at(payload: dict[str, Any], now: float | None = None) -> int | None:
        """
        Compute the absolute expiry of a token response.

        ``expires_in`` is relative. ``expires`` is taken as an absolute epoch
        when it lies in the future and as relative otherwise.
        """
        current = int(time() if now is None else now)
        try:
            if payload.get("expires_in") is not None:
                return current + int(payload["expires_in"])
            if payload.get("expires") is not None:
                expires = int(payload["expires"])
                return expires if expires > current else current + expires
        except (TypeError, ValueError):
            return None
        return None

    async def fetch_profile(self, access_token: str) -> dict[str, Any]:
        """
        Fetch the resource owner profile.

        Args:
            access_token: Access token to authenticate with.

        Returns:
            Raw provider profile, untyped.

        Raises:
            IdentityProviderError: If the profile cannot be fetched or is not a JSON object.
        """
        userinfo_endpoint = self.config.userinfo_endpoint
        if not userinfo_endpoint:
            raise IdentityProviderError(f"Userinfo endpoint not configured for {self.provider}")

        client = await self._get_http_client()
        try:
            response = await client.get(
                userinfo_endpoint,
                headers={
                    "Authorization": f"Bearer {access_token}",
                    "Accept": "application/json",
                },
            )
        except httpx.HTTPError as e:
            safe_url = self._sanitize_url_for_logs(userinfo_endpoint)
            raise IdentityProviderError(f"Userinfo endpoint unreachable: {safe_url}") from e

        payload = self._parse_body(response)

        if not response.is_success:
            raise IdentityProviderError(
                f"Profile request failed (status={response.status_code})",
                status_code=response.status_code,
                payload=payload,
            )

        if not isinstance(payload, dict):
            raise IdentityProviderError(
                "Invalid profile response: expected JSON object",
                status_code=response.status_code,
                payload=payload,
            )

        return payload
