"""
OAuth service.

Handles the two-step OAuth login (authorization redirect, then callback),
state-token validation, account linking and token refresh.
"""

from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum
from secrets import compare_digest, token_hex

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from portal_core import get_logger
from portal_core.auth.providers import (
    AccessTokenResult,
    IdentityProviderError,
    MalformedProfileError,
    NormalizedProfile,
    OAuth2Provider,
    normalize_profile,
)
from portal_core.config import OAuthConfig, oauth_config
from portal_core.redis_keys import RedisKeys
from portal_core.schemas.oauth import ProviderConfig
from portal_core.session_store import SessionStore
from portal_database.models import User, UserOAuthAccount

from .identity_linker import IdentityLinker, apply_token_result
from .oauth_setting_service import OAuthSettingService

logger = get_logger(__name__)

CALLBACK_PATH = "/oauth/callback/{provider}"

ProviderClientFactory = Callable[[ProviderConfig, float], OAuth2Provider]


class CallbackStatus(str, Enum):
    """Terminal outcome of an OAuth callback."""

    UNAVAILABLE = "unavailable"  # Provider unknown or disabled
    REJECTED = "rejected"  # Any state, provider or provisioning failure
    COMPLETED = "completed"  # Session now logged in


@dataclass
class CallbackResult:
    """Result of completing an OAuth callback."""

    status: CallbackStatus
    user: User | None = None


def build_redirect_uri(base_url: str, provider: str) -> str:
    """
    Build the OAuth callback URL for a provider.

    Args:
        base_url: Scheme and authority of the current request.
        provider: Provider name.

    Returns:
        Absolute callback URL.
    """
    return base_url.rstrip("/") + CALLBACK_PATH.format(provider=provider)


def _default_client_factory(config: ProviderConfig, timeout: float) -> OAuth2Provider:
    return OAuth2Provider(config, timeout=timeout)


class OAuthService:
    """OAuth login service."""

    def __init__(
        self,
        session: AsyncSession,
        config: OAuthConfig | None = None,
        client_factory: ProviderClientFactory | None = None,
    ) -> None:
        """
        Initialize OAuth service.

        Args:
            session: Database session.
            config: OAuth engine configuration.
            client_factory: Builds a provider client from a configuration.
        """
        self.session = session
        self.config = config or oauth_config
        self.client_factory = client_factory or _default_client_factory
        self.settings = OAuthSettingService(session, self.config.default_scope)
        self.linker = IdentityLinker(session, self.config.require_verified_email_for_linking)

    async def get_available_providers(self) -> list[str]:
        """List providers users can sign in with."""
        return await self.settings.list_enabled_providers()

    async def is_enabled(self) -> bool:
        """Check whether at least one provider is enabled."""
        return bool(await self.get_available_providers())

    async def initiate(
        self, provider: str, session_store: SessionStore, base_url: str
    ) -> str | None:
        """
        Start an OAuth login.

        Issues a fresh state token bound to the browser session and provider.

        Args:
            provider: Provider name.
            session_store: Browser session of the caller.
            base_url: Scheme and authority of the current request.

        Returns:
            Provider authorization URL, or None if the provider is unavailable.

        Raises:
            ValueError: If the authorization URL cannot be built.
        """
        config = await self.settings.resolve(provider)
        if config is None:
            return None

        state = token_hex(16)
        client = self.client_factory(config, self.config.http_timeout_seconds)
        auth_url = client.get_authorization_url(
            state=state, redirect_uri=build_redirect_uri(base_url, provider)
        )

        await session_store.set(RedisKeys.oauth_state_field(provider), state)
        return auth_url

    async def complete(
        self,
        provider: str,
        session_store: SessionStore,
        base_url: str,
        state: str | None,
        code: str | None,
        error: str | None = None,
    ) -> CallbackResult:
        """
        Finish an OAuth login from the provider callback.

        The stored state is consumed before anything else is checked, so a
        callback URL can be used at most once. A completed login moves the
        browser session to a new session ID.

        Args:
            provider: Provider name.
            session_store: Browser session of the caller.
            base_url: Scheme and authority of the current request.
            state: ``state`` query parameter.
            code: ``code`` query parameter.
            error: ``error`` query parameter set by the provider.

        Returns:
            Callback result; COMPLETED carries the logged-in user.
        """
        config = await self.settings.resolve(provider)
        if config is None:
            return CallbackResult(CallbackStatus.UNAVAILABLE)

        expected_state = await session_store.pop(RedisKeys.oauth_state_field(provider))
        if not expected_state or not compare_digest(
            expected_state.encode("utf-8"), (state or "").encode("utf-8")
        ):
            logger.warning("[OAuth] callback state mismatch", extra={"provider": provider})
            return CallbackResult(CallbackStatus.REJECTED)

        if error:
            logger.info(
                "[OAuth] provider returned an error", extra={"provider": provider, "error": error}
            )
            return CallbackResult(CallbackStatus.REJECTED)

        if not code:
            logger.info("[OAuth] callback without authorization code", extra={"provider": provider})
            return CallbackResult(CallbackStatus.REJECTED)

        try:
            async with self.client_factory(config, self.config.http_timeout_seconds) as client:
                tokens = await client.exchange_code(code, build_redirect_uri(base_url, provider))
                raw_profile = await client.fetch_profile(tokens.access_token)
            profile = normalize_profile(raw_profile)
        except IdentityProviderError as e:
            logger.warning(
                "[OAuth] identity provider request failed",
                extra={"provider": provider, "reason": str(e), "status_code": e.status_code},
            )
            return CallbackResult(CallbackStatus.REJECTED)
        except MalformedProfileError:
            logger.exception("[OAuth] provider profile has no user ID", extra={"provider": provider})
            return CallbackResult(CallbackStatus.REJECTED)

        user = await self._link_and_persist(provider, profile, tokens)
        if user is None:
            return CallbackResult(CallbackStatus.REJECTED)

        # Logged-in sessions never reuse a pre-login session ID
        await session_store.regenerate()
        await session_store.set_current_user(user.id)
        await session_store.mark_login_complete()

        logger.info("[OAuth] login completed", extra={"provider": provider, "user_id": user.id})
        return CallbackResult(CallbackStatus.COMPLETED, user)

    async def _link_and_persist(
        self, provider: str, profile: NormalizedProfile, tokens: AccessTokenResult
    ) -> User | None:
        """
        Link the identity and commit, retrying once after a uniqueness race.

        A concurrent first login for the same identity or email makes the
        insert fail; the retry then finds the row the other request created.
        """
        for attempt in range(2):
            user = await self.linker.link_or_create(provider, profile, tokens)
            if user is None:
                return None

            if not user.is_active:
                logger.warning(
                    "[OAuth] login refused for disabled account",
                    extra={"provider": provider, "user_id": user.id},
                )
                await self.session.rollback()
                return None

            user.last_login_at = datetime.now(UTC)
            self.session.add(user)
            try:
                await self.session.commit()
            except IntegrityError:
                await self.session.rollback()
                logger.warning(
                    "[OAuth] concurrent account link detected",
                    extra={"provider": provider, "attempt": attempt + 1},
                )
                continue
            return user

        return None

    async def refresh_access_token(self, account: UserOAuthAccount) -> bool:
        """
        Refresh the access token of a linked identity if it has expired.

        Args:
            account: Linked identity.

        Returns:
            True if a new token was stored, False if nothing needed doing.

        Raises:
            IdentityProviderError: If the provider rejects the refresh.
        """
        if not account.is_token_expired() or not account.refresh_token:
            return False

        config = await self.settings.resolve(account.provider)
        if config is None:
            return False

        async with self.client_factory(config, self.config.http_timeout_seconds) as client:
            tokens = await client.refresh_token(account.refresh_token)

        apply_token_result(account, tokens)
        await self.session.commit()

        logger.info("[OAuth] access token refreshed", extra={"provider": account.provider})
        return True
