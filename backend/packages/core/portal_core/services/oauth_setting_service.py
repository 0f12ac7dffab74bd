"""
OAuth setting service.

Resolves registered OAuth provider configurations.
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from portal_core.auth.providers.oauth2_provider import parse_scopes
from portal_core.config import oauth_config
from portal_core.schemas.oauth import ProviderConfig
from portal_database.models.oauth_setting import OAuthSetting


class OAuthSettingService:
    """Service for OAuth provider settings."""

    def __init__(self, session: AsyncSession, default_scope: str | None = None) -> None:
        """
        Initialize OAuth setting service.

        Args:
            session: Database session.
            default_scope: Scope string for providers without one configured.
        """
        self.session = session
        self.default_scope = default_scope or oauth_config.default_scope

    async def get_setting(self, provider: str) -> OAuthSetting | None:
        """
        Get the stored setting of a provider.

        Args:
            provider: Provider name.

        Returns:
            Setting, or None if the provider was never registered.
        """
        result = await self.session.execute(
            select(OAuthSetting).where(OAuthSetting.provider == provider)
        )
        return result.scalar_one_or_none()

    async def resolve(self, provider: str) -> ProviderConfig | None:
        """
        Resolve the configuration of an available provider.

        Unregistered and disabled providers are both reported as None.

        Args:
            provider: Provider name.

        Returns:
            Provider configuration, or None if the provider is unavailable.
        """
        setting = await self.get_setting(provider)
        if setting is None or not setting.enabled:
            return None

        return ProviderConfig(
            provider=setting.provider,
            enabled=setting.enabled,
            client_id=setting.client_id,
            client_secret=setting.client_secret,
            authorization_endpoint=setting.authorization_endpoint,
            token_endpoint=setting.token_endpoint,
            userinfo_endpoint=setting.userinfo_endpoint,
            scopes=parse_scopes(setting.scope, self.default_scope),
        )

    async def list_enabled_providers(self) -> list[str]:
        """
        List enabled provider names.

        Returns:
            Provider names in alphabetical order.
        """
        result = await self.session.execute(
            select(OAuthSetting.provider)
            .where(OAuthSetting.enabled.is_(True))
            .order_by(OAuthSetting.provider)
        )
        return list(result.scalars().all())

    async def save_setting(
        self,
        provider: str,
        *,
        enabled: bool,
        client_id: str,
        client_secret: str,
        authorization_endpoint: str | None = None,
        token_endpoint: str | None = None,
        userinfo_endpoint: str | None = None,
        scope: str | None = None,
    ) -> OAuthSetting:
        """
        Create or update a provider setting.

        Args:
            provider: Provider name.
            enabled: Whether the provider can be used to sign in.
            client_id: OAuth client ID.
            client_secret: OAuth client secret.
            authorization_endpoint: Authorization URL.
            token_endpoint: Token URL.
            userinfo_endpoint: Userinfo URL.
            scope: Space-separated scopes.

        Returns:
            Updated setting.
        """
        setting = await self.get_setting(provider)
        if setting is None:
            setting = OAuthSetting(provider=provider)
            self.session.add(setting)

        setting.enabled = enabled
        setting.client_id = client_id
        setting.client_secret = client_secret
        setting.authorization_endpoint = authorization_endpoint
        setting.token_endpoint = token_endpoint
        setting.userinfo_endpoint = userinfo_endpoint
        setting.scope = scope

        await self.session.commit()
        await self.session.refresh(setting)
        return setting
