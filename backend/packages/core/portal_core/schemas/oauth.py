"""
OAuth schemas.

Provider configuration and response models for OAuth federation.
"""

from pydantic import BaseModel, ConfigDict, Field


class ProviderConfig(BaseModel):
    """
    Resolved configuration of one registered OAuth provider.

    Read-only to the OAuth engine; built from the stored provider setting.
    """

    model_config = ConfigDict(frozen=True)

    provider: str
    enabled: bool = False
    client_id: str
    client_secret: str
    authorization_endpoint: str | None = None
    token_endpoint: str | None = None
    userinfo_endpoint: str | None = None
    scopes: list[str] = Field(default_factory=list)


class OAuthProvidersResponse(BaseModel):
    """Enabled OAuth providers, as shown on the login page."""

    oauth_enabled: bool
    providers: list[str]
