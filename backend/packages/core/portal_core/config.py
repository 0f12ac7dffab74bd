"""
OAuth federation configuration.

This module provides configuration settings for the OAuth engine loaded
from environment variables.
"""

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

# Find .env file in project root
_env_file = Path(__file__).parent.parent.parent.parent.parent / ".env"


class OAuthConfig(BaseSettings):
    """
    OAuth engine configuration from environment variables.

    All settings are prefixed with OAUTH_ in environment.
    """

    model_config = SettingsConfigDict(
        env_prefix="OAUTH_",
        env_file=str(_env_file) if _env_file.exists() else None,
        env_file_encoding="utf-8",
        extra="ignore",
    )

    default_scope: str = "openid email profile"  # Used when a provider has no scope configured
    http_timeout_seconds: float = 10.0  # Per outbound call (token exchange, userinfo, refresh)
    login_redirect_url: str = "/login"  # Destination for every rejected callback
    dashboard_redirect_url: str = "/dashboard"  # Destination after a completed login
    require_verified_email_for_linking: bool = True


# Global instance
oauth_config = OAuthConfig()
