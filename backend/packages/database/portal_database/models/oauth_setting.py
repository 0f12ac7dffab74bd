"""
OAuth provider setting model.
"""

from sqlalchemy import Boolean, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, TimestampMixin


class OAuthSetting(Base, TimestampMixin):
    """
    OAuth provider setting model.

    Stores one registered provider configuration per provider name.
    """

    __tablename__ = "oauth_settings"

    provider: Mapped[str] = mapped_column(String(50), primary_key=True)
    enabled: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    client_id: Mapped[str] = mapped_column(String(500), default="", nullable=False)
    client_secret: Mapped[str] = mapped_column(Text, default="", nullable=False)
    authorization_endpoint: Mapped[str | None] = mapped_column(String(500))
    token_endpoint: Mapped[str | None] = mapped_column(String(500))
    userinfo_endpoint: Mapped[str | None] = mapped_column(String(500))
    scope: Mapped[str | None] = mapped_column(String(500))

    def __str__(self) -> str:
        return f"{self.provider} ({'enabled' if self.enabled else 'disabled'})"
