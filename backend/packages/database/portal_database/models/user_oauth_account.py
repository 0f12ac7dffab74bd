"""
User OAuth account model definition.

This module defines the UserOAuthAccount model linking a local user to an
identity held at an external OAuth provider (Google, GitHub, generic OIDC).
"""

from time import time
from typing import TYPE_CHECKING

from sqlalchemy import ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, TimestampMixin, generate_uuid

if TYPE_CHECKING:
    from .user import User


class UserOAuthAccount(Base, TimestampMixin):
    """
    Linked external identity.

    At most one row exists per (provider, remote_user_id); a user may own one
    row per provider.

    Attributes:
        id: Unique mapping identifier (UUID).
        user_id: Owning user (foreign key to users, cascade delete).
        provider: Provider name (google, github, ...).
        remote_user_id: User ID at the provider. Never changes after creation.
        remote_email: Email reported by the provider at the last login.
        remote_name: Display name reported by the provider at the last login.
        remote_avatar_url: Avatar URL reported by the provider at the last login.
        access_token: Latest OAuth access token.
        refresh_token: Latest OAuth refresh token, if the provider issued one.
        token_expires_at: Access token expiry as epoch seconds.
    """

    __tablename__ = "user_oauth_accounts"
    __table_args__ = (
        UniqueConstraint("provider", "remote_user_id", name="uq_oauth_provider_remote_user"),
    )

    # Primary key
    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)

    # Foreign key
    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )

    # Provider identity
    provider: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    remote_user_id: Mapped[str] = mapped_column(String(255), nullable=False)

    # Profile snapshot, refreshed on every login
    remote_email: Mapped[str | None] = mapped_column(String(255))
    remote_name: Mapped[str | None] = mapped_column(String(255))
    remote_avatar_url: Mapped[str | None] = mapped_column(Text)

    # Tokens
    access_token: Mapped[str] = mapped_column(Text, nullable=False)
    refresh_token: Mapped[str | None] = mapped_column(Text)
    token_expires_at: Mapped[int | None] = mapped_column(Integer)

    # Relationships
    user: Mapped["User"] = relationship(back_populates="oauth_accounts", lazy="selectin")

    def __str__(self) -> str:
        return f"{self.provider} ({self.remote_email or self.remote_user_id})"

    def is_token_expired(self, now: float | None = None) -> bool:
        """
        Check whether the stored access token has expired.

        Args:
            now: Current epoch time (defaults to the system clock).

        Returns:
            False when no expiry is known, otherwise whether it has passed.
        """
        if self.token_expires_at is None:
            return False
        current = time() if now is None else now
        return current > self.token_expires_at
