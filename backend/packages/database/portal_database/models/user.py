"""
User model definition.

This module defines the User model, the local account that external
identities are linked to.
"""

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, DateTime, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, TimestampMixin, generate_uuid

if TYPE_CHECKING:
    from .user_oauth_account import UserOAuthAccount


class User(Base, TimestampMixin):
    """
    Local user account.

    Attributes:
        id: Unique user identifier (UUID).
        email: Unique email address.
        name: Display name.
        avatar_url: Optional avatar image URL.
        is_active: Whether the account may sign in.
        last_login_at: Timestamp of the most recent completed login.
    """

    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    avatar_url: Mapped[str | None] = mapped_column(String(500))
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    last_login_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    # Relationships
    oauth_accounts: Mapped[list["UserOAuthAccount"]] = relationship(
        back_populates="user",
        cascade="all, delete-orphan",
        lazy="selectin",
    )
