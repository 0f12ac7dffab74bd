"""
Database models package.

This module exports all SQLAlchemy models for the Portal application.
"""

from .base import Base, TimestampMixin
from .oauth_setting import OAuthSetting
from .user import User
from .user_oauth_account import UserOAuthAccount

__all__ = [
    "Base",
    "TimestampMixin",
    "User",
    "UserOAuthAccount",
    "OAuthSetting",
]
