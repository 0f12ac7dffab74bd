"""
Portal Database Package.

This package contains SQLAlchemy models and async session management
for the Portal application.
"""

from .models import Base, OAuthSetting, User, UserOAuthAccount

__all__ = ["Base", "OAuthSetting", "User", "UserOAuthAccount"]
