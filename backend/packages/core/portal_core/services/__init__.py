"""
Service layer.

Business logic services for the application.
"""

from .identity_linker import IdentityLinker, apply_token_result
from .oauth_service import CallbackResult, CallbackStatus, OAuthService, build_redirect_uri
from .oauth_setting_service import OAuthSettingService

__all__ = [
    "OAuthService",
    "CallbackResult",
    "CallbackStatus",
    "build_redirect_uri",
    "IdentityLinker",
    "apply_token_result",
    "OAuthSettingService",
]
