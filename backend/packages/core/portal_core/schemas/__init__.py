"""
Pydantic schemas for API requests and responses.
"""

from .oauth import OAuthProvidersResponse, ProviderConfig
from .user import LinkedAccountResponse, UserResponse

__all__ = [
    # OAuth
    "ProviderConfig",
    "OAuthProvidersResponse",
    # User
    "UserResponse",
    "LinkedAccountResponse",
]
