"""
OAuth providers package.

This package provides the generic OAuth 2.0 client and profile normalization.
"""

from .base import (
    AccessTokenResult,
    IdentityProviderError,
    MalformedProfileError,
    NormalizedProfile,
)
from .oauth2_provider import OAuth2Provider, parse_scopes
from .profile import normalize_profile

__all__ = [
    "AccessTokenResult",
    "IdentityProviderError",
    "MalformedProfileError",
    "NormalizedProfile",
    "OAuth2Provider",
    "parse_scopes",
    "normalize_profile",
]
