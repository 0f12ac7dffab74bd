"""
Authentication utilities.

Provides the OAuth 2.0 provider client and profile normalization.
"""

from .providers import (
    AccessTokenResult,
    IdentityProviderError,
    MalformedProfileError,
    NormalizedProfile,
    OAuth2Provider,
    normalize_profile,
    parse_scopes,
)

__all__ = [
    "AccessTokenResult",
    "IdentityProviderError",
    "MalformedProfileError",
    "NormalizedProfile",
    "OAuth2Provider",
    "normalize_profile",
    "parse_scopes",
]
