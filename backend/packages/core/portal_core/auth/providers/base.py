"""
Base OAuth types.

This module defines the results and errors shared by the OAuth client,
the profile normalizer and the identity linker.
"""

from dataclasses import dataclass, field
from typing import Any


class IdentityProviderError(ValueError):
    """
    Raised when an identity provider rejects a request or cannot be reached.

    Attributes:
        status_code: HTTP status returned by the provider, if any.
        payload: Provider response body (parsed JSON or raw text).
    """

    def __init__(
        self, message: str, *, status_code: int | None = None, payload: Any = None
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.payload = payload


class MalformedProfileError(ValueError):
    """Raised when a provider profile carries no usable user identifier."""


@dataclass
class AccessTokenResult:
    """Tokens returned by a token endpoint."""

    access_token: str
    refresh_token: str | None = None
    expires_at: int | None = None  # Epoch seconds
    token_type: str | None = None
    raw: dict[str, Any] = field(default_factory=dict, repr=False)


@dataclass
class NormalizedProfile:
    """Canonical identity extracted from a provider profile."""

    remote_user_id: str
    email: str | None = None
    name: str | None = None
    avatar_url: str | None = None
    email_verified: bool | None = None  # None when the provider did not say
