"""
Provider profile normalization.

Every provider returns its own userinfo shape. The canonical fields are
found by probing an ordered list of known key aliases; the first present,
non-empty value wins. Keys are matched exactly.
"""

from collections.abc import Mapping
from typing import Any

from .base import MalformedProfileError, NormalizedProfile

REMOTE_USER_ID_ALIASES = ("id", "sub", "user_id", "uid")
EMAIL_ALIASES = ("email", "mail", "user_email", "primary_email")
NAME_ALIASES = ("name", "display_name", "full_name", "given_name")
AVATAR_URL_ALIASES = ("picture", "avatar_url", "avatar", "profile_picture")
EMAIL_VERIFIED_ALIASES = ("email_verified", "verified_email")


def _coerce(value: Any) -> str | None:
    # bool is an int subclass but never an identifier
    if isinstance(value, bool):
        return None
    if isinstance(value, str):
        return value or None
    if isinstance(value, int | float):
        return str(value)
    return None


def first_match(data: Mapping[str, Any], aliases: tuple[str, ...]) -> str | None:
    """
    Return the first alias value usable as a string.

    Args:
        data: Raw provider profile.
        aliases: Keys to probe, in priority order.

    Returns:
        The stringified value, or None when no alias matched.
    """
    for alias in aliases:
        if alias in data:
            value = _coerce(data[alias])
            if value is not None:
                return value
    return None


def _email_verified(data: Mapping[str, Any]) -> bool | None:
    for alias in EMAIL_VERIFIED_ALIASES:
        value = data.get(alias)
        if isinstance(value, bool):
            return value
        if isinstance(value, str) and value.lower() in ("true", "false"):
            return value.lower() == "true"
    return None


def normalize_profile(data: Mapping[str, Any]) -> NormalizedProfile:
    """
    Extract the canonical identity from a raw provider profile.

    Args:
        data: Userinfo JSON object returned by the provider.

    Returns:
        Normalized profile.

    Raises:
        MalformedProfileError: If no user identifier alias is present.
    """
    remote_user_id = first_match(data, REMOTE_USER_ID_ALIASES)
    if remote_user_id is None:
        raise MalformedProfileError("Unable to extract user ID from OAuth profile")

    return NormalizedProfile(
        remote_user_id=remote_user_id,
        email=first_match(data, EMAIL_ALIASES),
        name=first_match(data, NAME_ALIASES),
        avatar_url=first_match(data, AVATAR_URL_ALIASES),
        email_verified=_email_verified(data),
    )
