"""
API router modules.

This package contains all route handlers organized by domain.
"""

from . import auth, oauth

__all__ = [
    "auth",
    "oauth",
]
