"""
User schemas.

Response models for user-related operations.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict


class LinkedAccountResponse(BaseModel):
    """Linked external identity, without its tokens."""

    model_config = ConfigDict(from_attributes=True)

    provider: str
    remote_user_id: str
    remote_email: str | None = None
    remote_name: str | None = None
    remote_avatar_url: str | None = None


class UserResponse(BaseModel):
    """User response model."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    email: str
    name: str
    avatar_url: str | None = None
    is_active: bool
    created_at: datetime | None = None
    last_login_at: datetime | None = None
    oauth_accounts: list[LinkedAccountResponse] = []
