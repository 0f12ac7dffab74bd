"""
Identity linker.

Decides which local user an external identity belongs to, creating the user
and the linked identity when needed.
"""

from datetime import UTC, datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from portal_core import get_logger
from portal_core.auth.providers.base import AccessTokenResult, NormalizedProfile
from portal_core.config import oauth_config
from portal_database.models import User, UserOAuthAccount

logger = get_logger(__name__)


def apply_token_result(account: UserOAuthAccount, tokens: AccessTokenResult) -> None:
    """
    Store freshly issued tokens on a linked identity.

    An existing refresh token is kept when the provider did not issue a new one.

    Args:
        account: Linked identity to update.
        tokens: Token endpoint result.
    """
    account.access_token = tokens.access_token
    if tokens.refresh_token:
        account.refresh_token = tokens.refresh_token
    account.token_expires_at = tokens.expires_at
    account.updated_at = datetime.now(UTC)


class IdentityLinker:
    """
    Find-or-create logic for users and their linked identities.

    New identities are added to the session; the caller commits.
    """

    def __init__(
        self, session: AsyncSession, require_verified_email: bool | None = None
    ) -> None:
        """
        Initialize identity linker.

        Args:
            session: Database session used for lookups.
            require_verified_email: Refuse to attach an identity to an existing
                user by email when the provider reports the email unverified.
        """
        self.session = session
        self.require_verified_email = (
            oauth_config.require_verified_email_for_linking
            if require_verified_email is None
            else require_verified_email
        )

    async def find_linked_identity(
        self, provider: str, remote_user_id: str
    ) -> UserOAuthAccount | None:
        """Get the identity linked for (provider, remote user ID)."""
        stmt = select(UserOAuthAccount).where(
            UserOAuthAccount.provider == provider,
            UserOAuthAccount.remote_user_id == remote_user_id,
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def find_user_by_email(self, email: str) -> User | None:
        """Get a user by exact email."""
        result = await self.session.execute(select(User).where(User.email == email))
        return result.scalar_one_or_none()

    async def link_or_create(
        self, provider: str, profile: NormalizedProfile, tokens: AccessTokenResult
    ) -> User | None:
        """
        Resolve the local user for an external identity.

        Args:
            provider: Provider name.
            profile: Normalized provider profile.
            tokens: Tokens issued for this login.

        Returns:
            The owning user, or None when no account can be provisioned
            (no email and no existing link, or an unverified email that
            matches another account).
        """
        account = await self.find_linked_identity(provider, profile.remote_user_id)

        if account is not None:
            account.remote_email = profile.email
            account.remote_name = profile.name
            account.remote_avatar_url = profile.avatar_url
            apply_token_result(account, tokens)
            return account.user

        user = None
        if profile.email:
            user = await self.find_user_by_email(profile.email)

        if user is not None and self.require_verified_email and profile.email_verified is False:
            logger.warning(
                "[OAuth] refusing to link unverified email to existing account",
                extra={"provider": provider, "user_id": user.id},
            )
            return None

        if user is None:
            if not profile.email:
                logger.info(
                    "[OAuth] cannot provision account without email",
                    extra={"provider": provider},
                )
                return None

            user = User(email=profile.email, name=profile.name or profile.email, is_active=True)
            logger.info("[OAuth] provisioning new user", extra={"provider": provider})

        account = UserOAuthAccount(
            provider=provider,
            remote_user_id=profile.remote_user_id,
            remote_email=profile.email,
            remote_name=profile.name,
            remote_avatar_url=profile.avatar_url,
            access_token=tokens.access_token,
            refresh_token=tokens.refresh_token,
            token_expires_at=tokens.expires_at,
        )
        account.user = user
        self.session.add(account)

        return user
