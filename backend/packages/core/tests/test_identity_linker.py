"""Tests for linking external identities to local users."""

import pytest
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from portal_core.auth.providers.base import AccessTokenResult, NormalizedProfile
from portal_core.services.identity_linker import IdentityLinker, apply_token_result
from portal_database.models import User, UserOAuthAccount


async def _link(
    db_session: AsyncSession,
    profile: NormalizedProfile,
    tokens: AccessTokenResult | None = None,
    provider: str = "google",
    require_verified_email: bool = True,
) -> User | None:
    linker = IdentityLinker(db_session, require_verified_email=require_verified_email)
    user = await linker.link_or_create(
        provider, profile, tokens or AccessTokenResult(access_token="tok1")
    )
    await db_session.commit()
    return user


async def _accounts(db_session: AsyncSession) -> list[UserOAuthAccount]:
    result = await db_session.execute(select(UserOAuthAccount))
    return list(result.scalars().all())


async def _users(db_session: AsyncSession) -> list[User]:
    result = await db_session.execute(select(User))
    return list(result.scalars().all())


@pytest.mark.asyncio
async def test_creates_user_and_identity_for_new_email(db_session: AsyncSession) -> None:
    user = await _link(
        db_session,
        NormalizedProfile(remote_user_id="999", email="new@user.com", name="New User"),
        AccessTokenResult(access_token="tok1", refresh_token="ref1", expires_at=2_000_000_000),
    )

    assert user is not None
    assert user.email == "new@user.com"
    assert user.name == "New User"
    assert user.is_active is True

    accounts = await _accounts(db_session)
    assert len(accounts) == 1
    account = accounts[0]
    assert account.user_id == user.id
    assert account.remote_user_id == "999"
    assert account.remote_email == "new@user.com"
    assert account.access_token == "tok1"
    assert account.refresh_token == "ref1"
    assert account.token_expires_at == 2_000_000_000


@pytest.mark.asyncio
async def test_new_user_name_falls_back_to_email(db_session: AsyncSession) -> None:
    user = await _link(db_session, NormalizedProfile(remote_user_id="1", email="a@b.com"))

    assert user is not None
    assert user.name == "a@b.com"


@pytest.mark.asyncio
async def test_relogin_updates_existing_identity(db_session: AsyncSession) -> None:
    first = await _link(
        db_session,
        NormalizedProfile(
            remote_user_id="999",
            email="new@user.com",
            name="Old Name",
            avatar_url="https://a.example/old.png",
        ),
        AccessTokenResult(access_token="tok1", refresh_token="ref1", expires_at=100),
    )

    second = await _link(
        db_session,
        NormalizedProfile(remote_user_id="999", email="changed@user.com"),
        AccessTokenResult(access_token="tok2"),
    )

    assert first is not None and second is not None
    assert second.id == first.id
    assert len(await _users(db_session)) == 1

    accounts = await _accounts(db_session)
    assert len(accounts) == 1
    account = accounts[0]
    assert account.access_token == "tok2"
    assert account.refresh_token == "ref1"
    assert account.token_expires_at is None
    assert account.remote_email == "changed@user.com"
    assert account.remote_name is None
    assert account.remote_avatar_url is None


@pytest.mark.asyncio
async def test_existing_identity_wins_over_email_match(
    db_session: AsyncSession, test_user: User
) -> None:
    owner = await _link(db_session, NormalizedProfile(remote_user_id="999", email="new@user.com"))

    # Provider now reports the email of a different local user
    user = await _link(
        db_session, NormalizedProfile(remote_user_id="999", email="test@example.com")
    )

    assert owner is not None and user is not None
    assert user.id == owner.id
    assert user.id != test_user.id


@pytest.mark.asyncio
async def test_links_identity_to_user_with_same_email(
    db_session: AsyncSession, test_user: User
) -> None:
    user = await _link(
        db_session,
        NormalizedProfile(remote_user_id="g-1", email="test@example.com", email_verified=True),
    )

    assert user is not None
    assert user.id == test_user.id
    assert user.name == "Test User"
    assert len(await _users(db_session)) == 1
    assert [account.user_id for account in await _accounts(db_session)] == [test_user.id]


@pytest.mark.asyncio
async def test_same_user_can_link_several_providers(
    db_session: AsyncSession, test_user: User
) -> None:
    await _link(
        db_session,
        NormalizedProfile(remote_user_id="g-1", email="test@example.com"),
        provider="google",
    )
    await _link(
        db_session,
        NormalizedProfile(remote_user_id="42", email="test@example.com"),
        provider="github",
    )

    accounts = await _accounts(db_session)
    assert sorted(account.provider for account in accounts) == ["github", "google"]
    assert {account.user_id for account in accounts} == {test_user.id}


@pytest.mark.asyncio
async def test_unverified_email_does_not_merge_into_existing_user(
    db_session: AsyncSession, test_user: User
) -> None:
    user = await _link(
        db_session,
        NormalizedProfile(remote_user_id="g-1", email="test@example.com", email_verified=False),
    )

    assert user is None
    assert await _accounts(db_session) == []


@pytest.mark.asyncio
async def test_unverified_email_merges_when_check_disabled(
    db_session: AsyncSession, test_user: User
) -> None:
    user = await _link(
        db_session,
        NormalizedProfile(remote_user_id="g-1", email="test@example.com", email_verified=False),
        require_verified_email=False,
    )

    assert user is not None
    assert user.id == test_user.id


@pytest.mark.asyncio
async def test_unverified_email_still_creates_new_user(db_session: AsyncSession) -> None:
    user = await _link(
        db_session,
        NormalizedProfile(remote_user_id="g-1", email="fresh@example.com", email_verified=False),
    )

    assert user is not None
    assert user.email == "fresh@example.com"


@pytest.mark.asyncio
async def test_no_email_and_no_identity_returns_none(db_session: AsyncSession) -> None:
    user = await _link(db_session, NormalizedProfile(remote_user_id="42"))

    assert user is None
    assert await _users(db_session) == []
    assert await _accounts(db_session) == []


@pytest.mark.asyncio
async def test_no_email_relogin_uses_existing_identity(db_session: AsyncSession) -> None:
    first = await _link(db_session, NormalizedProfile(remote_user_id="42", email="a@b.com"))
    second = await _link(db_session, NormalizedProfile(remote_user_id="42"))

    assert first is not None and second is not None
    assert second.id == first.id


def test_apply_token_result_keeps_refresh_token_when_not_reissued() -> None:
    account = UserOAuthAccount(
        provider="google",
        remote_user_id="1",
        access_token="old",
        refresh_token="ref1",
        token_expires_at=100,
    )

    apply_token_result(account, AccessTokenResult(access_token="new", expires_at=200))
    assert account.access_token == "new"
    assert account.refresh_token == "ref1"
    assert account.token_expires_at == 200

    apply_token_result(account, AccessTokenResult(access_token="newer", refresh_token="ref2"))
    assert account.refresh_token == "ref2"
    assert account.token_expires_at is None


def test_token_expiry_check() -> None:
    account = UserOAuthAccount(
        provider="google", remote_user_id="1", access_token="t", token_expires_at=100
    )

    assert account.is_token_expired(now=101) is True
    assert account.is_token_expired(now=100) is False

    account.token_expires_at = None
    assert account.is_token_expired(now=10**12) is False
