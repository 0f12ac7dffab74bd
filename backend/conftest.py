"""Global pytest fixtures for testing."""

import contextlib
import os
from collections.abc import AsyncGenerator
from typing import Any

import dotenv
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from portal_api.main import app
from portal_database import Base
from portal_database.models import OAuthSetting, User
from portal_database.session import get_session

with contextlib.suppress(OSError):
    dotenv.load_dotenv()


class MockRedis:
    """In-memory stand-in for the async Redis client."""

    def __init__(self):
        self._store: dict[str, Any] = {}
        self._ttl: dict[str, int] = {}

    async def setex(self, key: str, ttl_seconds: int, value: Any) -> bool:
        self._store[key] = value
        self._ttl[key] = ttl_seconds
        return True

    async def exists(self, key: str) -> int:
        return 1 if key in self._store else 0

    async def get(self, key: str) -> Any:
        return self._store.get(key)

    async def delete(self, *keys: str) -> int:
        deleted = 0
        for key in keys:
            if key in self._store:
                deleted += 1
                self._store.pop(key, None)
                self._ttl.pop(key, None)
        return deleted

    async def ttl(self, key: str) -> int:
        return self._ttl.get(key, -1)

    def pipeline(self, transaction: bool = True) -> "MockRedisPipeline":
        return MockRedisPipeline(self)

    def reset(self) -> None:
        """Reset all in-memory redis state."""
        self._store.clear()
        self._ttl.clear()

    def seed(self, key: str, value: Any, ttl_seconds: int | None = None) -> None:
        """Seed redis key/value directly for tests."""
        self._store[key] = value
        if ttl_seconds is not None:
            self._ttl[key] = ttl_seconds

    def has_key(self, key: str) -> bool:
        """Return whether key exists in mock store."""
        return key in self._store


class MockRedisPipeline:
    """Minimal async Redis pipeline; commands run in order on execute."""

    def __init__(self, redis: MockRedis):
        self._redis = redis
        self._commands: list[tuple[str, tuple[Any, ...]]] = []

    async def __aenter__(self) -> "MockRedisPipeline":
        return self

    async def __aexit__(self, *_exc_info: object) -> None:
        self._commands.clear()

    def get(self, key: str) -> "MockRedisPipeline":
        self._commands.append(("get", (key,)))
        return self

    def delete(self, *keys: str) -> "MockRedisPipeline":
        self._commands.append(("delete", keys))
        return self

    async def execute(self) -> list[Any]:
        results: list[Any] = []
        for command_name, args in self._commands:
            method = getattr(self._redis, command_name)
            results.append(await method(*args))
        self._commands.clear()
        return results


# Global mock redis instance for testing
mock_redis = MockRedis()

# Test database URL - in-memory SQLite unless TEST_DATABASE_URL is set
TEST_DATABASE_URL = os.getenv("TEST_DATABASE_URL", "sqlite+aiosqlite:///:memory:")

# Safety check: ensure tests only run on a test database
if ":memory:" not in TEST_DATABASE_URL and "test" not in TEST_DATABASE_URL:
    raise RuntimeError(
        f"Safety check failed: TEST_DATABASE_URL must point to a test database "
        f"(name should contain 'test'). Current: {TEST_DATABASE_URL}"
    )


@pytest_asyncio.fixture
async def test_engine() -> AsyncGenerator[AsyncEngine, None]:
    """Create a test database engine with a fresh schema."""
    engine_kwargs: dict[str, Any] = {"echo": False}
    if TEST_DATABASE_URL.startswith("sqlite"):
        # One shared connection so every session sees the same in-memory database
        engine_kwargs["poolclass"] = StaticPool
        engine_kwargs["connect_args"] = {"check_same_thread": False}

    engine = create_async_engine(TEST_DATABASE_URL, **engine_kwargs)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(test_engine: AsyncEngine) -> AsyncGenerator[AsyncSession, None]:
    """Create a database session for each test."""
    async_session = async_sessionmaker(
        bind=test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with async_session() as session:
        yield session


@pytest_asyncio.fixture
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Create test HTTP client with database and redis overrides."""
    from portal_api.dependencies import get_redis_pool

    async def override_get_session():
        yield db_session

    async def override_get_redis_pool():
        return mock_redis

    app.dependency_overrides[get_session] = override_get_session
    app.dependency_overrides[get_redis_pool] = override_get_redis_pool

    # Reset mock redis state before each test
    mock_redis.reset()

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def test_mock_redis() -> MockRedis:
    """Provide a clean mock redis instance."""
    mock_redis.reset()
    return mock_redis


@pytest_asyncio.fixture
async def test_user(db_session: AsyncSession) -> User:
    """Create a test user registered without any linked identity."""
    user = User(email="test@example.com", name="Test User", is_active=True)
    db_session.add(user)
    await db_session.commit()
    await db_session.refresh(user)
    return user


@pytest_asyncio.fixture
async def google_setting(db_session: AsyncSession) -> OAuthSetting:
    """Register an enabled Google provider."""
    setting = OAuthSetting(
        provider="google",
        enabled=True,
        client_id="google-client-id",
        client_secret="google-client-secret",
        authorization_endpoint="https://accounts.google.com/o/oauth2/auth",
        token_endpoint="https://oauth2.googleapis.com/token",
        userinfo_endpoint="https://www.googleapis.com/oauth2/v2/userinfo",
        scope="openid email profile",
    )
    db_session.add(setting)
    await db_session.commit()
    return setting


@pytest_asyncio.fixture
async def github_setting(db_session: AsyncSession) -> OAuthSetting:
    """Register a GitHub provider that is switched off."""
    setting = OAuthSetting(
        provider="github",
        enabled=False,
        client_id="github-client-id",
        client_secret="github-client-secret",
        authorization_endpoint="https://github.com/login/oauth/authorize",
        token_endpoint="https://github.com/login/oauth/access_token",
        userinfo_endpoint="https://api.github.com/user",
        scope="read:user user:email",
    )
    db_session.add(setting)
    await db_session.commit()
    return setting
