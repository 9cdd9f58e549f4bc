"""Pytest fixtures for testing."""
import os
from collections.abc import AsyncGenerator, Callable
from datetime import UTC, datetime, timedelta
from typing import Any
from uuid import UUID, uuid4

# Must be set before any app imports that trigger Settings validation
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["DEV_MODE"] = "false"
os.environ["SUPABASE_URL"] = "http://supabase.test"
os.environ["SUPABASE_ANON_KEY"] = "test-anon-key"
os.environ["SUPABASE_JWT_SECRET"] = "test-jwt-secret-that-is-long-enough-for-hs256"
os.environ["REDIS_ENABLED"] = "false"

import jwt  # noqa: E402
import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import (  # noqa: E402
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool  # noqa: E402

from core.identity import AuthSession, AuthUser  # noqa: E402
from models.base import Base  # noqa: E402
from services.exceptions import AuthenticationError  # noqa: E402

TEST_JWT_SECRET = os.environ["SUPABASE_JWT_SECRET"]
FIXED_NOW = datetime(2026, 10, 1, 12, 0, tzinfo=UTC)


def make_access_token(
    user_id: UUID,
    email: str | None = None,
    secret: str = TEST_JWT_SECRET,
    audience: str = "authenticated",
    expires_in: timedelta = timedelta(hours=1),
) -> str:
    """Mint an access token shaped like the ones Supabase issues."""
    now = datetime.now(UTC)
    payload: dict[str, Any] = {
        "sub": str(user_id),
        "aud": audience,
        "role": "authenticated",
        "iat": now,
        "exp": now + expires_in,
    }
    if email is not None:
        payload["email"] = email
    return jwt.encode(payload, secret, algorithm="HS256")


class FakeIdentityClient:
    """In-memory stand-in for SupabaseAuthClient."""

    def __init__(self) -> None:
        self.accounts: dict[str, tuple[AuthUser, str]] = {}
        self.signed_out: list[str] = []
        self.sign_up_calls: list[dict[str, Any]] = []

    def _session(self, user: AuthUser) -> AuthSession:
        return AuthSession(
            access_token=make_access_token(user.id, user.email),
            refresh_token="refresh-" + str(user.id),
            token_type="bearer",
            expires_in=3600,
            user=user,
        )

    async def sign_up(
        self,
        email: str,
        password: str,
        metadata: dict[str, Any] | None = None,
    ) -> tuple[AuthUser, AuthSession | None]:
        self.sign_up_calls.append({"email": email, "metadata": metadata})
        if email in self.accounts:
            raise AuthenticationError("User already registered")
        user = AuthUser(id=uuid4(), email=email, metadata=metadata or {})
        self.accounts[email] = (user, password)
        return user, self._session(user)

    async def sign_in_with_password(self, email: str, password: str) -> AuthSession:
        account = self.accounts.get(email)
        if account is None or account[1] != password:
            raise AuthenticationError("Invalid login credentials")
        return self._session(account[0])

    async def sign_out(self, access_token: str) -> None:
        self.signed_out.append(access_token)

    async def aclose(self) -> None:
        pass


@pytest.fixture
async def async_engine() -> AsyncGenerator[AsyncEngine]:
    """Create an in-memory database shared by all connections of one test."""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
async def db_session(async_engine: AsyncEngine) -> AsyncGenerator[AsyncSession]:
    """Create an async session on the test database."""
    session_factory = async_sessionmaker(
        bind=async_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with session_factory() as session:
        yield session


@pytest.fixture
def identity_client() -> FakeIdentityClient:
    """Fake identity provider."""
    return FakeIdentityClient()


@pytest.fixture
def now() -> datetime:
    """Pinned current time for request handlers."""
    return FIXED_NOW


@pytest.fixture
def user_id() -> UUID:
    """Identity user id of the default authenticated caller."""
    return UUID("5b0c6f1e-9d4a-4f43-8b1e-2f7a0d3c9e11")


@pytest.fixture
def make_auth_headers() -> Callable[..., dict[str, str]]:
    """Build bearer auth headers for an identity user."""
    def _make(user_id: UUID, email: str | None = None, **kwargs: Any) -> dict[str, str]:
        return {"Authorization": f"Bearer {make_access_token(user_id, email, **kwargs)}"}
    return _make


@pytest.fixture
def auth_headers(
    user_id: UUID,
    make_auth_headers: Callable[..., dict[str, str]],
) -> dict[str, str]:
    """Bearer auth headers for the default caller."""
    return make_auth_headers(user_id, "caller@example.com")


@pytest.fixture
async def client(
    db_session: AsyncSession,
    identity_client: FakeIdentityClient,
    now: datetime,
) -> AsyncGenerator[AsyncClient]:
    """Create a test client with database, identity and clock overrides."""
    # Clear the settings cache so it picks up the test environment
    from core.config import get_settings

    get_settings.cache_clear()

    from api.dependencies import get_identity_client, get_now
    from api.main import app
    from db.session import get_async_session

    async def override_get_async_session() -> AsyncGenerator[AsyncSession]:
        yield db_session

    app.dependency_overrides[get_async_session] = override_get_async_session
    app.dependency_overrides[get_identity_client] = lambda: identity_client
    app.dependency_overrides[get_now] = lambda: now

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as test_client:
        yield test_client

    app.dependency_overrides.clear()
