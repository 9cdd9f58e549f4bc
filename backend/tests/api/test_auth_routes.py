"""Tests for signup, login, logout and session endpoints."""
from collections.abc import Callable
from datetime import datetime, timedelta
from unittest.mock import AsyncMock, MagicMock
from uuid import UUID

from httpx import AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from api.main import app
from core.redis import RedisClient
from models.profile import Profile
from tests.conftest import FakeIdentityClient

SIGNUP = {"username": "jdoe", "email": "j@x.com", "password": "password"}


class TestSignUp:
    """Tests for POST /auth/signup."""

    async def test__signup__creates_account_and_redirects_to_setup(
        self,
        client: AsyncClient,
        db_session: AsyncSession,
    ) -> None:
        """A new account continues to profile setup."""
        response = await client.post("/auth/signup", json=SIGNUP)

        assert response.status_code == 201
        data = response.json()
        assert data["redirect_to"] == "/profile-setup"
        assert data["email"] == "j@x.com"
        assert data["session"]["token_type"] == "bearer"
        profile = (
            await db_session.execute(select(Profile).where(Profile.name == "jdoe"))
        ).scalar_one()
        assert str(profile.id) == data["user_id"]

    async def test__signup__duplicate_username_409(self, client: AsyncClient) -> None:
        """Reusing a username is a conflict with the user-facing message."""
        await client.post("/auth/signup", json=SIGNUP)

        response = await client.post(
            "/auth/signup", json={**SIGNUP, "email": "other@x.com"},
        )

        assert response.status_code == 409
        assert response.json()["detail"] == {
            "error": "username_taken",
            "message": "Username already exists.",
            "field": "username",
        }

    async def test__signup__short_password_422(self, client: AsyncClient) -> None:
        """Passwords shorter than six characters are rejected."""
        response = await client.post("/auth/signup", json={**SIGNUP, "password": "12345"})
        assert response.status_code == 422

    async def test__signup__provider_rejection(self, client: AsyncClient) -> None:
        """Identity provider errors are shown as a signup failure."""
        await client.post("/auth/signup", json=SIGNUP)

        response = await client.post("/auth/signup", json={**SIGNUP, "username": "jdoe2"})

        assert response.status_code == 422
        detail = response.json()["detail"]
        assert detail["error"] == "signup_failed"
        assert detail["message"] == "Sign Up Failed: User already registered"


class TestLogin:
    """Tests for POST /auth/login."""

    async def test__login__first_time_goes_to_disclaimer(self, client: AsyncClient) -> None:
        """Users who never accepted the disclaimer are sent there."""
        await client.post("/auth/signup", json=SIGNUP)

        response = await client.post(
            "/auth/login", json={"email": "j@x.com", "password": "password"},
        )

        assert response.status_code == 200
        assert response.json()["redirect_to"] == "/disclaimer"
        assert response.json()["session"]["access_token"]

    async def test__login__suppressed_disclaimer_goes_to_dashboard(
        self,
        client: AsyncClient,
        db_session: AsyncSession,
        now: datetime,
    ) -> None:
        """Recent acceptance with don't-show-again skips the disclaimer."""
        signup = await client.post("/auth/signup", json=SIGNUP)
        profile = await db_session.get(Profile, UUID(signup.json()["user_id"]))
        profile.last_disclaimer_shown = now - timedelta(days=3)
        profile.disclaimer_dont_show = True
        await db_session.flush()

        response = await client.post(
            "/auth/login", json={"email": "j@x.com", "password": "password"},
        )

        assert response.json()["redirect_to"] == "/dashboard"

    async def test__login__wrong_password_401(self, client: AsyncClient) -> None:
        """Rejected credentials return 401 with the provider's message."""
        await client.post("/auth/signup", json=SIGNUP)

        response = await client.post(
            "/auth/login", json={"email": "j@x.com", "password": "wrong"},
        )

        assert response.status_code == 401
        assert response.json()["detail"] == {
            "error": "login_failed",
            "message": "Login Failed: Invalid login credentials",
        }

    async def test__login__rate_limited_429(self, client: AsyncClient) -> None:
        """Attempts over the limit are refused before credentials are checked."""
        redis_client = MagicMock(spec=RedisClient)
        redis_client.is_connected = True
        redis_client.eval_fixed_window = AsyncMock(return_value=[0, 0, 42, 42])
        app.state.redis_client = redis_client
        try:
            response = await client.post(
                "/auth/login", json={"email": "j@x.com", "password": "password"},
            )
        finally:
            del app.state.redis_client

        assert response.status_code == 429
        assert response.json()["detail"]["error"] == "rate_limited"
        assert response.headers["Retry-After"] == "42"
        assert response.headers["X-RateLimit-Remaining"] == "0"

    async def test__login__rate_limit_headers(self, client: AsyncClient) -> None:
        """Allowed attempts report the remaining budget."""
        redis_client = MagicMock(spec=RedisClient)
        redis_client.is_connected = True
        redis_client.eval_fixed_window = AsyncMock(return_value=[1, 9, 60, 0])
        app.state.redis_client = redis_client
        try:
            response = await client.post(
                "/auth/login", json={"email": "j@x.com", "password": "password"},
            )
        finally:
            del app.state.redis_client

        assert response.status_code == 401
        assert response.headers["X-RateLimit-Limit"] == "10"
        assert response.headers["X-RateLimit-Remaining"] == "9"


class TestLogout:
    """Tests for POST /auth/logout."""

    async def test__logout__revokes_session(
        self,
        client: AsyncClient,
        identity_client: FakeIdentityClient,
        auth_headers: dict[str, str],
    ) -> None:
        """The caller's token is revoked at the provider."""
        response = await client.post("/auth/logout", headers=auth_headers)

        assert response.status_code == 204
        assert identity_client.signed_out == [auth_headers["Authorization"].split(" ", 1)[1]]

    async def test__logout__without_session_401(self, client: AsyncClient) -> None:
        """Logging out requires a session."""
        response = await client.post("/auth/logout")
        assert response.status_code == 401


class TestSession:
    """Tests for GET /auth/session."""

    async def test__session__unauthenticated_redirects_to_entry(
        self,
        client: AsyncClient,
    ) -> None:
        """Without a session the client is sent to the entry page."""
        response = await client.get("/auth/session")

        assert response.status_code == 401
        assert response.json()["detail"] == {
            "error": "authentication_required",
            "message": "You must be logged in to continue.",
            "redirect_to": "/",
        }

    async def test__session__new_user_needs_setup_and_disclaimer(
        self,
        client: AsyncClient,
        user_id: UUID,
        auth_headers: dict[str, str],
    ) -> None:
        """A first request creates the profile, which still needs setup."""
        response = await client.get("/auth/session", headers=auth_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["user_id"] == str(user_id)
        assert data["email"] == "caller@example.com"
        assert data["needs_setup"] is True
        assert data["disclaimer_required"] is True

    async def test__session__expired_token_401(
        self,
        client: AsyncClient,
        user_id: UUID,
        make_auth_headers: Callable[..., dict[str, str]],
    ) -> None:
        """Expired tokens ask the user to log in again."""
        headers = make_auth_headers(user_id, expires_in=timedelta(seconds=-30))

        response = await client.get("/auth/session", headers=headers)

        assert response.status_code == 401
        assert "expired" in response.json()["detail"]["message"]
