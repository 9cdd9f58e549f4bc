"""Tests for medical disclaimer endpoints."""
from datetime import date, datetime, timedelta
from uuid import UUID

import pytest
from httpx import AsyncClient
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from models.profile import Profile

AT_END = {"scroll_top": 600, "client_height": 400, "scroll_height": 1000}


@pytest.fixture
async def profile(db_session: AsyncSession, user_id: UUID) -> Profile:
    """The caller's profile, created before the request."""
    profile = Profile(id=user_id, email="caller@example.com", name="caller")
    db_session.add(profile)
    await db_session.commit()
    return profile


class TestGetDisclaimer:
    """Tests for GET /disclaimer."""

    async def test__get_disclaimer__public_text(self, client: AsyncClient) -> None:
        """The text is served without a session along with the scroll rules."""
        response = await client.get("/disclaimer")

        assert response.status_code == 200
        data = response.json()
        assert data["title"] == "Medical Disclaimer"
        assert len(data["paragraphs"]) == 16
        assert data["scroll_end_tolerance_px"] == 10
        assert data["reprompt_days"] == 30
        assert "30 days" in data["dont_show_again_label"]


class TestDisclaimerStatus:
    """Tests for GET /disclaimer/status."""

    async def test__status__new_user_prompt_required(
        self,
        client: AsyncClient,
        auth_headers: dict[str, str],
    ) -> None:
        """Users who never accepted must be prompted."""
        response = await client.get("/disclaimer/status", headers=auth_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["state"] == "prompt_required"
        assert data["prompt_required"] is True
        assert data["last_shown"] is None

    async def test__status__suppressed_within_window(
        self,
        client: AsyncClient,
        db_session: AsyncSession,
        profile: Profile,
        auth_headers: dict[str, str],
        now: datetime,
    ) -> None:
        """Accepted 29 days ago with don't-show-again: no prompt."""
        profile.last_disclaimer_shown = now - timedelta(days=29)
        profile.disclaimer_dont_show = True
        await db_session.flush()

        response = await client.get("/disclaimer/status", headers=auth_headers)

        data = response.json()
        assert data["state"] == "prompt_suppressed"
        assert data["prompt_required"] is False

    async def test__status__expired_after_window(
        self,
        client: AsyncClient,
        db_session: AsyncSession,
        profile: Profile,
        auth_headers: dict[str, str],
        now: datetime,
    ) -> None:
        """Accepted 30 days and 1 second ago: prompt again."""
        profile.last_disclaimer_shown = now - timedelta(days=30, seconds=1)
        profile.disclaimer_dont_show = True
        await db_session.flush()

        response = await client.get("/disclaimer/status", headers=auth_headers)

        assert response.json()["prompt_required"] is True

    async def test__status__unauthenticated(self, client: AsyncClient) -> None:
        """Status requires a session."""
        response = await client.get("/disclaimer/status")
        assert response.status_code == 401
        assert response.json()["detail"]["redirect_to"] == "/"


class TestGrantConsent:
    """Tests for POST /disclaimer/consent."""

    async def test__consent__new_user_goes_to_profile_setup(
        self,
        client: AsyncClient,
        profile: Profile,
        auth_headers: dict[str, str],
    ) -> None:
        """The consent is recorded with the user agent and setup comes next."""
        response = await client.post(
            "/disclaimer/consent",
            headers={**auth_headers, "User-Agent": "Mozilla/5.0 (Test)"},
            json={"dont_show_again": True, **AT_END},
        )

        assert response.status_code == 201
        data = response.json()
        assert data["redirect_to"] == "/profile-setup"
        assert data["consent"]["user_agent"] == "Mozilla/5.0 (Test)"
        assert data["consent"]["ip_address"] is None

        status_response = await client.get("/disclaimer/status", headers=auth_headers)
        assert status_response.json()["prompt_required"] is False
        assert status_response.json()["dont_show"] is True

    async def test__consent__returning_user_goes_to_dashboard(
        self,
        client: AsyncClient,
        db_session: AsyncSession,
        profile: Profile,
        auth_headers: dict[str, str],
    ) -> None:
        """Users who finished setup continue to the dashboard."""
        profile.date_of_birth = date(1990, 5, 17)
        await db_session.flush()

        response = await client.post(
            "/disclaimer/consent", headers=auth_headers, json={"dont_show_again": False, **AT_END},
        )

        assert response.json()["redirect_to"] == "/dashboard"

    async def test__consent__without_dont_show_prompts_next_time(
        self,
        client: AsyncClient,
        profile: Profile,
        auth_headers: dict[str, str],
    ) -> None:
        """Without the preference the disclaimer is shown on the next login."""
        await client.post(
            "/disclaimer/consent", headers=auth_headers, json={"dont_show_again": False, **AT_END},
        )

        response = await client.get("/disclaimer/status", headers=auth_headers)

        assert response.json()["prompt_required"] is True

    async def test__consent__not_scrolled_422(
        self,
        client: AsyncClient,
        profile: Profile,
        auth_headers: dict[str, str],
    ) -> None:
        """Consent before scrolling to the end is refused."""
        response = await client.post(
            "/disclaimer/consent",
            headers=auth_headers,
            json={"dont_show_again": True, "scroll_top": 0, "client_height": 400,
                  "scroll_height": 1000},
        )

        assert response.status_code == 422
        assert response.json()["detail"]["error"] == "scroll_incomplete"

    async def test__consent__write_failure_500(
        self,
        client: AsyncClient,
        db_session: AsyncSession,
        profile: Profile,
        auth_headers: dict[str, str],
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        """A failed write returns the retry message and stores nothing."""
        original_flush = db_session.flush
        calls = {"count": 0}

        async def flaky_flush(*args: object, **kwargs: object) -> None:
            # The consent write is the only flush of the request
            calls["count"] += 1
            raise OperationalError("INSERT", {}, Exception("connection reset"))

        monkeypatch.setattr(db_session, "flush", flaky_flush)
        response = await client.post(
            "/disclaimer/consent", headers=auth_headers, json={"dont_show_again": True, **AT_END},
        )
        monkeypatch.setattr(db_session, "flush", original_flush)

        assert response.status_code == 500
        assert response.json()["detail"] == {
            "error": "consent_not_saved",
            "message": "Failed to save your consent. Please try again.",
        }
        assert calls["count"] == 1

        history = await client.get("/disclaimer/consents", headers=auth_headers)
        assert history.json() == []


class TestConsentHistory:
    """Tests for GET /disclaimer/consents."""

    async def test__history__newest_first(
        self,
        client: AsyncClient,
        profile: Profile,
        auth_headers: dict[str, str],
    ) -> None:
        """Every acceptance is kept."""
        for agent in ("first", "second"):
            await client.post(
                "/disclaimer/consent",
                headers={**auth_headers, "User-Agent": agent},
                json={"dont_show_again": False, **AT_END},
            )

        response = await client.get("/disclaimer/consents", headers=auth_headers)

        assert response.status_code == 200
        assert [c["user_agent"] for c in response.json()] == ["second", "first"]
