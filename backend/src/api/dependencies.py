"""FastAPI dependencies for injection."""
from datetime import UTC, datetime, timedelta

from fastapi import Depends, Request

from core.auth import get_access_token, get_current_profile
from core.config import Settings, get_settings
from core.identity import SupabaseAuthClient
from db.session import get_async_session


def get_identity_client(request: Request) -> SupabaseAuthClient:
    """Identity client created by the application lifespan."""
    return request.app.state.identity_client


def get_now() -> datetime:
    """Current time; overridden in tests to pin the clock."""
    return datetime.now(UTC)


def get_reprompt_window(settings: Settings = Depends(get_settings)) -> timedelta:
    """Re-consent window for the medical disclaimer."""
    return timedelta(days=settings.disclaimer_reprompt_days)


__all__ = [
    "get_access_token",
    "get_async_session",
    "get_current_profile",
    "get_identity_client",
    "get_now",
    "get_reprompt_window",
    "get_settings",
]
