"""Authentication module for Supabase JWT validation."""
import logging
from typing import Any
from uuid import UUID

import jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from core.config import Settings, get_settings
from core.routes import Route
from db.session import get_async_session
from models.profile import Profile
from services.exceptions import AuthenticationError
from services.profile_service import get_or_create_profile

logger = logging.getLogger(__name__)


# HTTP Bearer token scheme
security = HTTPBearer(auto_error=False)

DEV_USER_ID = UUID("00000000-0000-4000-8000-000000000001")
DEV_USER_EMAIL = "dev@localhost"


def authentication_required(message: str | None = None) -> HTTPException:
    """Build the 401 response that sends the client back to the entry page."""
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail={
            "error": "authentication_required",
            "message": message or str(AuthenticationError()),
            "redirect_to": Route.ENTRY.value,
        },
        headers={"WWW-Authenticate": "Bearer"},
    )


def decode_access_token(token: str, settings: Settings) -> dict[str, Any]:
    """
    Decode and validate a Supabase access token.

    Raises:
        AuthenticationError: If token is invalid, expired, or has the wrong audience.
    """
    try:
        return jwt.decode(
            token,
            settings.supabase_jwt_secret,
            algorithms=["HS256"],
            audience=settings.supabase_jwt_audience,
        )
    except jwt.ExpiredSignatureError as e:
        raise AuthenticationError("Your session has expired. Please log in again.") from e
    except jwt.PyJWTError as e:
        # Log full details for debugging (server-side only)
        logger.warning("JWT validation failed: %s", e)
        raise AuthenticationError() from e


async def get_access_token(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    settings: Settings = Depends(get_settings),
) -> str:
    """Dependency returning the verified raw bearer token."""
    if credentials is None:
        raise authentication_required()
    try:
        decode_access_token(credentials.credentials, settings)
    except AuthenticationError as e:
        raise authentication_required(str(e)) from e
    return credentials.credentials


async def get_current_profile(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    db: AsyncSession = Depends(get_async_session),
    settings: Settings = Depends(get_settings),
) -> Profile:
    """
    Dependency that validates the token and returns the caller's profile.

    The profile row is created on first use. In DEV_MODE, bypasses auth and
    returns a fixed development profile.
    """
    if settings.dev_mode:
        return await get_or_create_profile(db, DEV_USER_ID, email=DEV_USER_EMAIL)

    if credentials is None:
        raise authentication_required()

    try:
        payload = decode_access_token(credentials.credentials, settings)
        user_id = UUID(str(payload["sub"]))
    except AuthenticationError as e:
        raise authentication_required(str(e)) from e
    except (KeyError, ValueError) as e:
        logger.warning("Token has no usable sub claim")
        raise authentication_required() from e

    return await get_or_create_profile(db, user_id, email=payload.get("email"))
