"""Service layer for signup, login and logout."""
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta

from sqlalchemy.ext.asyncio import AsyncSession

from core.disclaimer import REPROMPT_WINDOW, requires_disclaimer
from core.identity import AuthSession, AuthUser, SupabaseAuthClient
from core.routes import Route
from models.profile import Profile
from services import profile_service
from services.exceptions import ValidationError
from services.profile_service import USERNAME_TAKEN_MESSAGE

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SignUpResult:
    """Outcome of a signup."""

    user: AuthUser
    session: AuthSession | None
    profile: Profile
    redirect_to: Route


@dataclass(frozen=True)
class SignInResult:
    """Outcome of a login."""

    session: AuthSession
    profile: Profile
    disclaimer_required: bool
    redirect_to: Route


async def sign_up(
    db: AsyncSession,
    identity: SupabaseAuthClient,
    username: str,
    email: str,
    password: str,
) -> SignUpResult:
    """
    Create an account and its profile.

    The username must not already be used by another profile; the check runs
    before the identity provider is called so no orphan account is created.

    Raises:
        ValidationError: If the username is taken.
        AuthenticationError: If the identity provider rejects the signup.
        IdentityServiceError: If the identity provider is unavailable.
    """
    existing = await profile_service.find_profile_by_name(db, username)
    if existing is not None:
        raise ValidationError(USERNAME_TAKEN_MESSAGE, field="username")

    user, session = await identity.sign_up(email, password, metadata={"name": username})
    try:
        profile = await profile_service.get_or_create_profile(
            db, user.id, email=user.email or email, name=username,
        )
    except ValidationError as e:
        # Another signup took the name between the check and the insert
        logger.warning("signup_username_race", extra={"user_id": str(user.id)})
        raise ValidationError(USERNAME_TAKEN_MESSAGE, field="username") from e
    logger.info("account_created", extra={"user_id": str(user.id)})
    return SignUpResult(
        user=user,
        session=session,
        profile=profile,
        redirect_to=Route.PROFILE_SETUP,
    )


async def sign_in(
    db: AsyncSession,
    identity: SupabaseAuthClient,
    email: str,
    password: str,
    now: datetime,
    window: timedelta = REPROMPT_WINDOW,
) -> SignInResult:
    """
    Log in and decide where the user goes next.

    Users who must (re-)consent to the medical disclaimer go to the disclaimer,
    everyone else to the dashboard.

    Raises:
        AuthenticationError: If the credentials are rejected.
        IdentityServiceError: If the identity provider is unavailable.
    """
    session = await identity.sign_in_with_password(email, password)
    profile = await profile_service.get_or_create_profile(
        db, session.user.id, email=session.user.email,
    )
    disclaimer_required = requires_disclaimer(
        profile.last_disclaimer_shown,
        profile.disclaimer_dont_show,
        now,
        window,
    )
    return SignInResult(
        session=session,
        profile=profile,
        disclaimer_required=disclaimer_required,
        redirect_to=Route.DISCLAIMER if disclaimer_required else Route.DASHBOARD,
    )


async def sign_out(identity: SupabaseAuthClient, access_token: str) -> None:
    """Revoke the session behind the access token."""
    await identity.sign_out(access_token)
