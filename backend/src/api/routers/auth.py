"""Account endpoints: signup, login, logout and the current session."""
import logging
from datetime import datetime, timedelta

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import (
    get_access_token,
    get_async_session,
    get_current_profile,
    get_identity_client,
    get_now,
    get_reprompt_window,
)
from core.disclaimer import requires_disclaimer
from core.identity import AuthSession, SupabaseAuthClient
from core.rate_limiter import limit_login_attempts, limit_signup_attempts
from models.profile import Profile
from schemas.account import (
    AuthResponse,
    LoginRequest,
    SessionResponse,
    SessionTokens,
    SignUpRequest,
)
from services import account_service
from services.exceptions import (
    AuthenticationError,
    IdentityServiceError,
    ValidationError,
)
from services.profile_service import needs_profile_setup

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


def _identity_unavailable(e: IdentityServiceError) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_502_BAD_GATEWAY,
        detail={"error": "identity_service_error", "message": str(e)},
    )


def _tokens(session: AuthSession | None) -> SessionTokens | None:
    if session is None:
        return None
    return SessionTokens(
        access_token=session.access_token,
        refresh_token=session.refresh_token,
        token_type=session.token_type,
        expires_in=session.expires_in,
    )


@router.post(
    "/signup",
    response_model=AuthResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(limit_signup_attempts)],
)
async def sign_up(
    data: SignUpRequest,
    db: AsyncSession = Depends(get_async_session),
    identity: SupabaseAuthClient = Depends(get_identity_client),
) -> AuthResponse:
    """
    Create an account.

    Fails with 409 when the username is already used by another profile.
    New accounts continue to profile setup.
    """
    try:
        result = await account_service.sign_up(
            db, identity, data.username, data.email, data.password,
        )
    except ValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail={"error": "username_taken", "message": str(e), "field": e.field},
        )
    except AuthenticationError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail={"error": "signup_failed", "message": f"Sign Up Failed: {e}"},
        )
    except IdentityServiceError as e:
        raise _identity_unavailable(e)

    return AuthResponse(
        user_id=result.user.id,
        email=result.user.email,
        session=_tokens(result.session),
        redirect_to=result.redirect_to.value,
    )


@router.post(
    "/login",
    response_model=AuthResponse,
    dependencies=[Depends(limit_login_attempts)],
)
async def login(
    data: LoginRequest,
    db: AsyncSession = Depends(get_async_session),
    identity: SupabaseAuthClient = Depends(get_identity_client),
    now: datetime = Depends(get_now),
    window: timedelta = Depends(get_reprompt_window),
) -> AuthResponse:
    """
    Log in with email and password.

    Users who must (re-)consent to the medical disclaimer are sent there first.
    """
    try:
        result = await account_service.sign_in(
            db, identity, data.email, data.password, now, window,
        )
    except AuthenticationError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"error": "login_failed", "message": f"Login Failed: {e}"},
        )
    except IdentityServiceError as e:
        raise _identity_unavailable(e)

    return AuthResponse(
        user_id=result.session.user.id,
        email=result.session.user.email,
        session=_tokens(result.session),
        redirect_to=result.redirect_to.value,
    )


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
async def logout(
    access_token: str = Depends(get_access_token),
    identity: SupabaseAuthClient = Depends(get_identity_client),
) -> None:
    """Revoke the caller's session."""
    try:
        await account_service.sign_out(identity, access_token)
    except AuthenticationError:
        # Session already revoked or expired; logging out is still complete
        logger.info("logout_session_already_invalid")
    except IdentityServiceError as e:
        raise _identity_unavailable(e)


@router.get("/session", response_model=SessionResponse)
async def get_session(
    profile: Profile = Depends(get_current_profile),
    now: datetime = Depends(get_now),
    window: timedelta = Depends(get_reprompt_window),
) -> SessionResponse:
    """Describe the logged-in user and what they still have to complete."""
    return SessionResponse(
        user_id=profile.id,
        email=profile.email,
        name=profile.name,
        needs_setup=needs_profile_setup(profile),
        disclaimer_required=requires_disclaimer(
            profile.last_disclaimer_shown, profile.disclaimer_dont_show, now, window,
        ),
    )
