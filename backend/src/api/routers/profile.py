"""Profile endpoints for profile setup and settings."""
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_async_session, get_current_profile, get_now
from core.routes import Route
from models.profile import Profile
from schemas.profile import ProfileResponse, ProfileUpdate, ProfileUpdateResponse
from services import profile_service
from services.exceptions import ValidationError

router = APIRouter(prefix="/profile", tags=["profile"])


def _to_response(profile: Profile, now: datetime) -> ProfileResponse:
    response = ProfileResponse.model_validate(profile)
    response.age = profile_service.calculate_age(profile.date_of_birth, now.date())
    response.needs_setup = profile_service.needs_profile_setup(profile)
    return response


@router.get("/me", response_model=ProfileResponse)
async def get_my_profile(
    profile: Profile = Depends(get_current_profile),
    now: datetime = Depends(get_now),
) -> ProfileResponse:
    """Get the caller's profile."""
    return _to_response(profile, now)


@router.patch("/me", response_model=ProfileUpdateResponse)
async def update_my_profile(
    data: ProfileUpdate,
    profile: Profile = Depends(get_current_profile),
    db: AsyncSession = Depends(get_async_session),
    now: datetime = Depends(get_now),
) -> ProfileUpdateResponse:
    """
    Update the caller's profile.

    Only fields included in the request are changed. Completing profile setup
    continues to the dashboard.
    """
    try:
        updated = await profile_service.update_profile(db, profile, data)
    except ValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail={"error": "username_taken", "message": str(e), "field": e.field},
        )
    return ProfileUpdateResponse(
        profile=_to_response(updated, now),
        redirect_to=Route.DASHBOARD.value,
    )
