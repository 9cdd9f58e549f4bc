"""Service layer for profile operations."""
from datetime import date
from typing import Any
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from models.profile import Profile
from schemas.profile import ProfileUpdate
from services.exceptions import ValidationError

USERNAME_TAKEN_MESSAGE = "Username already exists."


async def get_profile(db: AsyncSession, user_id: UUID) -> Profile | None:
    """Get a profile by user id, returns None if not exists."""
    result = await db.execute(select(Profile).where(Profile.id == user_id))
    return result.scalar_one_or_none()


async def find_profile_by_name(db: AsyncSession, name: str) -> Profile | None:
    """
    Find the profile using a username.

    Not finding one is a normal negative result, not an error.
    """
    result = await db.execute(select(Profile).where(Profile.name == name).limit(1))
    return result.scalar_one_or_none()


async def get_or_create_profile(
    db: AsyncSession,
    user_id: UUID,
    email: str | None = None,
    name: str | None = None,
) -> Profile:
    """
    Get existing profile or create a new one for an identity user.

    Handles concurrent first requests for the same user: if the insert hits the
    primary key constraint, the session is rolled back and the existing row is
    fetched instead. If no row exists after the rollback, the insert lost a race
    for the unique name.

    Note: Uses flush(), not commit. Session generator handles commit at request end.

    Important: This is called while resolving the current user, before any other
    database work in the request, so the rollback on IntegrityError has no prior
    work to undo.
    """
    profile = await get_profile(db, user_id)

    if profile is None:
        profile = Profile(
            id=user_id,
            email=email,
            name=name,
            dietary_preferences=[],
            food_allergies=[],
        )
        db.add(profile)
        try:
            await db.flush()
        except IntegrityError:
            # Another request created the profile between our SELECT and INSERT
            await db.rollback()
            profile = await get_profile(db, user_id)
            if profile is None:
                raise ValidationError(USERNAME_TAKEN_MESSAGE, field="name")
        else:
            await db.refresh(profile)
            return profile

    # Keep email in sync with the identity provider
    if email and profile.email != email:
        profile.email = email
        await db.flush()
        await db.refresh(profile)

    return profile


async def update_profile(
    db: AsyncSession,
    profile: Profile,
    data: ProfileUpdate,
) -> Profile:
    """Apply a partial update; fields that are absent or null are left unchanged."""
    updates: dict[str, Any] = data.model_dump(exclude_unset=True, exclude_none=True)
    new_name = updates.get("name")
    if new_name is not None and new_name != profile.name:
        existing = await find_profile_by_name(db, new_name)
        if existing is not None and existing.id != profile.id:
            raise ValidationError(USERNAME_TAKEN_MESSAGE, field="name")
    for key, value in updates.items():
        setattr(profile, key, value)
    try:
        await db.flush()
    except IntegrityError as e:
        # Name taken by a concurrent update after the lookup above
        await db.rollback()
        raise ValidationError(USERNAME_TAKEN_MESSAGE, field="name") from e
    await db.refresh(profile)
    return profile


def needs_profile_setup(profile: Profile | None) -> bool:
    """A user is new until the profile has both a name and a date of birth."""
    if profile is None:
        return True
    return profile.name is None or profile.date_of_birth is None


def calculate_age(date_of_birth: date | None, today: date) -> int | None:
    """Age in whole years on `today`, None when date of birth is unknown."""
    if date_of_birth is None:
        return None
    had_birthday = (today.month, today.day) >= (date_of_birth.month, date_of_birth.day)
    return today.year - date_of_birth.year - (0 if had_birthday else 1)
