"""Tests for profile service."""
from datetime import date
from uuid import UUID, uuid4

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from models.profile import Profile
from schemas.profile import ProfileUpdate
from services import profile_service
from services.exceptions import ValidationError
from services.profile_service import (
    calculate_age,
    find_profile_by_name,
    get_or_create_profile,
    get_profile,
    needs_profile_setup,
    update_profile,
)

USER_ID = UUID("3f2b8c1a-6d4e-4b7a-9c0e-1a2b3c4d5e6f")


async def _add_profile(db: AsyncSession, **kwargs: object) -> Profile:
    profile = Profile(id=kwargs.pop("id", uuid4()), **kwargs)
    db.add(profile)
    await db.flush()
    return profile


async def test__get_or_create_profile__creates_empty_profile(db_session: AsyncSession) -> None:
    """A new profile has defaults and no disclaimer history."""
    profile = await get_or_create_profile(db_session, USER_ID, email="j@x.com", name="jdoe")

    assert profile.id == USER_ID
    assert profile.name == "jdoe"
    assert profile.last_disclaimer_shown is None
    assert profile.disclaimer_dont_show is False
    assert profile.weight_unit == "kg"
    assert profile.dietary_preferences == []


async def test__get_or_create_profile__returns_existing(db_session: AsyncSession) -> None:
    """An existing profile is returned, not duplicated."""
    first = await get_or_create_profile(db_session, USER_ID, name="jdoe")
    second = await get_or_create_profile(db_session, USER_ID)

    assert second.id == first.id
    assert second.name == "jdoe"


async def test__get_profile__missing_returns_none(db_session: AsyncSession) -> None:
    """Looking up an unknown user returns None."""
    assert await get_profile(db_session, uuid4()) is None


async def test__find_profile_by_name__not_found_is_none(db_session: AsyncSession) -> None:
    """Not finding a username is a normal negative result."""
    await _add_profile(db_session, name="someone")

    assert await find_profile_by_name(db_session, "jdoe") is None
    found = await find_profile_by_name(db_session, "someone")
    assert found is not None
    assert found.name == "someone"


async def test__update_profile__only_fields_sent(db_session: AsyncSession) -> None:
    """Fields absent from the update are left unchanged."""
    profile = await _add_profile(db_session, id=USER_ID, name="jdoe", country="NZ")

    updated = await update_profile(
        db_session,
        profile,
        ProfileUpdate(date_of_birth=date(1990, 5, 17), weight=72.5),
    )

    assert updated.name == "jdoe"
    assert updated.country == "NZ"
    assert updated.date_of_birth == date(1990, 5, 17)
    assert updated.weight == 72.5


async def test__update_profile__explicit_null_leaves_value(db_session: AsyncSession) -> None:
    """A null in the update does not clear the stored value."""
    profile = await _add_profile(db_session, id=USER_ID, name="jdoe", weight_unit="lbs")

    updated = await update_profile(
        db_session, profile, ProfileUpdate.model_validate({"weight_unit": None}),
    )

    assert updated.weight_unit == "lbs"


async def test__update_profile__name_taken_raises(db_session: AsyncSession) -> None:
    """Renaming to another user's name is rejected."""
    await _add_profile(db_session, name="taken")
    profile = await _add_profile(db_session, id=USER_ID, name="jdoe")

    with pytest.raises(ValidationError, match="Username already exists.") as exc_info:
        await update_profile(db_session, profile, ProfileUpdate(name="taken"))
    assert exc_info.value.field == "name"


async def test__update_profile__unique_name_enforced_on_flush(
    db_session: AsyncSession,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    """A rename that slips past the lookup is refused by the database."""
    await _add_profile(db_session, name="taken")
    profile = await _add_profile(db_session, id=USER_ID, name="jdoe")
    await db_session.commit()

    async def _not_found(db: AsyncSession, name: str) -> None:
        return None

    monkeypatch.setattr(profile_service, "find_profile_by_name", _not_found)

    with pytest.raises(ValidationError, match="Username already exists.") as exc_info:
        await update_profile(db_session, profile, ProfileUpdate(name="taken"))
    assert exc_info.value.field == "name"


async def test__update_profile__keeping_own_name_is_allowed(db_session: AsyncSession) -> None:
    """Sending the current name again isn't a conflict."""
    profile = await _add_profile(db_session, id=USER_ID, name="jdoe")

    updated = await update_profile(db_session, profile, ProfileUpdate(name="jdoe", country="AU"))

    assert updated.country == "AU"


def test__needs_profile_setup() -> None:
    """Setup is needed until both name and date of birth are known."""
    assert needs_profile_setup(None) is True
    assert needs_profile_setup(Profile(id=USER_ID, name="jdoe")) is True
    assert needs_profile_setup(Profile(id=USER_ID, date_of_birth=date(1990, 1, 1))) is True
    assert needs_profile_setup(
        Profile(id=USER_ID, name="jdoe", date_of_birth=date(1990, 1, 1)),
    ) is False


@pytest.mark.parametrize(
    ("dob", "today", "expected"),
    [
        (date(1990, 5, 17), date(2026, 5, 16), 35),
        (date(1990, 5, 17), date(2026, 5, 17), 36),
        (date(2000, 2, 29), date(2026, 3, 1), 26),
        (None, date(2026, 1, 1), None),
    ],
)
def test__calculate_age(dob: date | None, today: date, expected: int | None) -> None:
    """Age counts whole years, turning over on the birthday."""
    assert calculate_age(dob, today) == expected
