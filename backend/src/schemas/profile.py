"""Pydantic schemas for profile endpoints."""
from datetime import date, datetime
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

DIETARY_PRESETS = (
    "2 Rule",
    "Keto + 2 Rule",
    "Mediterranean + 2 Rule",
    "Paleo + 2 Rule",
    "Carnivore + 2 Rule",
)


class ProfileUpdate(BaseModel):
    """
    Schema for profile setup and profile settings.

    Every field is optional; only non-null fields sent are updated.
    """

    name: str | None = Field(default=None, min_length=1, max_length=100)
    date_of_birth: date | None = None
    sex: Literal["male", "female", "other"] | None = None
    country: str | None = Field(default=None, max_length=100)
    weight: float | None = Field(default=None, gt=0)
    weight_unit: Literal["kg", "lbs"] | None = None
    has_chronic_condition: bool | None = None
    dietary_preset: str | None = None
    dietary_preferences: list[str] | None = None
    food_allergies: list[str] | None = None

    @field_validator("date_of_birth")
    @classmethod
    def validate_date_of_birth(cls, v: date | None) -> date | None:
        """Reject dates of birth in the future."""
        if v is not None and v > date.today():
            raise ValueError("Date of birth cannot be in the future")
        return v

    @field_validator("dietary_preset")
    @classmethod
    def validate_dietary_preset(cls, v: str | None) -> str | None:
        """Ensure the preset is one of the supported presets."""
        if v is not None and v not in DIETARY_PRESETS:
            raise ValueError(f"Invalid dietary preset: {v}")
        return v


class ProfileResponse(BaseModel):
    """Schema for profile responses."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    email: str | None
    name: str | None
    date_of_birth: date | None
    age: int | None = None
    sex: str | None
    country: str | None
    weight: float | None
    weight_unit: str
    has_chronic_condition: bool
    dietary_preset: str | None
    dietary_preferences: list[str]
    food_allergies: list[str]
    last_disclaimer_shown: datetime | None
    disclaimer_dont_show: bool
    needs_setup: bool = False


class ProfileUpdateResponse(BaseModel):
    """Updated profile plus where the client goes next."""

    profile: ProfileResponse
    redirect_to: str
