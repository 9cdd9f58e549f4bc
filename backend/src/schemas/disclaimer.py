"""Pydantic schemas for medical disclaimer endpoints."""
from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class DisclaimerTextResponse(BaseModel):
    """Disclaimer content and the rules the client applies while showing it."""

    title: str
    paragraphs: list[str]
    dont_show_again_label: str
    scroll_end_tolerance_px: int
    reprompt_days: int


class DisclaimerStatusResponse(BaseModel):
    """Whether the caller must be shown the disclaimer."""

    state: str
    prompt_required: bool
    last_shown: datetime | None
    dont_show: bool
    next_prompt_at: datetime | None


class ConsentRequest(BaseModel):
    """
    Schema for accepting the disclaimer.

    The final scroll metrics of the disclaimer viewport are reported so the
    scroll-to-end requirement is enforced server side as well.
    """

    dont_show_again: bool = False
    scroll_top: float = Field(..., ge=0)
    client_height: float = Field(..., ge=0)
    scroll_height: float = Field(..., ge=0)


class ConsentResponse(BaseModel):
    """Schema for a stored consent record."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: UUID
    consented_at: datetime
    user_agent: str | None
    ip_address: str | None


class ConsentOutcomeResponse(BaseModel):
    """Recorded consent plus where the client goes next."""

    consent: ConsentResponse
    redirect_to: str
