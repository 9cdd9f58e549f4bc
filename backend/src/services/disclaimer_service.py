"""Service layer for the medical disclaimer consent flow."""
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from core.disclaimer import (
    REPROMPT_WINDOW,
    ConsentFlow,
    DisclaimerState,
    next_prompt_at,
)
from core.routes import Route
from models.disclaimer_consent import MedicalDisclaimerConsent
from models.profile import Profile
from services.exceptions import PersistenceError, ScrollIncompleteError
from services.profile_service import needs_profile_setup

logger = logging.getLogger(__name__)

CONSENT_SAVE_FAILED_MESSAGE = "Failed to save your consent. Please try again."


@dataclass(frozen=True)
class ScrollPosition:
    """Final scroll metrics of the disclaimer viewport reported by the client."""

    scroll_top: float
    client_height: float
    scroll_height: float


@dataclass(frozen=True)
class DisclaimerStatus:
    """Evaluated disclaimer state for a profile."""

    state: DisclaimerState
    prompt_required: bool
    last_shown: datetime | None
    dont_show: bool
    next_prompt_at: datetime | None


@dataclass(frozen=True)
class ConsentOutcome:
    """Result of a successful consent grant."""

    consent: MedicalDisclaimerConsent
    redirect_to: Route
    state: DisclaimerState


def get_status(
    profile: Profile,
    now: datetime,
    window: timedelta = REPROMPT_WINDOW,
) -> DisclaimerStatus:
    """Evaluate whether the profile must be prompted for the disclaimer."""
    state = ConsentFlow(window=window).load(
        profile.last_disclaimer_shown, profile.disclaimer_dont_show, now,
    )
    return DisclaimerStatus(
        state=state,
        prompt_required=state is DisclaimerState.PROMPT_REQUIRED,
        last_shown=profile.last_disclaimer_shown,
        dont_show=profile.disclaimer_dont_show,
        next_prompt_at=next_prompt_at(profile.last_disclaimer_shown, window),
    )


def post_consent_route(profile: Profile) -> Route:
    """New users continue to profile setup, returning users to the dashboard."""
    if needs_profile_setup(profile):
        return Route.PROFILE_SETUP
    return Route.DASHBOARD


async def grant_consent(
    db: AsyncSession,
    profile: Profile,
    dont_show: bool,
    user_agent: str | None,
    scroll: ScrollPosition,
    now: datetime,
    window: timedelta = REPROMPT_WINDOW,
) -> ConsentOutcome:
    """
    Record the user's acceptance of the disclaimer.

    The request is replayed through a ConsentFlow: the stored state is loaded,
    the prompt shown, the reported scroll position observed and the consent
    box ticked. The flow only reaches consent_granted once a consent record
    and the profile's disclaimer fields have been flushed in the same
    transaction. If either write fails, both are rolled back.

    Raises:
        ScrollIncompleteError: If the disclaimer was not scrolled to its end.
        PersistenceError: If the writes could not be flushed.
    """
    flow = ConsentFlow(window=window)
    flow.load(profile.last_disclaimer_shown, profile.disclaimer_dont_show, now)
    flow.show_prompt()
    if not flow.scroll(scroll.scroll_top, scroll.client_height, scroll.scroll_height):
        raise ScrollIncompleteError()
    flow.set_consent_checked(True)
    flow.set_dont_show_again(dont_show)

    redirect_to = post_consent_route(profile)

    consent = MedicalDisclaimerConsent(
        user_id=profile.id,
        consented_at=now,
        user_agent=user_agent,
        ip_address=None,
    )
    db.add(consent)
    profile.last_disclaimer_shown = now
    profile.disclaimer_dont_show = flow.dont_show_again

    try:
        await db.flush()
    except SQLAlchemyError as e:
        logger.error("Disclaimer consent error: %s", e, exc_info=True)
        await db.rollback()
        raise PersistenceError(CONSENT_SAVE_FAILED_MESSAGE) from e

    flow.grant()
    await db.refresh(consent)
    logger.info(
        "disclaimer_consent_recorded",
        extra={"user_id": str(profile.id), "dont_show": dont_show},
    )
    return ConsentOutcome(consent=consent, redirect_to=redirect_to, state=flow.state)


async def list_consents(db: AsyncSession, user_id: UUID) -> list[MedicalDisclaimerConsent]:
    """Consent history for a user, newest first."""
    result = await db.execute(
        select(MedicalDisclaimerConsent)
        .where(MedicalDisclaimerConsent.user_id == user_id)
        .order_by(MedicalDisclaimerConsent.consented_at.desc(), MedicalDisclaimerConsent.id.desc()),
    )
    return list(result.scalars().all())
