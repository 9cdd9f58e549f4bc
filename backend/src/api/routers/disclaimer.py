"""Medical disclaimer endpoints."""
from datetime import datetime, timedelta

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import (
    get_async_session,
    get_current_profile,
    get_now,
    get_reprompt_window,
)
from core.disclaimer import (
    DISCLAIMER_PARAGRAPHS,
    DISCLAIMER_TITLE,
    DONT_SHOW_AGAIN_LABEL,
    SCROLL_END_TOLERANCE_PX,
)
from models.profile import Profile
from schemas.disclaimer import (
    ConsentOutcomeResponse,
    ConsentRequest,
    ConsentResponse,
    DisclaimerStatusResponse,
    DisclaimerTextResponse,
)
from services import disclaimer_service
from services.disclaimer_service import ScrollPosition
from services.exceptions import PersistenceError, ScrollIncompleteError

router = APIRouter(prefix="/disclaimer", tags=["disclaimer"])


@router.get("", response_model=DisclaimerTextResponse)
async def get_disclaimer(
    window: timedelta = Depends(get_reprompt_window),
) -> DisclaimerTextResponse:
    """Get the disclaimer text. Public so it can be read before logging in."""
    return DisclaimerTextResponse(
        title=DISCLAIMER_TITLE,
        paragraphs=list(DISCLAIMER_PARAGRAPHS),
        dont_show_again_label=DONT_SHOW_AGAIN_LABEL,
        scroll_end_tolerance_px=SCROLL_END_TOLERANCE_PX,
        reprompt_days=window.days,
    )


@router.get("/status", response_model=DisclaimerStatusResponse)
async def get_disclaimer_status(
    profile: Profile = Depends(get_current_profile),
    now: datetime = Depends(get_now),
    window: timedelta = Depends(get_reprompt_window),
) -> DisclaimerStatusResponse:
    """
    Check whether the caller must be shown the disclaimer.

    The prompt is required when the disclaimer was never accepted, when
    "don't show again" was not ticked, or when the last acceptance is older
    than the re-consent window.
    """
    result = disclaimer_service.get_status(profile, now, window)
    return DisclaimerStatusResponse(
        state=result.state.value,
        prompt_required=result.prompt_required,
        last_shown=result.last_shown,
        dont_show=result.dont_show,
        next_prompt_at=result.next_prompt_at,
    )


@router.post(
    "/consent",
    response_model=ConsentOutcomeResponse,
    status_code=status.HTTP_201_CREATED,
)
async def grant_consent(
    data: ConsentRequest,
    request: Request,
    profile: Profile = Depends(get_current_profile),
    db: AsyncSession = Depends(get_async_session),
    now: datetime = Depends(get_now),
    window: timedelta = Depends(get_reprompt_window),
) -> ConsentOutcomeResponse:
    """
    Record acceptance of the disclaimer.

    Stores an audit record with the browser user agent and updates the
    profile's disclaimer state in the same transaction.
    """
    try:
        outcome = await disclaimer_service.grant_consent(
            db,
            profile,
            dont_show=data.dont_show_again,
            user_agent=request.headers.get("User-Agent"),
            scroll=ScrollPosition(
                scroll_top=data.scroll_top,
                client_height=data.client_height,
                scroll_height=data.scroll_height,
            ),
            now=now,
            window=window,
        )
    except ScrollIncompleteError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail={"error": "scroll_incomplete", "message": str(e)},
        )
    except PersistenceError as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "consent_not_saved", "message": str(e)},
        )

    return ConsentOutcomeResponse(
        consent=ConsentResponse.model_validate(outcome.consent),
        redirect_to=outcome.redirect_to.value,
    )


@router.get("/consents", response_model=list[ConsentResponse])
async def list_my_consents(
    profile: Profile = Depends(get_current_profile),
    db: AsyncSession = Depends(get_async_session),
) -> list[ConsentResponse]:
    """Get the caller's consent history, newest first."""
    consents = await disclaimer_service.list_consents(db, profile.id)
    return [ConsentResponse.model_validate(c) for c in consents]
