"""Pricing endpoints backed by the static subscription catalog."""
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_async_session, get_current_profile, get_now
from core.catalog import (
    BillingInterval,
    TierId,
    get_catalog,
    get_family_member_price,
    get_tier,
    prorate_family_member_seat,
)
from core.routes import Route
from core.tier_limits import Feature
from models.profile import Profile
from schemas.pricing import FamilyMemberQuoteResponse, TierResponse
from services import subscription_service
from services.exceptions import FeatureNotAvailableError
from services.utils import as_utc

router = APIRouter(prefix="/pricing", tags=["pricing"])


@router.get("/tiers", response_model=list[TierResponse])
async def list_tiers() -> list[TierResponse]:
    """Get all subscription tiers, free tier first."""
    return [TierResponse.from_tier(tier) for tier in get_catalog().values()]


@router.get("/tiers/{tier_id}", response_model=TierResponse)
async def get_tier_by_id(tier_id: str) -> TierResponse:
    """Get a single subscription tier."""
    try:
        tier = get_tier(TierId(tier_id))
    except ValueError:
        raise HTTPException(status_code=404, detail="Tier not found")
    return TierResponse.from_tier(tier)


@router.get("/family-member-quote", response_model=FamilyMemberQuoteResponse)
async def quote_family_member(
    interval: BillingInterval = Query(default=BillingInterval.MONTHLY),
    profile: Profile = Depends(get_current_profile),
    db: AsyncSession = Depends(get_async_session),
    now: datetime = Depends(get_now),
) -> FamilyMemberQuoteResponse:
    """
    Quote adding a family member seat now.

    Family member seats are a Premium add-on, so free users get 402. The seat
    price is prorated against the remaining part of the caller's current
    billing period.
    """
    subscription = await subscription_service.get_or_create_subscription(db, profile.id, now)
    try:
        subscription_service.check_feature(subscription, Feature.FAMILY_MEMBERS)
    except FeatureNotAvailableError as e:
        raise HTTPException(
            status_code=status.HTTP_402_PAYMENT_REQUIRED,
            detail={
                "error": "feature_not_available",
                "message": str(e),
                "feature": e.feature,
                "redirect_to": Route.PRICING.value,
            },
        )
    period_start = as_utc(subscription.current_period_start)
    period_end = as_utc(subscription.current_period_end)
    try:
        prorated = prorate_family_member_seat(interval, period_start, period_end, as_utc(now))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e))
    return FamilyMemberQuoteResponse(
        interval=interval.value,
        full_price=get_family_member_price(interval).price,
        prorated_price=prorated,
        period_start=period_start,
        period_end=period_end,
    )
