"""Subscription endpoints: entitlements and usage counting."""
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_async_session, get_current_profile, get_now
from models.profile import Profile
from schemas.subscription import SubscriptionResponse
from services import subscription_service
from services.exceptions import FeatureNotAvailableError, QuotaExceededError
from services.subscription_service import UsageKind

router = APIRouter(prefix="/subscription", tags=["subscription"])


@router.get("/me", response_model=SubscriptionResponse)
async def get_my_subscription(
    profile: Profile = Depends(get_current_profile),
    db: AsyncSession = Depends(get_async_session),
    now: datetime = Depends(get_now),
) -> SubscriptionResponse:
    """
    Get the caller's subscription with usage and entitlements.

    Users without a subscription get an active free one.
    """
    subscription = await subscription_service.get_or_create_subscription(db, profile.id, now)
    entitlements = subscription_service.compute_entitlements(subscription)
    return SubscriptionResponse.build(subscription, entitlements)


@router.post("/me/usage/{kind}", response_model=SubscriptionResponse)
async def record_my_usage(
    kind: UsageKind,
    profile: Profile = Depends(get_current_profile),
    db: AsyncSession = Depends(get_async_session),
    now: datetime = Depends(get_now),
) -> SubscriptionResponse:
    """
    Count one metered action against the current billing period.

    Returns 402 when the action is not part of the caller's tier and 403 when
    the period's quota is used up. Nothing is counted in either case.
    """
    try:
        subscription = await subscription_service.record_usage(db, profile.id, kind, now)
    except FeatureNotAvailableError as e:
        raise HTTPException(
            status_code=status.HTTP_402_PAYMENT_REQUIRED,
            detail={
                "error": "feature_not_available",
                "message": str(e),
                "feature": e.feature,
                "redirect_to": "/pricing",
            },
        )
    except QuotaExceededError as e:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={
                "error": "quota_exceeded",
                "message": str(e),
                "usage": e.usage,
                "limit": e.limit,
            },
        )
    entitlements = subscription_service.compute_entitlements(subscription)
    return SubscriptionResponse.build(subscription, entitlements)
