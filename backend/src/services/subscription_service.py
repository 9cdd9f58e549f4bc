"""Service layer for subscription entitlements and usage counters."""
import calendar
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import StrEnum
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from core.catalog import BillingInterval
from core.tier_limits import (
    Feature,
    Tier,
    TierLimits,
    get_tier_limits,
    get_tier_safely,
    is_feature_enabled,
)
from models.subscription import Subscription, SubscriptionStatus
from services.exceptions import FeatureNotAvailableError, QuotaExceededError
from services.utils import as_utc

logger = logging.getLogger(__name__)

FREE_PERIOD = timedelta(days=30)


class UsageKind(StrEnum):
    """Usage counters tracked per billing period."""

    MEAL_GENERATED = "meal_generated"
    MEAL_SAVED = "meal_saved"
    INGREDIENT_SWAP = "ingredient_swap"


@dataclass(frozen=True)
class Entitlements:
    """What the user can do right now under their subscription."""

    tier: Tier
    is_premium: bool
    limits: TierLimits
    can_generate_meal: bool
    can_save_meal: bool
    can_swap_ingredient: bool
    can_generate_full_day: bool
    can_generate_full_week: bool
    can_use_multiple_dietary_filters: bool
    can_create_grocery_list: bool
    remaining_saved_meals: int
    remaining_swaps: int


def is_premium(subscription: Subscription) -> bool:
    """Premium only counts while the subscription is active."""
    return (
        get_tier_safely(subscription.tier) == Tier.PREMIUM
        and subscription.status == SubscriptionStatus.ACTIVE
    )


def effective_tier(subscription: Subscription) -> Tier:
    """Tier whose limits apply; inactive premium falls back to free."""
    return Tier.PREMIUM if is_premium(subscription) else Tier.FREE


def compute_entitlements(subscription: Subscription) -> Entitlements:
    """Derive feature flags and remaining quotas from a subscription row."""
    tier = effective_tier(subscription)
    limits = get_tier_limits(tier)
    remaining_saved = max(0, limits.max_saved_meals - subscription.meals_saved_count)
    remaining_swaps = max(0, limits.max_ingredient_swaps - subscription.ingredient_swaps_count)
    return Entitlements(
        tier=tier,
        is_premium=tier == Tier.PREMIUM,
        limits=limits,
        can_generate_meal=True,
        can_save_meal=remaining_saved > 0,
        can_swap_ingredient=remaining_swaps > 0,
        can_generate_full_day=is_feature_enabled(limits, Feature.FULL_DAY_PLAN),
        can_generate_full_week=is_feature_enabled(limits, Feature.FULL_WEEK_PLAN),
        can_use_multiple_dietary_filters=is_feature_enabled(
            limits, Feature.MULTIPLE_DIETARY_FILTERS,
        ),
        can_create_grocery_list=is_feature_enabled(limits, Feature.GROCERY_LISTS),
        remaining_saved_meals=remaining_saved,
        remaining_swaps=remaining_swaps,
    )


def check_feature(subscription: Subscription, feature: Feature) -> None:
    """
    Ensure a gated feature is available.

    Raises:
        FeatureNotAvailableError: If the feature is not in the effective tier.
    """
    limits = get_tier_limits(effective_tier(subscription))
    if not is_feature_enabled(limits, feature):
        raise FeatureNotAvailableError(
            feature.value,
            "This is a Premium feature. Upgrade to Premium to unlock it.",
        )


def add_months(value: datetime, months: int) -> datetime:
    """Add calendar months, clamping the day to the end of shorter months."""
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return value.replace(year=year, month=month, day=day)


def next_period_end(end: datetime, interval: str) -> datetime:
    """End of the period following one that ends at `end`."""
    try:
        months = BillingInterval(interval).months
    except ValueError:
        return end + FREE_PERIOD
    return add_months(end, months)


def roll_period_forward(subscription: Subscription, now: datetime) -> bool:
    """
    Start a new billing period when the current one has ended.

    Advances the period by whole intervals until it contains `now` and resets
    the monthly usage counters. Free-tier saved meals are a lifetime allowance
    and are kept. Returns True if the period changed.
    """
    end = as_utc(subscription.current_period_end)
    now = as_utc(now)
    if now <= end:
        return False

    start = end
    while now > end:
        start = end
        end = next_period_end(end, subscription.interval)
    subscription.current_period_start = start
    subscription.current_period_end = end
    subscription.meals_generated_count = 0
    subscription.ingredient_swaps_count = 0
    if effective_tier(subscription) == Tier.PREMIUM:
        subscription.meals_saved_count = 0
    logger.info(
        "subscription_period_rolled",
        extra={"user_id": str(subscription.user_id), "period_end": end.isoformat()},
    )
    return True


async def get_subscription(db: AsyncSession, user_id: UUID) -> Subscription | None:
    """Get the user's subscription, returns None if not exists."""
    result = await db.execute(select(Subscription).where(Subscription.user_id == user_id))
    return result.scalar_one_or_none()


async def get_or_create_subscription(
    db: AsyncSession,
    user_id: UUID,
    now: datetime,
) -> Subscription:
    """
    Get the user's subscription, creating an active free one if none exists.

    Rolls the billing period forward (resetting usage) when it has ended.
    """
    subscription = await get_subscription(db, user_id)
    if subscription is None:
        subscription = Subscription(
            user_id=user_id,
            tier=Tier.FREE.value,
            status=SubscriptionStatus.ACTIVE.value,
            interval=BillingInterval.MONTHLY.value,
            current_period_start=now,
            current_period_end=now + FREE_PERIOD,
            cancel_at_period_end=False,
            meals_generated_count=0,
            meals_saved_count=0,
            ingredient_swaps_count=0,
            family_member_count=0,
        )
        db.add(subscription)
        await db.flush()
        await db.refresh(subscription)
        return subscription

    if roll_period_forward(subscription, now):
        await db.flush()
        await db.refresh(subscription)
    return subscription


def _check_quota(subscription: Subscription, kind: UsageKind) -> None:
    entitlements = compute_entitlements(subscription)
    limits = entitlements.limits

    if kind == UsageKind.MEAL_SAVED and not entitlements.can_save_meal:
        if entitlements.is_premium:
            message = (
                f"You've reached your monthly limit of {limits.max_saved_meals} saved meals."
            )
        else:
            message = (
                f"Free users can only save {limits.max_saved_meals} meals. "
                "Upgrade to Premium for more."
            )
        raise QuotaExceededError(kind.value, limits.max_saved_meals, message)

    if kind == UsageKind.INGREDIENT_SWAP and not entitlements.can_swap_ingredient:
        if not entitlements.is_premium:
            raise FeatureNotAvailableError(
                Feature.INGREDIENT_SWAPS.value,
                "Ingredient swapping is a Premium feature.",
            )
        raise QuotaExceededError(
            kind.value,
            limits.max_ingredient_swaps,
            f"You've reached your monthly limit of {limits.max_ingredient_swaps} "
            "ingredient swaps.",
        )


async def record_usage(
    db: AsyncSession,
    user_id: UUID,
    kind: UsageKind,
    now: datetime,
) -> Subscription:
    """
    Count one use of a metered action.

    The quota is checked before anything is written.

    Raises:
        QuotaExceededError: If the period's quota is used up.
        FeatureNotAvailableError: If the action is not in the user's tier.
    """
    subscription = await get_or_create_subscription(db, user_id, now)
    _check_quota(subscription, kind)

    if kind == UsageKind.MEAL_GENERATED:
        subscription.meals_generated_count += 1
    elif kind == UsageKind.MEAL_SAVED:
        subscription.meals_saved_count += 1
    else:
        subscription.ingredient_swaps_count += 1

    await db.flush()
    await db.refresh(subscription)
    return subscription
