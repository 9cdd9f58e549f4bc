"""Pydantic schemas for subscription endpoints."""
from datetime import datetime

from pydantic import BaseModel, Field

from models.subscription import Subscription
from services.subscription_service import Entitlements
from services.utils import as_utc


class UsageCounts(BaseModel):
    """Usage recorded in the current billing period."""

    meals_generated: int
    meals_saved: int
    ingredient_swaps: int
    family_members: int


class EntitlementsResponse(BaseModel):
    """What the user can do right now."""

    can_generate_meal: bool
    can_save_meal: bool
    can_swap_ingredient: bool
    can_generate_full_day: bool
    can_generate_full_week: bool
    can_use_multiple_dietary_filters: bool
    can_create_grocery_list: bool
    remaining_saved_meals: int
    remaining_swaps: int
    max_meals_per_generation: int
    max_dietary_filters: int | None = Field(description="None means unlimited")
    max_plan_days: int


class SubscriptionResponse(BaseModel):
    """The caller's subscription, usage and entitlements."""

    tier: str
    effective_tier: str
    is_premium: bool
    status: str
    interval: str
    current_period_start: datetime
    current_period_end: datetime
    cancel_at_period_end: bool
    usage: UsageCounts
    entitlements: EntitlementsResponse

    @classmethod
    def build(
        cls, subscription: Subscription, entitlements: Entitlements,
    ) -> "SubscriptionResponse":
        """Combine the stored row with its derived entitlements."""
        limits = entitlements.limits
        return cls(
            tier=subscription.tier,
            effective_tier=entitlements.tier.value,
            is_premium=entitlements.is_premium,
            status=subscription.status,
            interval=subscription.interval,
            current_period_start=as_utc(subscription.current_period_start),
            current_period_end=as_utc(subscription.current_period_end),
            cancel_at_period_end=subscription.cancel_at_period_end,
            usage=UsageCounts(
                meals_generated=subscription.meals_generated_count,
                meals_saved=subscription.meals_saved_count,
                ingredient_swaps=subscription.ingredient_swaps_count,
                family_members=subscription.family_member_count,
            ),
            entitlements=EntitlementsResponse(
                can_generate_meal=entitlements.can_generate_meal,
                can_save_meal=entitlements.can_save_meal,
                can_swap_ingredient=entitlements.can_swap_ingredient,
                can_generate_full_day=entitlements.can_generate_full_day,
                can_generate_full_week=entitlements.can_generate_full_week,
                can_use_multiple_dietary_filters=entitlements.can_use_multiple_dietary_filters,
                can_create_grocery_list=entitlements.can_create_grocery_list,
                remaining_saved_meals=entitlements.remaining_saved_meals,
                remaining_swaps=entitlements.remaining_swaps,
                max_meals_per_generation=limits.max_meals_per_generation,
                max_dietary_filters=limits.max_dietary_filters,
                max_plan_days=limits.max_plan_days,
            ),
        )
