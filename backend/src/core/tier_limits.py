"""Tier-based usage limits for meal planning features."""
import logging
from collections.abc import Callable
from dataclasses import dataclass
from enum import StrEnum

from core.catalog import TierId

logger = logging.getLogger(__name__)

# Tier is the catalog's tier identifier; aliased for call sites that deal
# with limits rather than pricing.
Tier = TierId


class Feature(StrEnum):
    """Gated features that are not plain usage counters."""

    FULL_DAY_PLAN = "full_day_plan"
    FULL_WEEK_PLAN = "full_week_plan"
    MULTIPLE_DIETARY_FILTERS = "multiple_dietary_filters"
    GROCERY_LISTS = "grocery_lists"
    DAILY_NUTRIENT_TRACKING = "daily_nutrient_tracking"
    SNACKS_AND_DESSERTS = "snacks_and_desserts"
    MEAL_BUILDER = "meal_builder"
    INGREDIENT_SWAPS = "ingredient_swaps"
    FAMILY_MEMBERS = "family_members"


@dataclass(frozen=True)
class TierLimits:
    """Usage limits for a subscription tier."""

    # Saved meals: per billing period on premium, lifetime total on free
    max_saved_meals: int
    # Reset every billing period
    max_ingredient_swaps: int

    # Generation
    max_meals_per_generation: int
    allowed_plan_days: tuple[int, ...]
    max_dietary_filters: int | None  # None = unlimited

    # Feature flags
    can_create_grocery_lists: bool
    can_track_daily_nutrients: bool
    can_include_snacks_and_desserts: bool
    can_use_meal_builder: bool
    can_add_family_members: bool

    @property
    def max_plan_days(self) -> int:
        """Longest meal plan the tier can generate (0 = single meals only)."""
        return max(self.allowed_plan_days, default=0)


TIER_LIMITS: dict[Tier, TierLimits] = {
    Tier.FREE: TierLimits(
        max_saved_meals=2,
        max_ingredient_swaps=0,
        max_meals_per_generation=1,
        allowed_plan_days=(),
        max_dietary_filters=1,
        can_create_grocery_lists=False,
        can_track_daily_nutrients=False,
        can_include_snacks_and_desserts=False,
        can_use_meal_builder=False,
        can_add_family_members=False,
    ),
    Tier.PREMIUM: TierLimits(
        max_saved_meals=42,  # 14 days x 3 meals
        max_ingredient_swaps=12,
        max_meals_per_generation=3,
        allowed_plan_days=(1, 7),
        max_dietary_filters=None,
        can_create_grocery_lists=True,
        can_track_daily_nutrients=True,
        can_include_snacks_and_desserts=True,
        can_use_meal_builder=True,
        can_add_family_members=True,
    ),
}


def get_tier_safely(tier_value: str) -> Tier:
    """
    Safely convert a string to a Tier enum, defaulting to FREE on unknown values.

    This prevents 500 errors from bad data or tier values written by a newer
    version of the billing integration.

    Args:
        tier_value: The tier string from the database.

    Returns:
        The corresponding Tier enum, or Tier.FREE if unknown.
    """
    try:
        return Tier(tier_value)
    except ValueError:
        logger.warning(
            "Unknown tier value '%s', defaulting to FREE tier",
            tier_value,
        )
        return Tier.FREE


def get_tier_limits(tier: Tier) -> TierLimits:
    """
    Get limits for a tier.

    Raises:
        KeyError: If tier is not found in TIER_LIMITS.
    """
    return TIER_LIMITS[tier]


_FEATURE_CHECKS: dict[Feature, Callable[[TierLimits], bool]] = {
    Feature.FULL_DAY_PLAN: lambda limits: 1 in limits.allowed_plan_days,
    Feature.FULL_WEEK_PLAN: lambda limits: 7 in limits.allowed_plan_days,
    Feature.MULTIPLE_DIETARY_FILTERS: lambda limits: (
        limits.max_dietary_filters is None or limits.max_dietary_filters > 1
    ),
    Feature.GROCERY_LISTS: lambda limits: limits.can_create_grocery_lists,
    Feature.DAILY_NUTRIENT_TRACKING: lambda limits: limits.can_track_daily_nutrients,
    Feature.SNACKS_AND_DESSERTS: lambda limits: limits.can_include_snacks_and_desserts,
    Feature.MEAL_BUILDER: lambda limits: limits.can_use_meal_builder,
    Feature.INGREDIENT_SWAPS: lambda limits: limits.max_ingredient_swaps > 0,
    Feature.FAMILY_MEMBERS: lambda limits: limits.can_add_family_members,
}


def is_feature_enabled(limits: TierLimits, feature: Feature) -> bool:
    """Check whether a gated feature is available under the given limits."""
    return _FEATURE_CHECKS[feature](limits)
