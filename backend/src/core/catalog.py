"""
Static subscription catalog: plan tiers, features and pricing.

The catalog is built once at import time from a handful of base prices. Savings
figures are derived from the monthly price so that every interval stays
consistent with it:

    savings = monthly_price * months_in_interval - interval_price
    savings_percentage = round_half_up(savings / (monthly_price * months) * 100)

Family member seats cost half of the base seat for every interval and are
prorated against the remaining part of the subscriber's current billing period.
"""
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from enum import StrEnum
from types import MappingProxyType

CENTS = Decimal("0.01")
FAMILY_MEMBER_DISCOUNT = Decimal("0.5")


class TierId(StrEnum):
    """Plan tier identifiers."""

    FREE = "free"
    PREMIUM = "premium"


class BillingInterval(StrEnum):
    """Billing intervals offered for the premium tier."""

    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    BIANNUALLY = "biannually"
    ANNUALLY = "annually"

    @property
    def months(self) -> int:
        """Number of months covered by one billing period."""
        return _INTERVAL_MONTHS[self]

    @property
    def label(self) -> str:
        """Short display label (e.g. '3-month')."""
        return _INTERVAL_LABELS[self]


_INTERVAL_MONTHS = {
    BillingInterval.MONTHLY: 1,
    BillingInterval.QUARTERLY: 3,
    BillingInterval.BIANNUALLY: 6,
    BillingInterval.ANNUALLY: 12,
}

_INTERVAL_LABELS = {
    BillingInterval.MONTHLY: "month",
    BillingInterval.QUARTERLY: "3-month",
    BillingInterval.BIANNUALLY: "6-month",
    BillingInterval.ANNUALLY: "year",
}


@dataclass(frozen=True)
class PricePoint:
    """Price of one billing interval and its savings over paying monthly."""

    interval: BillingInterval
    price: Decimal
    savings: Decimal
    savings_percentage: int

    @property
    def interval_label(self) -> str:
        """Display label for the billing interval."""
        return self.interval.label


@dataclass(frozen=True)
class SubscriptionTier:
    """A named bundle of entitlements with its price points."""

    id: TierId
    name: str
    features: tuple[str, ...]
    limitations: tuple[str, ...]
    pricing: Mapping[BillingInterval, PricePoint]
    family_member_pricing: Mapping[BillingInterval, PricePoint]


def round_money(amount: Decimal) -> Decimal:
    """Round a currency amount to cents, half-up."""
    return amount.quantize(CENTS, rounding=ROUND_HALF_UP)


def build_price_point(
    interval: BillingInterval,
    price: Decimal,
    monthly_price: Decimal,
) -> PricePoint:
    """
    Build a price point with savings derived from the monthly price.

    Args:
        interval: Billing interval the price covers.
        price: Price charged per interval.
        monthly_price: Price of a single month, the baseline for savings.

    Returns:
        PricePoint with absolute savings and an integer savings percentage.
    """
    baseline = monthly_price * interval.months
    savings = round_money(baseline - price)
    if baseline == 0:
        percentage = 0
    else:
        percentage = int(
            (savings / baseline * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP),
        )
    return PricePoint(
        interval=interval,
        price=round_money(price),
        savings=savings,
        savings_percentage=percentage,
    )


def build_pricing(
    interval_prices: Mapping[BillingInterval, Decimal],
) -> Mapping[BillingInterval, PricePoint]:
    """Build a read-only pricing table from per-interval prices."""
    monthly_price = interval_prices[BillingInterval.MONTHLY]
    return MappingProxyType({
        interval: build_price_point(interval, price, monthly_price)
        for interval, price in interval_prices.items()
    })


PREMIUM_PRICES: Mapping[BillingInterval, Decimal] = MappingProxyType({
    BillingInterval.MONTHLY: Decimal("12.00"),
    BillingInterval.QUARTERLY: Decimal("33.00"),
    BillingInterval.BIANNUALLY: Decimal("60.00"),
    BillingInterval.ANNUALLY: Decimal("96.00"),
})

FAMILY_MEMBER_PRICES: Mapping[BillingInterval, Decimal] = MappingProxyType({
    interval: round_money(price * FAMILY_MEMBER_DISCOUNT)
    for interval, price in PREMIUM_PRICES.items()
})


FREE_TIER = SubscriptionTier(
    id=TierId.FREE,
    name="Free",
    features=(
        "Generate 1 meal at a time",
        "Apply 1 dietary filter (e.g., dairy-free, gluten-free)",
        "Set dietary preset (e.g., Keto)",
        "View nutrition info for that meal",
        "Save up to 2 meals",
        "Learn how the 2 Rule system works",
    ),
    limitations=(
        "Cannot build full meal plans",
        "No grocery lists",
        "Limited to 2 saved meals",
    ),
    pricing=MappingProxyType({}),
    family_member_pricing=MappingProxyType({}),
)

PREMIUM_TIER = SubscriptionTier(
    id=TierId.PREMIUM,
    name="Premium",
    features=(
        "Build 1-day or 7-day meal plans",
        "Save 14 days of meals (42 meals) every month",
        "Create grocery lists",
        "Track fructose & omega ratio per day",
        "Use multiple dietary filters and preferences",
        "Include snacks and desserts",
        "Use of the Meal Builder to add custom ingredients",
        "Ingredient swapping in Meal Builder (limited to 12/month)",
        "Add family member profiles at a 50% discount",
    ),
    limitations=(),
    pricing=build_pricing(PREMIUM_PRICES),
    family_member_pricing=build_pricing(FAMILY_MEMBER_PRICES),
)

CATALOG: Mapping[TierId, SubscriptionTier] = MappingProxyType({
    TierId.FREE: FREE_TIER,
    TierId.PREMIUM: PREMIUM_TIER,
})


def get_catalog() -> Mapping[TierId, SubscriptionTier]:
    """Return the read-only tier catalog, free tier first."""
    return CATALOG


def get_tier(tier_id: TierId) -> SubscriptionTier:
    """
    Get a tier from the catalog.

    Raises:
        KeyError: If tier_id is not in the catalog.
    """
    return CATALOG[tier_id]


def get_price(tier_id: TierId, interval: BillingInterval) -> PricePoint:
    """
    Get the price point of a tier for a billing interval.

    Raises:
        KeyError: If the tier has no price for the interval (e.g. free tier).
    """
    return CATALOG[tier_id].pricing[interval]


def get_family_member_price(interval: BillingInterval) -> PricePoint:
    """Get the family member seat price for a billing interval."""
    return PREMIUM_TIER.family_member_pricing[interval]


def prorate_family_member_seat(
    interval: BillingInterval,
    period_start: datetime,
    period_end: datetime,
    now: datetime,
) -> Decimal:
    """
    Price of adding a family member seat for the rest of the current period.

    The seat price for the interval is scaled by the fraction of the billing
    period still remaining at `now`. Adding a seat before the period starts
    charges the full price; at or after the period end it charges nothing.

    Raises:
        ValueError: If period_end is not after period_start.
    """
    if period_end <= period_start:
        raise ValueError("Billing period end must be after its start")

    full_price = get_family_member_price(interval).price
    if now <= period_start:
        return full_price
    if now >= period_end:
        return Decimal("0.00")

    total_seconds = Decimal(str((period_end - period_start).total_seconds()))
    remaining_seconds = Decimal(str((period_end - now).total_seconds()))
    return round_money(full_price * remaining_seconds / total_seconds)
