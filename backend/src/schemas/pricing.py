"""Pydantic schemas for pricing endpoints."""
from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel

from core.catalog import PricePoint, SubscriptionTier


class PricePointResponse(BaseModel):
    """Price of one billing interval."""

    price: Decimal
    interval_label: str
    savings: Decimal
    savings_percentage: int

    @classmethod
    def from_price_point(cls, point: PricePoint) -> "PricePointResponse":
        """Build from a catalog price point."""
        return cls(
            price=point.price,
            interval_label=point.interval_label,
            savings=point.savings,
            savings_percentage=point.savings_percentage,
        )


class TierResponse(BaseModel):
    """A subscription tier as shown on the pricing page."""

    id: str
    name: str
    features: list[str]
    limitations: list[str]
    pricing: dict[str, PricePointResponse]
    family_member_pricing: dict[str, PricePointResponse]

    @classmethod
    def from_tier(cls, tier: SubscriptionTier) -> "TierResponse":
        """Build from a catalog tier."""
        return cls(
            id=tier.id.value,
            name=tier.name,
            features=list(tier.features),
            limitations=list(tier.limitations),
            pricing={
                interval.value: PricePointResponse.from_price_point(point)
                for interval, point in tier.pricing.items()
            },
            family_member_pricing={
                interval.value: PricePointResponse.from_price_point(point)
                for interval, point in tier.family_member_pricing.items()
            },
        )


class FamilyMemberQuoteResponse(BaseModel):
    """Price of adding a family member seat to the current billing period."""

    interval: str
    full_price: Decimal
    prorated_price: Decimal
    period_start: datetime
    period_end: datetime
