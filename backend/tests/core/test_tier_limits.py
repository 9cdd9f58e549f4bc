"""Tests for tier-based usage limits."""
import logging

import pytest

from core.tier_limits import (
    TIER_LIMITS,
    Feature,
    Tier,
    get_tier_limits,
    get_tier_safely,
    is_feature_enabled,
)


class TestTierEnum:
    """Tests for the Tier enum."""

    def test__tier_free__has_expected_value(self) -> None:
        """Tier.FREE should have value 'free'."""
        assert Tier.FREE == "free"
        assert Tier.FREE.value == "free"

    def test__tier_from_string__invalid_value_raises(self) -> None:
        """Tier construction from invalid string raises ValueError."""
        with pytest.raises(ValueError, match="'invalid' is not a valid TierId"):
            Tier("invalid")


class TestTierLimits:
    """Tests for the TierLimits dataclass."""

    def test__tier_limits__is_frozen(self) -> None:
        """TierLimits dataclass should be immutable (frozen)."""
        limits = TIER_LIMITS[Tier.FREE]
        with pytest.raises(AttributeError):
            limits.max_saved_meals = 999  # type: ignore[misc]

    def test__all_tiers_have_limits(self) -> None:
        """Every tier has a limits entry."""
        for tier in Tier:
            assert tier in TIER_LIMITS

    def test__free_tier__limits(self) -> None:
        """Free tier: one meal at a time, two saved meals, no swaps."""
        limits = get_tier_limits(Tier.FREE)
        assert limits.max_meals_per_generation == 1
        assert limits.max_saved_meals == 2
        assert limits.max_ingredient_swaps == 0
        assert limits.max_dietary_filters == 1
        assert limits.max_plan_days == 0
        assert limits.can_add_family_members is False
        assert limits.can_create_grocery_lists is False

    def test__premium_tier__limits(self) -> None:
        """Premium tier: 14 days of saved meals, 12 swaps, 1- and 7-day plans."""
        limits = get_tier_limits(Tier.PREMIUM)
        assert limits.max_meals_per_generation == 3
        assert limits.max_saved_meals == 42
        assert limits.max_ingredient_swaps == 12
        assert limits.max_dietary_filters is None
        assert limits.allowed_plan_days == (1, 7)
        assert limits.max_plan_days == 7
        assert limits.can_add_family_members is True
        assert limits.can_use_meal_builder is True


class TestGetTierSafely:
    """Tests for get_tier_safely."""

    def test__get_tier_safely__known_value(self) -> None:
        """Known tier values map to their enum."""
        assert get_tier_safely("premium") == Tier.PREMIUM

    def test__get_tier_safely__unknown_value_defaults_to_free(
        self,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        """Unknown tier values fall back to FREE with a warning."""
        with caplog.at_level(logging.WARNING):
            assert get_tier_safely("platinum") == Tier.FREE
        assert "platinum" in caplog.text


class TestIsFeatureEnabled:
    """Tests for feature gating by tier."""

    def test__free_tier__no_gated_features(self) -> None:
        """None of the gated features are available on the free tier."""
        limits = get_tier_limits(Tier.FREE)
        for feature in Feature:
            assert is_feature_enabled(limits, feature) is False, feature

    def test__premium_tier__all_gated_features(self) -> None:
        """Every gated feature is available on premium."""
        limits = get_tier_limits(Tier.PREMIUM)
        for feature in Feature:
            assert is_feature_enabled(limits, feature) is True, feature
