"""Subscription model - the user's active tier and per-period usage counters."""
from datetime import datetime
from enum import StrEnum
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from models.base import Base, TimestampMixin

if TYPE_CHECKING:
    from models.profile import Profile


class SubscriptionStatus(StrEnum):
    """Billing status of a subscription."""

    ACTIVE = "active"
    CANCELED = "canceled"
    PAST_DUE = "past_due"
    TRIALING = "trialing"
    INCOMPLETE = "incomplete"


class Subscription(Base, TimestampMixin):
    """
    Subscription record, one per user.

    Written by the billing integration (tier, status, interval, period) and by
    this service (usage counters). Counters reset when a new period starts.
    """

    __tablename__ = "subscriptions"

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[UUID] = mapped_column(
        ForeignKey("profiles.id", ondelete="CASCADE"),
        unique=True,
        index=True,
    )
    tier: Mapped[str] = mapped_column(String(20), default="free", nullable=False)
    status: Mapped[str] = mapped_column(
        String(20), default=SubscriptionStatus.ACTIVE.value, nullable=False,
    )
    interval: Mapped[str] = mapped_column(String(20), default="monthly", nullable=False)
    current_period_start: Mapped[datetime] = mapped_column(DateTime(timezone=True))
    current_period_end: Mapped[datetime] = mapped_column(DateTime(timezone=True))
    cancel_at_period_end: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    meals_generated_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    meals_saved_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    ingredient_swaps_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    family_member_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    profile: Mapped["Profile"] = relationship(back_populates="subscription")
