"""Profile model - one row per identity user."""
from datetime import date, datetime
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import JSON, Boolean, Date, DateTime, Float, String, false
from sqlalchemy.orm import Mapped, mapped_column, relationship

from models.base import Base, TimestampMixin

if TYPE_CHECKING:
    from models.disclaimer_consent import MedicalDisclaimerConsent
    from models.subscription import Subscription


class Profile(Base, TimestampMixin):
    """
    User profile keyed by the identity provider's user id.

    Holds the profile-setup answers and the disclaimer preference fields.
    """

    __tablename__ = "profiles"

    id: Mapped[UUID] = mapped_column(
        primary_key=True,
        comment="Identity provider user id (auth.users.id)",
    )
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    name: Mapped[str | None] = mapped_column(
        String(100),
        nullable=True,
        unique=True,
        index=True,
        comment="Display name chosen at signup; used as the username",
    )
    date_of_birth: Mapped[date | None] = mapped_column(Date, nullable=True)

    # Disclaimer preferences
    last_disclaimer_shown: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        comment="When the medical disclaimer was last accepted",
    )
    disclaimer_dont_show: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        server_default=false(),
        nullable=False,
        comment="User preference; only suppresses the prompt inside the re-consent window",
    )

    # Profile setup
    sex: Mapped[str | None] = mapped_column(String(20), nullable=True)
    country: Mapped[str | None] = mapped_column(String(100), nullable=True)
    weight: Mapped[float | None] = mapped_column(Float, nullable=True)
    weight_unit: Mapped[str] = mapped_column(
        String(3), default="kg", server_default="kg", nullable=False,
    )
    has_chronic_condition: Mapped[bool] = mapped_column(
        Boolean, default=False, server_default=false(), nullable=False,
    )
    dietary_preset: Mapped[str | None] = mapped_column(String(50), nullable=True)
    dietary_preferences: Mapped[list[str]] = mapped_column(JSON, default=list, nullable=False)
    food_allergies: Mapped[list[str]] = mapped_column(JSON, default=list, nullable=False)

    disclaimer_consents: Mapped[list["MedicalDisclaimerConsent"]] = relationship(
        back_populates="profile",
        cascade="all, delete-orphan",
        order_by="MedicalDisclaimerConsent.consented_at",
    )
    subscription: Mapped["Subscription | None"] = relationship(
        back_populates="profile",
        cascade="all, delete-orphan",
        uselist=False,
    )
