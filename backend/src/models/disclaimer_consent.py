"""Medical disclaimer consent model - append-only consent log."""
from datetime import datetime
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import DateTime, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from models.base import Base

if TYPE_CHECKING:
    from models.profile import Profile


class MedicalDisclaimerConsent(Base):
    """One row per disclaimer acceptance. Rows are never updated or deleted."""

    __tablename__ = "medical_disclaimer_consents"

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[UUID] = mapped_column(
        ForeignKey("profiles.id", ondelete="CASCADE"),
        index=True,
        comment="Foreign key to profiles table - many consent records per user",
    )
    consented_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        comment="Timestamp when user accepted the disclaimer",
    )
    user_agent: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
        comment="Browser user agent at time of consent",
    )
    ip_address: Mapped[str | None] = mapped_column(
        String(45),  # IPv6 max length is 45 chars
        nullable=True,
        comment="Reserved; not captured",
    )

    profile: Mapped["Profile"] = relationship(back_populates="disclaimer_consents")
