"""SQLAlchemy models."""
from models.base import Base, TimestampMixin
from models.disclaimer_consent import MedicalDisclaimerConsent
from models.profile import Profile
from models.subscription import Subscription, SubscriptionStatus

__all__ = [
    "Base",
    "MedicalDisclaimerConsent",
    "Profile",
    "Subscription",
    "SubscriptionStatus",
    "TimestampMixin",
]
