"""Shared exceptions for service layer operations."""


class AuthenticationError(Exception):
    """
    Raised when there is no valid session or the credentials are rejected.

    Carries the identity provider's message when there is one.
    """

    def __init__(self, message: str = "You must be logged in to continue.") -> None:
        super().__init__(message)


class ValidationError(Exception):
    """Raised when account input is rejected (e.g. username already taken)."""

    def __init__(self, message: str, field: str | None = None) -> None:
        self.field = field
        super().__init__(message)


class PersistenceError(Exception):
    """
    Raised when a write to the data store fails.

    The transaction is rolled back before this is raised, so no partial
    write is visible.
    """

    def __init__(self, message: str) -> None:
        super().__init__(message)


class IdentityServiceError(Exception):
    """Raised when the identity provider fails for reasons other than bad credentials."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.status_code = status_code
        super().__init__(message)


class ProfileNotFoundError(Exception):
    """Raised when a profile required by an operation doesn't exist."""

    def __init__(self, user_id: object) -> None:
        self.user_id = user_id
        super().__init__(f"Profile not found: {user_id}")


class ScrollIncompleteError(Exception):
    """Raised when consent is submitted before the disclaimer was scrolled to its end."""

    def __init__(self) -> None:
        super().__init__("Please scroll through the entire disclaimer to enable consent")


class FeatureNotAvailableError(Exception):
    """Raised when a feature is not included in the user's current tier."""

    def __init__(self, feature: str, message: str) -> None:
        self.feature = feature
        super().__init__(message)


class QuotaExceededError(Exception):
    """Raised when a per-period usage quota has been used up."""

    def __init__(self, usage: str, limit: int, message: str) -> None:
        self.usage = usage
        self.limit = limit
        super().__init__(message)
