"""
Rate limiting configuration and types.

Policy for how many login and signup attempts a client may make, separate from
the enforcement logic in rate_limiter.py. To adjust limits, modify RATE_LIMITS.
"""
from dataclasses import dataclass
from enum import Enum


class AuthAction(Enum):
    """Unauthenticated actions that are rate limited per client IP."""

    LOGIN = "login"
    SIGNUP = "signup"


@dataclass
class RateLimitConfig:
    """Fixed window limit for an action."""

    max_attempts: int
    window_seconds: int


@dataclass
class RateLimitResult:
    """Result of a rate limit check with all info needed for headers."""

    allowed: bool
    limit: int  # Max requests in current window
    remaining: int  # Requests remaining in current window
    reset: int  # Unix timestamp when window resets
    retry_after: int  # Seconds until retry allowed (0 if allowed)


class RateLimitExceededError(Exception):
    """Raised when rate limit is exceeded."""

    def __init__(self, result: RateLimitResult) -> None:
        self.result = result
        super().__init__("Rate limit exceeded")


RATE_LIMITS: dict[AuthAction, RateLimitConfig] = {
    AuthAction.LOGIN: RateLimitConfig(max_attempts=10, window_seconds=60),
    AuthAction.SIGNUP: RateLimitConfig(max_attempts=5, window_seconds=3600),
}
