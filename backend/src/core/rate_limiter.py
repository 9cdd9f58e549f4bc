"""
Redis-based rate limiting enforcement.

This module contains the enforcement logic. For the limits themselves, see
rate_limit_config.py.
"""
import logging
import time

from fastapi import Request

from core.rate_limit_config import (
    AuthAction,
    RateLimitExceededError,
    RateLimitResult,
)
from core.redis import RedisClient

logger = logging.getLogger(__name__)


def get_client_ip(request: Request) -> str | None:
    """
    Extract client IP address from request headers.

    Checks forwarded headers first (for proxy/load balancer scenarios),
    then falls back to direct client IP.
    """
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        # X-Forwarded-For can be comma-separated list, take first (client IP)
        return forwarded_for.split(",")[0].strip()

    real_ip = request.headers.get("X-Real-IP")
    if real_ip:
        return real_ip.strip()

    if request.client:
        return request.client.host

    return None


async def check_rate_limit(
    redis_client: RedisClient | None,
    client_id: str,
    action: AuthAction,
) -> RateLimitResult:
    """
    Check if an attempt is allowed and return full rate limit info.

    Falls back to allowing requests if Redis is unavailable.
    """
    # Import at call time so tests can monkeypatch rate_limit_config.RATE_LIMITS
    from core.rate_limit_config import RATE_LIMITS

    config = RATE_LIMITS[action]
    now = int(time.time())
    permissive = RateLimitResult(
        allowed=True,
        limit=config.max_attempts,
        remaining=config.max_attempts,
        reset=0,
        retry_after=0,
    )

    if redis_client is None or not redis_client.is_connected:
        logger.warning("redis_unavailable", extra={"operation": "rate_limit"})
        return permissive

    result = await redis_client.eval_fixed_window(
        key=f"rate:{action.value}:{client_id}",
        max_requests=config.max_attempts,
        window_seconds=config.window_seconds,
    )
    if result is None:
        return permissive

    allowed, remaining, ttl, retry_after = result
    rate_result = RateLimitResult(
        allowed=bool(allowed),
        limit=config.max_attempts,
        remaining=max(0, remaining),
        reset=now + ttl if ttl > 0 else now + config.window_seconds,
        retry_after=max(0, retry_after) if not allowed else 0,
    )
    if not rate_result.allowed:
        logger.warning(
            "rate_limit_exceeded",
            extra={"client_ip": client_id, "action": action.value},
        )
    return rate_result


async def enforce_rate_limit(request: Request, action: AuthAction) -> None:
    """
    Apply the attempt limit for the requesting client.

    Stores the result on request.state for the rate limit headers middleware.

    Raises:
        RateLimitExceededError: If the client has used up its attempts.
    """
    redis_client = getattr(request.app.state, "redis_client", None)
    client_id = get_client_ip(request) or "unknown"
    result = await check_rate_limit(redis_client, client_id, action)
    if not result.allowed:
        raise RateLimitExceededError(result)
    request.state.rate_limit_info = {
        "limit": result.limit,
        "remaining": result.remaining,
        "reset": result.reset,
    }


async def limit_login_attempts(request: Request) -> None:
    """Dependency limiting login attempts per client IP."""
    await enforce_rate_limit(request, AuthAction.LOGIN)


async def limit_signup_attempts(request: Request) -> None:
    """Dependency limiting signup attempts per client IP."""
    await enforce_rate_limit(request, AuthAction.SIGNUP)
