"""Tests for the health check endpoint."""
from unittest.mock import AsyncMock, MagicMock

from httpx import AsyncClient

from api.main import app
from core.redis import RedisClient


async def test_health_endpoint_returns_healthy_status(client: AsyncClient) -> None:
    """Test that the health endpoint returns healthy status."""
    response = await client.get("/health")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["database"] == "healthy"
    assert data["rate_limiter"] == "disabled"


async def test_health_endpoint_reports_unavailable_redis(client: AsyncClient) -> None:
    """An unreachable Redis degrades only the limiter."""
    redis_client = MagicMock(spec=RedisClient)
    redis_client.ping = AsyncMock(return_value=False)
    app.state.redis_client = redis_client
    try:
        response = await client.get("/health")
    finally:
        del app.state.redis_client

    data = response.json()
    assert data["status"] == "healthy"
    assert data["rate_limiter"] == "unavailable"


async def test_health_endpoint_security_headers(client: AsyncClient) -> None:
    """Security headers are added to every response."""
    response = await client.get("/health")

    assert response.headers["X-Content-Type-Options"] == "nosniff"
    assert response.headers["X-Frame-Options"] == "DENY"
    assert "max-age=31536000" in response.headers["Strict-Transport-Security"]
