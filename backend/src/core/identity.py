"""HTTP client for the Supabase Auth (GoTrue) REST API."""
import logging
from dataclasses import dataclass, field
from typing import Any
from uuid import UUID

import httpx

from services.exceptions import AuthenticationError, IdentityServiceError

logger = logging.getLogger(__name__)

# Status codes the auth API uses for rejected credentials or input
CREDENTIAL_ERROR_STATUSES = {400, 401, 403, 422}


@dataclass(frozen=True)
class AuthUser:
    """User record as returned by the identity provider."""

    id: UUID
    email: str | None
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class AuthSession:
    """An authenticated session."""

    access_token: str
    refresh_token: str | None
    token_type: str
    expires_in: int | None
    user: AuthUser


def _parse_user(data: dict[str, Any]) -> AuthUser:
    return AuthUser(
        id=UUID(str(data["id"])),
        email=data.get("email"),
        metadata=data.get("user_metadata") or {},
    )


def _parse_session(data: dict[str, Any]) -> AuthSession:
    return AuthSession(
        access_token=data["access_token"],
        refresh_token=data.get("refresh_token"),
        token_type=data.get("token_type", "bearer"),
        expires_in=data.get("expires_in"),
        user=_parse_user(data["user"]),
    )


def _error_message(response: httpx.Response) -> str:
    """Extract the provider's human-readable error message."""
    try:
        body = response.json()
    except ValueError:
        return response.text or f"HTTP {response.status_code}"
    if isinstance(body, dict):
        for key in ("error_description", "msg", "message", "error"):
            if body.get(key):
                return str(body[key])
    return f"HTTP {response.status_code}"


class SupabaseAuthClient:
    """
    Thin async client for the identity endpoints the application uses.

    Owns an httpx.AsyncClient unless one is passed in. Constructed once by the
    application lifespan and injected into request handlers.
    """

    def __init__(
        self,
        base_url: str,
        api_key: str,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._api_key = api_key
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient()
        self._base_url = base_url.rstrip("/")

    def _headers(self, access_token: str | None = None) -> dict[str, str]:
        return {
            "apikey": self._api_key,
            "Authorization": f"Bearer {access_token or self._api_key}",
        }

    async def _request(
        self,
        method: str,
        path: str,
        *,
        json: dict[str, Any] | None = None,
        params: dict[str, str] | None = None,
        access_token: str | None = None,
    ) -> httpx.Response:
        try:
            response = await self._client.request(
                method,
                f"{self._base_url}{path}",
                json=json,
                params=params,
                headers=self._headers(access_token),
            )
        except httpx.HTTPError as e:
            logger.error("Identity service request failed: %s", e, exc_info=True)
            raise IdentityServiceError("Could not reach the authentication service") from e

        if response.status_code in CREDENTIAL_ERROR_STATUSES:
            raise AuthenticationError(_error_message(response))
        if response.is_error:
            logger.error(
                "identity_service_error",
                extra={"path": path, "status_code": response.status_code},
            )
            raise IdentityServiceError(_error_message(response), response.status_code)
        return response

    async def sign_up(
        self,
        email: str,
        password: str,
        metadata: dict[str, Any] | None = None,
    ) -> tuple[AuthUser, AuthSession | None]:
        """
        Register a new user.

        Returns the created user and, when email confirmation is disabled on
        the project, the session that was opened for it.
        """
        response = await self._request(
            "POST",
            "/signup",
            json={"email": email, "password": password, "data": metadata or {}},
        )
        data = response.json()
        if "access_token" in data:
            session = _parse_session(data)
            return session.user, session
        # Confirmation pending: the body is the user itself (or wraps it)
        return _parse_user(data.get("user", data)), None

    async def sign_in_with_password(self, email: str, password: str) -> AuthSession:
        """Open a session with email and password."""
        response = await self._request(
            "POST",
            "/token",
            params={"grant_type": "password"},
            json={"email": email, "password": password},
        )
        return _parse_session(response.json())

    async def sign_out(self, access_token: str) -> None:
        """Revoke the session behind an access token."""
        await self._request("POST", "/logout", access_token=access_token)

    async def aclose(self) -> None:
        """Close the underlying HTTP client if this instance created it."""
        if self._owns_client:
            await self._client.aclose()
