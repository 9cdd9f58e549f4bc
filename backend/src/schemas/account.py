"""Pydantic schemas for signup, login and session endpoints."""
from uuid import UUID

from pydantic import BaseModel, Field, field_validator


class SignUpRequest(BaseModel):
    """Schema for creating an account."""

    username: str = Field(..., min_length=1, max_length=100)
    email: str = Field(..., min_length=3, max_length=320)
    password: str = Field(..., min_length=6, max_length=72)

    @field_validator("username", "email")
    @classmethod
    def strip_whitespace(cls, v: str) -> str:
        """Trim surrounding whitespace and reject blank values."""
        v = v.strip()
        if not v:
            raise ValueError("Value cannot be blank")
        return v


class LoginRequest(BaseModel):
    """Schema for logging in with email and password."""

    email: str = Field(..., min_length=3, max_length=320)
    password: str = Field(..., min_length=1)


class SessionTokens(BaseModel):
    """Tokens of an authenticated session."""

    access_token: str
    refresh_token: str | None
    token_type: str
    expires_in: int | None


class AuthResponse(BaseModel):
    """Response of signup and login: the session and where the client goes next."""

    user_id: UUID
    email: str | None
    session: SessionTokens | None = Field(
        default=None,
        description="Absent when the account still needs email confirmation",
    )
    redirect_to: str


class SessionResponse(BaseModel):
    """Who is logged in and whether they must consent to the disclaimer."""

    user_id: UUID
    email: str | None
    name: str | None
    needs_setup: bool
    disclaimer_required: bool
