"""
Authentication schemas for request/response validation.

This module defines Pydantic models for authentication-related API operations:
- Login credentials
- Token responses
- Account registration
"""

from pydantic import BaseModel, EmailStr, Field, field_validator


class LoginRequest(BaseModel):
    """Request schema for login."""

    email: EmailStr
    password: str = Field(..., min_length=1, max_length=255)


class TokenResponse(BaseModel):
    """Response schema for successful authentication."""

    access_token: str
    token_type: str = "bearer"
    expires_in: int = Field(..., description="Access token expiration time in seconds from now")


class RegisterRequest(BaseModel):
    """Request schema for account registration."""

    email: EmailStr
    password: str = Field(..., min_length=6, max_length=255)
    display_name: str | None = Field(None, max_length=100)

    @field_validator("display_name")
    @classmethod
    def strip_display_name(cls, v: str | None) -> str | None:
        if v is None:
            return v
        return v.strip() or None


class ActorResponse(BaseModel):
    """Who the caller is, as resolved from their credentials."""

    user_id: int
    email: str
    is_admin: bool
