"""
Authentication Schemas
======================

Pydantic schemas for authentication endpoints.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator


def _normalize_email(v: str) -> str:
    return v.strip().lower()


class UserRegister(BaseModel):
    """Request schema for user registration."""

    name: str = Field(default="", max_length=255)
    email: EmailStr
    password: str = Field(min_length=6, max_length=100)

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, v):
        return _normalize_email(v) if isinstance(v, str) else v

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        return v.strip()


class UserLogin(BaseModel):
    """Request schema for user login."""

    email: EmailStr
    password: str = Field(min_length=1)

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, v):
        return _normalize_email(v) if isinstance(v, str) else v


class RefreshTokenRequest(BaseModel):
    """
    Request schema for token refresh and logout.

    The token may instead arrive in the ``refreshToken`` cookie.
    """

    model_config = ConfigDict(populate_by_name=True)

    refresh_token: Optional[str] = Field(default=None, alias="refreshToken")


class TokenResponse(BaseModel):
    """Response schema for tokens."""

    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int  # seconds


class UserPublic(BaseModel):
    """User fields exposed by the API."""

    id: str
    name: str
    email: EmailStr
    avatarUrl: str
    createdAt: Optional[str] = None


class AuthData(BaseModel):
    """Payload of register/login responses."""

    user: UserPublic
    tokens: TokenResponse


class AuthResponse(BaseModel):
    """Response schema for register and login."""

    success: bool = True
    data: AuthData
    message: Optional[str] = None


class RefreshResponse(BaseModel):
    """Response schema for token refresh."""

    success: bool = True
    data: TokenResponse
    message: Optional[str] = None
