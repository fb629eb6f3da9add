"""
Profile Schemas
===============

Pydantic schemas for user profile endpoints.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from app.schemas.auth import UserPublic


class ProfileUpdate(BaseModel):
    """Request schema for profile updates."""

    model_config = ConfigDict(populate_by_name=True)

    name: Optional[str] = Field(None, max_length=255)
    avatar_url: Optional[str] = Field(None, max_length=2048, alias="avatarUrl")


class PasswordChange(BaseModel):
    """Request schema for changing the account password."""

    model_config = ConfigDict(populate_by_name=True)

    current_password: str = Field(min_length=1, alias="currentPassword")
    new_password: str = Field(min_length=6, max_length=100, alias="newPassword")


class AccountDelete(BaseModel):
    """Request schema for deleting the account; requires the password."""

    password: str = Field(min_length=1)


class ProfileResponse(BaseModel):
    """Response schema for profile endpoints."""

    success: bool = True
    data: UserPublic
    message: Optional[str] = None
