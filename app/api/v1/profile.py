"""
Profile API Endpoints
=====================

Handles user profile retrieval and updates, password changes and
account deletion.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import BadRequestError, ErrorCodes
from app.core.security import verify_password
from app.db.session import get_db
from app.dependencies import CurrentUser, CurrentUserRecord
from app.schemas.common import ErrorResponse, MessageResponse
from app.schemas.profile import (
    AccountDelete,
    PasswordChange,
    ProfileResponse,
    ProfileUpdate,
)
from app.services.auth_service import AuthService
from app.services.cache import CacheInvalidator, CacheKeys, CacheManager

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get(
    "",
    response_model=ProfileResponse,
)
async def get_profile(
    current_user: CurrentUser,
):
    """
    Get the current user's profile.
    """
    user_id_str = str(current_user.user_id)

    # Try cache first
    cached = await CacheManager.get(CacheKeys.profile(user_id_str))
    if cached:
        return ProfileResponse(success=True, data=cached)

    profile_data = current_user.to_api_dict()

    await CacheManager.set(
        CacheKeys.profile(user_id_str),
        profile_data,
        ttl=CacheManager.TTL_SHORT,
    )

    return ProfileResponse(success=True, data=profile_data)


@router.put(
    "",
    response_model=ProfileResponse,
)
async def update_profile(
    profile_data: ProfileUpdate,
    current_user: CurrentUserRecord,
    db: Annotated[AsyncSession, Depends(get_db)],
):
    """
    Update user profile.

    Allows updating the display name and avatar URL.
    """
    if profile_data.name is not None:
        current_user.name = profile_data.name.strip()

    if profile_data.avatar_url is not None:
        current_user.avatar_url = profile_data.avatar_url

    await db.flush()

    # Invalidate cache
    await CacheInvalidator.on_user_change(str(current_user.user_id))

    return ProfileResponse(
        success=True,
        data=current_user.to_api_dict(),
        message="Profile updated successfully",
    )


@router.put(
    "/password",
    response_model=MessageResponse,
    responses={400: {"model": ErrorResponse, "description": "Current password is wrong"}},
)
async def change_password(
    body: PasswordChange,
    current_user: CurrentUserRecord,
    db: Annotated[AsyncSession, Depends(get_db)],
):
    """
    Change the account password.

    Every refresh token of the user is revoked, so other sessions must
    log in again.
    """
    if not verify_password(body.current_password, current_user.password_hash):
        raise BadRequestError(
            code=ErrorCodes.AUTH_WRONG_PASSWORD,
            message="Current password is incorrect",
        )

    await AuthService(db).change_password(current_user, body.new_password)
    await CacheInvalidator.on_user_change(str(current_user.user_id))

    return MessageResponse(
        success=True,
        message="Password updated successfully",
    )


@router.delete(
    "",
    response_model=MessageResponse,
    responses={400: {"model": ErrorResponse, "description": "Password is wrong"}},
)
async def delete_account(
    body: AccountDelete,
    current_user: CurrentUserRecord,
    db: Annotated[AsyncSession, Depends(get_db)],
):
    """
    Permanently delete the account with all tasks, goals and sessions.
    """
    if not verify_password(body.password, current_user.password_hash):
        raise BadRequestError(
            code=ErrorCodes.AUTH_WRONG_PASSWORD,
            message="Password is incorrect",
        )

    user_id_str = str(current_user.user_id)
    await AuthService(db).delete_user(current_user)
    await CacheInvalidator.on_user_change(user_id_str)

    return MessageResponse(
        success=True,
        message="Account deleted",
    )
