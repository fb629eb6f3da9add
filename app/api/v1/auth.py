"""
Authentication API Endpoints
============================

Handles user registration, login, logout and refresh-token rotation.

The refresh token is returned in the response body and also set as an
httpOnly cookie; ``/refresh`` and ``/logout`` accept either.
"""

import logging
from typing import Annotated, Optional

from fastapi import APIRouter, Cookie, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.core.errors import AuthenticationError, ErrorCodes
from app.core.rate_limit import create_rate_limit_dependency
from app.core.security import refresh_token_lifetime
from app.db.session import get_db
from app.schemas.auth import (
    AuthResponse,
    RefreshResponse,
    RefreshTokenRequest,
    UserLogin,
    UserRegister,
)
from app.schemas.common import ErrorResponse, MessageResponse
from app.services.auth_service import AuthService

logger = logging.getLogger(__name__)

router = APIRouter(dependencies=[Depends(create_rate_limit_dependency("auth"))])

RefreshCookie = Annotated[Optional[str], Cookie(alias=settings.REFRESH_COOKIE_NAME)]


def _set_refresh_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        key=settings.REFRESH_COOKIE_NAME,
        value=token,
        max_age=int(refresh_token_lifetime().total_seconds()),
        httponly=True,
        secure=settings.COOKIE_SECURE,
        samesite="lax",
    )


def _presented_token(
    body: Optional[RefreshTokenRequest],
    cookie_token: Optional[str],
) -> Optional[str]:
    """Refresh token from the cookie, falling back to the request body."""
    if cookie_token:
        return cookie_token
    if body is not None and body.refresh_token:
        return body.refresh_token
    return None


@router.post(
    "/register",
    response_model=AuthResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        409: {"model": ErrorResponse, "description": "Email already registered"},
    },
)
async def register(
    user_data: UserRegister,
    response: Response,
    db: Annotated[AsyncSession, Depends(get_db)],
):
    """
    Register a new user account and start a session.
    """
    auth_service = AuthService(db)

    user = await auth_service.register(user_data)
    tokens = await auth_service.issue_session(user)

    _set_refresh_cookie(response, tokens["refresh_token"])

    return AuthResponse(
        success=True,
        data={
            "user": user.to_api_dict(),
            "tokens": tokens,
        },
        message="Account created successfully",
    )


@router.post(
    "/login",
    response_model=AuthResponse,
    responses={
        401: {"model": ErrorResponse, "description": "Invalid credentials"},
    },
)
async def login(
    credentials: UserLogin,
    response: Response,
    db: Annotated[AsyncSession, Depends(get_db)],
):
    """
    Authenticate user and return tokens.
    """
    auth_service = AuthService(db)

    user = await auth_service.authenticate(
        email=credentials.email,
        password=credentials.password,
    )

    if user is None:
        raise AuthenticationError(
            code=ErrorCodes.AUTH_INVALID_CREDENTIALS,
            message="Invalid credentials",
        )

    tokens = await auth_service.issue_session(user)
    _set_refresh_cookie(response, tokens["refresh_token"])

    logger.info("User %s logged in", user.user_id)

    return AuthResponse(
        success=True,
        data={
            "user": user.to_api_dict(),
            "tokens": tokens,
        },
        message="Login successful",
    )


@router.post(
    "/refresh",
    response_model=RefreshResponse,
    responses={
        401: {"model": ErrorResponse, "description": "Missing, invalid or revoked refresh token"},
    },
)
async def refresh_token(
    response: Response,
    db: Annotated[AsyncSession, Depends(get_db)],
    refresh_cookie: RefreshCookie = None,
    body: Optional[RefreshTokenRequest] = None,
):
    """
    Rotate the refresh token.

    The presented token is revoked; a new access/refresh pair is returned
    and the cookie is replaced.
    """
    token = _presented_token(body, refresh_cookie)
    if token is None:
        raise AuthenticationError(
            code=ErrorCodes.AUTH_REFRESH_MISSING,
            message="No refresh token provided",
        )

    auth_service = AuthService(db)
    tokens = await auth_service.rotate_refresh_token(token)

    _set_refresh_cookie(response, tokens["refresh_token"])

    return RefreshResponse(
        success=True,
        data=tokens,
    )


@router.post(
    "/logout",
    response_model=MessageResponse,
)
async def logout(
    response: Response,
    db: Annotated[AsyncSession, Depends(get_db)],
    refresh_cookie: RefreshCookie = None,
    body: Optional[RefreshTokenRequest] = None,
):
    """
    Logout: revoke the presented refresh token and clear the cookie.

    Succeeds even when no token (or an unknown token) is presented.
    """
    auth_service = AuthService(db)
    await auth_service.revoke_refresh_token(_presented_token(body, refresh_cookie))

    response.delete_cookie(
        key=settings.REFRESH_COOKIE_NAME,
        httponly=True,
        secure=settings.COOKIE_SECURE,
        samesite="lax",
    )

    return MessageResponse(
        success=True,
        message="Logged out",
    )
