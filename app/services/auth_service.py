"""
Authentication Service
======================

Business logic for user registration, login and the refresh-token
session lifecycle.
"""

import logging
from datetime import datetime, timezone
from typing import Optional
import uuid

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import AuthenticationError, ConflictError, ErrorCodes
from app.core.security import (
    access_token_lifetime,
    create_access_token,
    create_refresh_token,
    decode_refresh_token,
    hash_password,
    verify_password,
)
from app.models.monthly_goal import MonthlyGoal
from app.models.refresh_token import RefreshToken
from app.models.task import Task
from app.models.user import User
from app.schemas.auth import UserRegister

logger = logging.getLogger(__name__)


class AuthService:
    """Service for authentication operations."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_user_by_email(self, email: str) -> Optional[User]:
        """Get user by email address."""
        stmt = select(User).where(User.email == email.strip().lower())
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def get_user_by_id(self, user_id: uuid.UUID) -> Optional[User]:
        """Get user by ID."""
        stmt = select(User).where(User.user_id == user_id)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def register(self, user_data: UserRegister) -> User:
        """
        Create a new user.

        Args:
            user_data: Registration data

        Returns:
            Created user object

        Raises:
            ConflictError: If the email is already registered
        """
        existing = await self.get_user_by_email(user_data.email)
        if existing is not None:
            raise ConflictError(
                code=ErrorCodes.AUTH_EMAIL_EXISTS,
                message="Email already registered",
            )

        user = User(
            email=user_data.email,
            password_hash=hash_password(user_data.password),
            name=user_data.name,
        )
        self.db.add(user)
        await self.db.flush()  # Get user_id

        logger.info("Registered user %s", user.user_id)
        return user

    async def authenticate(
        self,
        email: str,
        password: str,
    ) -> Optional[User]:
        """
        Authenticate user by email and password.

        Returns:
            User if authentication successful, None otherwise
        """
        user = await self.get_user_by_email(email)

        if user is None:
            return None

        if not verify_password(password, user.password_hash):
            return None

        return user

    async def issue_session(self, user: User) -> dict:
        """
        Mint an access token and a persisted refresh token for ``user``.

        Returns:
            Token payload in the shape of ``TokenResponse``
        """
        refresh_token, expires_at = create_refresh_token(user.user_id)
        self.db.add(
            RefreshToken(
                token=refresh_token,
                user_id=user.user_id,
                expires_at=expires_at,
            )
        )
        await self.db.flush()

        return self._token_payload(create_access_token(user.user_id), refresh_token)

    async def rotate_refresh_token(self, token: str) -> dict:
        """
        Exchange a refresh token for a new access/refresh token pair.

        The presented token is revoked and linked to its replacement, so a
        rotated token can never be used again.

        Raises:
            AuthenticationError: If the token is unknown, revoked, expired
                or fails signature verification
        """
        stored = await self._get_stored_token(token)
        if stored is None:
            raise AuthenticationError(
                code=ErrorCodes.AUTH_INVALID_TOKEN,
                message="Invalid refresh token",
            )

        now = datetime.now(timezone.utc)
        if not stored.is_active(now):
            raise AuthenticationError(
                code=ErrorCodes.AUTH_REFRESH_REVOKED,
                message="Refresh token revoked or expired",
            )

        payload = decode_refresh_token(token)
        if payload is None or payload.get("sub") != str(stored.user_id):
            raise AuthenticationError(
                code=ErrorCodes.AUTH_INVALID_TOKEN,
                message="Invalid refresh token",
            )

        new_token, expires_at = create_refresh_token(stored.user_id)
        stored.revoke(now=now, replaced_by=new_token)
        self.db.add(
            RefreshToken(
                token=new_token,
                user_id=stored.user_id,
                expires_at=expires_at,
            )
        )
        await self.db.flush()

        logger.debug("Rotated refresh token for user %s", stored.user_id)
        return self._token_payload(create_access_token(stored.user_id), new_token)

    async def revoke_refresh_token(self, token: Optional[str]) -> bool:
        """
        Revoke a refresh token (logout).

        Unknown or missing tokens are ignored.

        Returns:
            True if an active token was revoked
        """
        if not token:
            return False

        stored = await self._get_stored_token(token)
        if stored is None or stored.revoked_at is not None:
            return False

        stored.revoke()
        await self.db.flush()
        return True

    async def revoke_all_for_user(self, user_id: uuid.UUID) -> int:
        """
        Revoke every active refresh token of a user.

        Returns:
            Number of tokens revoked
        """
        stmt = (
            update(RefreshToken)
            .where(
                RefreshToken.user_id == user_id,
                RefreshToken.revoked_at.is_(None),
            )
            .values(revoked_at=datetime.now(timezone.utc))
        )
        result = await self.db.execute(stmt)
        return result.rowcount or 0

    async def change_password(self, user: User, new_password: str) -> None:
        """Set a new password and end every existing session of the user."""
        user.password_hash = hash_password(new_password)
        await self.revoke_all_for_user(user.user_id)
        await self.db.flush()
        logger.info("Password changed for user %s", user.user_id)

    async def delete_user(self, user: User) -> None:
        """
        Delete a user and everything they own.

        Children are removed explicitly so the result does not depend on
        the database enforcing ON DELETE CASCADE.
        """
        user_id = user.user_id
        await self.db.execute(delete(RefreshToken).where(RefreshToken.user_id == user_id))
        await self.db.execute(delete(Task).where(Task.user_id == user_id))
        await self.db.execute(delete(MonthlyGoal).where(MonthlyGoal.user_id == user_id))
        await self.db.delete(user)
        await self.db.flush()
        logger.info("Deleted user %s", user_id)

    async def _get_stored_token(self, token: str) -> Optional[RefreshToken]:
        stmt = select(RefreshToken).where(RefreshToken.token == token)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    def _token_payload(access_token: str, refresh_token: str) -> dict:
        return {
            "access_token": access_token,
            "refresh_token": refresh_token,
            "token_type": "bearer",
            "expires_in": int(access_token_lifetime().total_seconds()),
        }
