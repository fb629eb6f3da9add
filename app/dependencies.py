"""
Common Dependencies
===================

Shared dependencies used across the application.
"""

import logging
from datetime import datetime, timezone
from typing import Annotated
import uuid

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import AuthenticationError, ErrorCodes
from app.core.security import decode_access_token, user_id_from_payload
from app.db.session import get_db
from app.models.user import User
from app.services.auth_service import AuthService
from app.services.cache import CacheKeys, CacheManager

logger = logging.getLogger(__name__)

# Database session dependency
DBSession = Annotated[AsyncSession, Depends(get_db)]

# Security scheme for JWT authentication
security = HTTPBearer(auto_error=False)


# =============================================================================
# User Auth Cache Helpers
# =============================================================================

def _serialize_user_for_cache(user: User) -> dict:
    """Serialize a User to a JSON-safe dict (never includes the password hash)."""
    return {
        "user_id": str(user.user_id),
        "email": user.email,
        "name": user.name,
        "avatar_url": user.avatar_url,
        "created_at": user.created_at.isoformat() if getattr(user, "created_at", None) else None,
        "updated_at": user.updated_at.isoformat() if getattr(user, "updated_at", None) else None,
    }


def _parse_dt(value: str | None) -> datetime | None:
    """Parse an ISO datetime string, returning None on missing input."""
    if not value:
        return None
    return datetime.fromisoformat(value)


def _build_user_from_cache(data: dict) -> User:
    """
    Reconstruct a *transient* (session-free) User from a cached dict.

    The returned object is NOT attached to any SQLAlchemy session. Handlers
    that modify the user must load it from the database first.
    """
    return User(
        user_id=uuid.UUID(data["user_id"]),
        email=data["email"],
        password_hash="",
        name=data.get("name") or "",
        avatar_url=data.get("avatar_url") or "",
        created_at=_parse_dt(data.get("created_at")) or datetime.now(timezone.utc),
        updated_at=_parse_dt(data.get("updated_at")) or datetime.now(timezone.utc),
    )


async def _get_cached_user(user_id: uuid.UUID) -> User | None:
    """Return the cached User object, or ``None`` on miss / Redis failure."""
    data = await CacheManager.get(CacheKeys.user_auth(str(user_id)))
    if not data:
        return None
    try:
        return _build_user_from_cache(data)
    except (KeyError, ValueError) as e:
        logger.debug("Discarding malformed user cache entry for %s: %s", user_id, e)
        return None


async def _cache_user(user: User) -> None:
    """Best-effort cache of a DB-loaded User into Redis."""
    await CacheManager.set(
        CacheKeys.user_auth(str(user.user_id)),
        _serialize_user_for_cache(user),
        ttl=CacheManager.TTL_SHORT,
    )


# =============================================================================
# User resolution
# =============================================================================

async def _resolve_user_from_token(
    credentials: HTTPAuthorizationCredentials,
    db: AsyncSession,
) -> User | None:
    """
    Decode the access token, then return the User from Redis cache or DB.

    Access tokens are stateless: a valid signature, an unexpired token and
    an existing user are all that is required.
    """
    payload = decode_access_token(credentials.credentials)
    if payload is None:
        return None

    user_id = user_id_from_payload(payload)
    if user_id is None:
        return None

    # Fast path: Redis cache hit
    cached = await _get_cached_user(user_id)
    if cached is not None:
        return cached

    # Cache miss, fall back to DB
    auth_service = AuthService(db)
    user = await auth_service.get_user_by_id(user_id)
    if user is not None:
        await _cache_user(user)
    return user


async def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    db: DBSession,
) -> User:
    """
    Get current authenticated user.

    Raises 401 if not authenticated or token is invalid.
    """
    if credentials is None:
        raise AuthenticationError(
            code=ErrorCodes.AUTH_TOKEN_EXPIRED,
            message="Not authenticated",
        )

    user = await _resolve_user_from_token(credentials, db)

    if user is None:
        raise AuthenticationError(
            code=ErrorCodes.AUTH_TOKEN_EXPIRED,
            message="Invalid or expired token",
        )

    return user


# Type alias for authenticated user dependency
CurrentUser = Annotated[User, Depends(get_current_user)]


async def get_current_user_record(
    current_user: CurrentUser,
    db: DBSession,
) -> User:
    """
    Session-bound User for handlers that modify the account.

    ``CurrentUser`` may come from the Redis cache and is then detached.
    """
    user = await AuthService(db).get_user_by_id(current_user.user_id)
    if user is None:
        raise AuthenticationError(
            code=ErrorCodes.AUTH_TOKEN_EXPIRED,
            message="Invalid or expired token",
        )
    return user


CurrentUserRecord = Annotated[User, Depends(get_current_user_record)]
