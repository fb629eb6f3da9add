"""
Security Module
===============

Authentication and security utilities including:
- Password hashing with bcrypt
- JWT access/refresh token generation and validation
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Optional
import uuid

from jose import JWTError, jwt
from passlib.context import CryptContext

from app.config import settings

# Password hashing context using bcrypt
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

TOKEN_TYPE_ACCESS = "access"
TOKEN_TYPE_REFRESH = "refresh"


def hash_password(password: str) -> str:
    """
    Hash a password using bcrypt.

    Args:
        password: Plain text password

    Returns:
        Hashed password string
    """
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """
    Verify a password against its hash.

    Args:
        plain_password: Plain text password to verify
        hashed_password: Stored hash to compare against

    Returns:
        True if password matches, False otherwise
    """
    return pwd_context.verify(plain_password, hashed_password)


def parse_expiry(value: str) -> timedelta:
    """
    Parse an expiry string such as ``15m``, ``12h`` or ``30d``.

    Unknown units fall back to days.
    """
    amount = int(value[:-1])
    unit = value[-1]
    if unit == "m":
        return timedelta(minutes=amount)
    if unit == "h":
        return timedelta(hours=amount)
    return timedelta(days=amount)


def access_token_lifetime() -> timedelta:
    return parse_expiry(settings.JWT_EXPIRES_IN)


def refresh_token_lifetime() -> timedelta:
    return parse_expiry(settings.REFRESH_TOKEN_EXPIRES_IN)


def create_access_token(
    user_id: uuid.UUID,
    expires_delta: Optional[timedelta] = None,
) -> str:
    """
    Create a short-lived, stateless JWT access token.

    Args:
        user_id: Subject of the token
        expires_delta: Custom expiration time (optional)

    Returns:
        Encoded JWT token string
    """
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or access_token_lifetime())

    to_encode = {
        "sub": str(user_id),
        "type": TOKEN_TYPE_ACCESS,
        "iat": now,
        "exp": expire,
    }

    return jwt.encode(
        to_encode,
        settings.JWT_SECRET,
        algorithm=settings.JWT_ALGORITHM,
    )


def create_refresh_token(
    user_id: uuid.UUID,
    expires_delta: Optional[timedelta] = None,
) -> tuple[str, datetime]:
    """
    Create a JWT refresh token.

    The random ``jti`` keeps two tokens minted for the same user within
    the same second distinct.

    Returns:
        Tuple of (encoded token, expiry datetime)
    """
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or refresh_token_lifetime())

    to_encode = {
        "sub": str(user_id),
        "type": TOKEN_TYPE_REFRESH,
        "jti": uuid.uuid4().hex,
        "iat": now,
        "exp": expire,
    }

    encoded_jwt = jwt.encode(
        to_encode,
        settings.REFRESH_TOKEN_SECRET,
        algorithm=settings.JWT_ALGORITHM,
    )

    return encoded_jwt, expire


def _decode(token: str, secret: str, expected_type: str) -> Optional[dict[str, Any]]:
    try:
        payload = jwt.decode(
            token,
            secret,
            algorithms=[settings.JWT_ALGORITHM],
        )
    except JWTError:
        return None

    if payload.get("type") != expected_type or not payload.get("sub"):
        return None
    return payload


def decode_access_token(token: str) -> Optional[dict[str, Any]]:
    """
    Decode and validate an access token.

    Returns:
        Decoded payload if valid, None otherwise
    """
    return _decode(token, settings.JWT_SECRET, TOKEN_TYPE_ACCESS)


def decode_refresh_token(token: str) -> Optional[dict[str, Any]]:
    """
    Decode and validate a refresh token's signature, expiry and type.

    Returns:
        Decoded payload if valid, None otherwise
    """
    return _decode(token, settings.REFRESH_TOKEN_SECRET, TOKEN_TYPE_REFRESH)


def user_id_from_payload(payload: dict[str, Any]) -> Optional[uuid.UUID]:
    """Extract the user UUID from a decoded token payload."""
    try:
        return uuid.UUID(payload["sub"])
    except (KeyError, ValueError, TypeError):
        return None
