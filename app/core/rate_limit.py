"""
Rate Limiting
=============

Redis-based fixed-window rate limiting for API endpoints.
"""

import logging
from typing import Optional

from fastapi import Request, status

from app.core.errors import AppException, ErrorCodes
from app.services.cache import CacheKeys, get_redis

logger = logging.getLogger(__name__)


class RateLimiter:
    """
    Fixed-window rate limiter using Redis.

    Rate limits are applied per client IP.

    Default limits:
        - Authentication endpoints: 10 requests/minute
        - Sync endpoint: 30 requests/minute
    """

    # Limit configurations
    LIMITS = {
        "auth": {"max_requests": 10, "window_seconds": 60},
        "sync": {"max_requests": 30, "window_seconds": 60},
    }

    @staticmethod
    async def check_rate_limit(
        identifier: str,
        action: str,
        max_requests: Optional[int] = None,
        window_seconds: Optional[int] = None,
    ) -> dict:
        """
        Check if request is within rate limit.

        Args:
            identifier: Client IP address
            action: Action type (auth, sync)
            max_requests: Override max requests (optional)
            window_seconds: Override window size (optional)

        Returns:
            Dict with 'allowed', 'remaining', 'reset_in' keys
        """
        limits = RateLimiter.LIMITS.get(action, RateLimiter.LIMITS["auth"])
        max_req = max_requests or limits["max_requests"]
        window = window_seconds or limits["window_seconds"]

        key = CacheKeys.rate_limit(action, identifier)

        try:
            client = await get_redis()

            count = await client.incr(key)
            if count == 1:
                await client.expire(key, window)

            ttl = await client.ttl(key)
            reset_in = ttl if ttl > 0 else window

            return {
                "allowed": count <= max_req,
                "remaining": max(max_req - count, 0),
                "reset_in": reset_in,
            }

        except Exception as e:
            logger.debug("Rate limit check skipped: %s", e)
            # Allow request on error (fail open)
            return {
                "allowed": True,
                "remaining": max_req,
                "reset_in": window,
            }


def create_rate_limit_dependency(action: str):
    """
    Factory for rate limit dependencies.

    Usage:
        @router.post("/login", dependencies=[Depends(create_rate_limit_dependency("auth"))])
        async def login():
            ...
    """
    async def dependency(request: Request) -> None:
        identifier = request.client.host if request.client else "unknown"
        result = await RateLimiter.check_rate_limit(identifier, action)

        if not result["allowed"]:
            raise AppException(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                code=ErrorCodes.RATE_LIMIT_EXCEEDED,
                message=f"Rate limit exceeded. Try again in {result['reset_in']} seconds.",
                headers={
                    "X-RateLimit-Remaining": str(result["remaining"]),
                    "Retry-After": str(result["reset_in"]),
                },
            )

    return dependency
