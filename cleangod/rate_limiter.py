"""
Fixed-window rate limiting on top of the key-value storage
Used for endpoints that can be brute-forced, such as coupon code checks
"""

import logging
import time

from fastapi import HTTPException, Request, status

from .retry import COLLABORATOR_ERRORS
from .storage import KeyValueStore

logger = logging.getLogger(__name__)


def client_ip(request: Request) -> str:
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


def check_rate_limit(
    store: KeyValueStore, key: str, limit: int, window_seconds: int
) -> tuple[bool, int]:
    """
    Count one request in the current window.

    Returns:
        Tuple of (is_allowed, current_count)
    """
    window = int(time.time()) // window_seconds
    count = store.incr(f"{key}:{window}", window_seconds)
    return count <= limit, count


async def rate_limit_dependency(
    request: Request, limit: int, window_seconds: int, key_prefix: str = "rate_limit"
):
    """FastAPI dependency body for per-IP rate limiting"""
    key = f"{key_prefix}:{client_ip(request)}"
    try:
        is_allowed, current_count = check_rate_limit(
            request.app.state.storage, key, limit, window_seconds
        )
    except COLLABORATOR_ERRORS as e:
        logger.error(f"❌ Rate limiting error: {str(e)}")
        logger.warning("🔒 Denying request due to rate limiting error (fail-closed mode)")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Rate limiting service temporarily unavailable",
        ) from e

    if not is_allowed:
        retry_after = window_seconds - int(time.time()) % window_seconds
        logger.warning(f"🚫 Rate limit EXCEEDED for {key} - {current_count}/{limit} requests used")
        raise HTTPException(
            status_code=429,
            detail={
                "message": f"Rate limit exceeded. Maximum {limit} requests per {window_seconds} seconds.",
                "retry_after": retry_after,
                "limit": limit,
                "window_seconds": window_seconds,
            },
            headers={"Retry-After": str(retry_after)},
        )


def create_rate_limiter(limit: int, window_seconds: int, key_prefix: str = "rate_limit"):
    """
    Create a rate limiter dependency with specific parameters

    Example usage:
        coupon_rate_limit = create_rate_limiter(limit=20, window_seconds=600, key_prefix="coupon")

        @router.post("/coupon")
        async def apply_coupon(..., _: None = Depends(coupon_rate_limit)):
            ...
    """

    async def rate_limiter(request: Request):
        return await rate_limit_dependency(request, limit, window_seconds, key_prefix)

    return rate_limiter
