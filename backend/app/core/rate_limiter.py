"""
Rate Limiting for the portal API
================================
Implements rate limiting using slowapi. Counters live in memory by default;
point RATE_LIMIT_STORAGE_URI at redis://... when running several workers.

Public endpoints that accept anonymous traffic have their own limits:
- /auth/login: 5 req/min (brute force protection)
- /auth/register: 3 req/min
- /complaints/track: 20 req/min (registration number guessing)

Everything else falls back to RATE_LIMIT_PER_MINUTE per client.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded
from fastapi import Request
from fastapi.responses import JSONResponse

from app.core.config import settings
from app.core.logging_config import logger


def get_user_identifier(request: Request) -> str:
    """
    Get rate limit key.

    Authenticated callers are keyed by user id (set on request.state by the
    auth dependency), anonymous ones by IP address.
    """
    user_id = getattr(request.state, 'user_id', None)
    if user_id:
        return f"user:{user_id}"
    return f"ip:{get_remote_address(request)}"


LOGIN_LIMIT = "5/minute"
REGISTER_LIMIT = "3/minute"
TRACK_LIMIT = "20/minute"


limiter = Limiter(
    key_func=get_user_identifier,
    default_limits=[f"{settings.RATE_LIMIT_PER_MINUTE}/minute"],
    storage_uri=settings.RATE_LIMIT_STORAGE_URI,
    strategy="fixed-window",
    enabled=settings.RATE_LIMIT_ENABLED,
)


async def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded):
    """Render 429 in the standard error envelope with a Retry-After hint"""
    logger.warning(
        f"[RateLimit] Exceeded for {get_user_identifier(request)}: {exc.detail}",
        extra={"event_type": "rate_limit", "http_path": request.url.path}
    )

    return JSONResponse(
        status_code=429,
        content={
            "status": "error",
            "message": "Too many requests. Please slow down.",
        },
        headers={"Retry-After": "60"}
    )


def rate_limit(limit: str):
    """
    Decorator for applying custom rate limits to endpoints.
    The endpoint must accept a `request: Request` argument.

    Usage:
        @router.post("/login")
        @rate_limit(LOGIN_LIMIT)
        async def login(request: Request, ...):
            ...
    """
    return limiter.limit(limit, key_func=get_user_identifier)
