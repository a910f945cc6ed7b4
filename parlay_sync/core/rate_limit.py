"""
Rate limiting shared by the app and the sync routes.

Sync runs spend Odds API quota, so trigger endpoints carry their own limit
(SYNC_RATE_LIMIT) on top of the general default.
"""
from fastapi import Request
from slowapi import Limiter
from slowapi.util import get_remote_address

from parlay_sync.core.config import settings

DEFAULT_RATE_LIMIT = "60/minute"


def get_rate_limit_key(request: Request) -> str:
    """
    Get the rate limit key for a request.

    Uses IP address, with fallback to X-Forwarded-For for proxied requests.
    """
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return get_remote_address(request)


limiter = Limiter(
    key_func=get_rate_limit_key,
    default_limits=[DEFAULT_RATE_LIMIT],
    storage_uri=settings.REDIS_URL if settings.RATE_LIMIT_STORAGE == "redis" else "memory://",
    enabled=settings.RATE_LIMIT_ENABLED,
)
