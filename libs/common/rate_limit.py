"""slowapi rate limits for the storefront API.

Callers are keyed by user id once authenticated, by client address before.
Limits live in settings so tests and deployments can tune them; state is
kept wherever RATE_LIMIT_STORAGE_URI points (memory by default, Redis when
several instances share a limit).
"""

from functools import lru_cache
from typing import Callable

from fastapi import Request, Response
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
from starlette.responses import JSONResponse

from libs.common.config import get_settings
from libs.common.logging import get_logger

logger = get_logger(__name__)


def client_address(request: Request) -> str:
    """Original client address, honouring the first X-Forwarded-For hop."""
    forwarded = request.headers.get("X-Forwarded-For", "")
    first_hop = forwarded.split(",")[0].strip()
    return first_hop or get_remote_address(request)


def rate_limit_key(request: Request) -> str:
    user = getattr(request.state, "user", None)
    if user is not None:
        return f"user:{user.user_id}"
    return f"ip:{client_address(request)}"


@lru_cache
def get_limiter() -> Limiter:
    settings = get_settings()
    return Limiter(
        key_func=rate_limit_key,
        default_limits=[settings.DEFAULT_RATE_LIMIT],
        storage_uri=settings.RATE_LIMIT_STORAGE_URI,
        strategy="fixed-window",
        enabled=settings.RATE_LIMIT_ENABLED,
    )


limiter = get_limiter()


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> Response:
    """429 in the same ``{"detail", "code"}`` shape as every other error."""
    logger.warning(
        "Rate limit hit by %s on %s %s (%s)",
        rate_limit_key(request),
        request.method,
        request.url.path,
        exc.detail,
    )
    return JSONResponse(
        status_code=429,
        content={
            "detail": f"Too many requests: limit is {exc.detail}",
            "code": "RATE_LIMIT_EXCEEDED",
        },
        headers={"Retry-After": "60"},
    )


def auth_limit(func: Callable) -> Callable:
    """Strict per-caller limit for endpoints that check a password."""
    return limiter.limit(get_settings().AUTH_RATE_LIMIT)(func)


def admin_limit(func: Callable) -> Callable:
    """Relaxed limit for back-office writes."""
    return limiter.limit(get_settings().ADMIN_RATE_LIMIT)(func)
