"""Rate limiting for credential endpoints (slowapi)."""

import logging

from fastapi import Request
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

import config

logger = logging.getLogger(__name__)


def get_client_ip(request: Request) -> str:
    """Client address used as the rate-limit key.

    X-Forwarded-For is honoured only when the immediate peer is one of
    ``config.TRUSTED_PROXIES``; otherwise the socket address is used.
    """
    peer = get_remote_address(request)
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded and peer in config.TRUSTED_PROXIES:
        return forwarded.split(",")[0].strip()
    return peer


limiter = Limiter(
    key_func=get_client_ip,
    storage_uri="memory://",
    strategy="fixed-window",
    enabled=config.RATE_LIMIT_ENABLED,
)


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    logger.warning(
        "Rate limit exceeded for %s on %s %s",
        get_client_ip(request),
        request.method,
        request.url.path,
    )
    return JSONResponse(
        status_code=429,
        content={
            "error": "TooManyRequests",
            "message": f"Rate limit exceeded: {exc.detail}",
            "status_code": 429,
        },
        headers={"Retry-After": "60"},
    )
