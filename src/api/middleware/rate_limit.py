# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Rate limiting using slowapi.

Limits are counted per client: the user ID when authenticated, otherwise
the remote address. Authentication endpoints carry a tighter limit.

Example:
    @router.post("/login")
    @limiter.limit(auth_rate_limit)
    async def login(request: Request, ...):
        ...
"""

import logging

from fastapi import Request
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from src.core.config import get_settings

logger = logging.getLogger(__name__)


def get_client_identifier(request: Request) -> str:
    """Get a unique identifier for the client.

    Uses user ID if authenticated, otherwise uses IP address.

    Args:
        request: HTTP request.

    Returns:
        Client identifier string.
    """
    user = getattr(request.state, "user", None)
    if user:
        return f"user:{user.id}"
    return f"ip:{get_remote_address(request)}"


def auth_rate_limit() -> str:
    """Limit string for authentication endpoints, read per request."""
    return f"{get_settings().rate_limit.auth_requests_per_minute}/minute"


_settings = get_settings()
limiter = Limiter(
    key_func=get_client_identifier,
    default_limits=[f"{_settings.rate_limit.requests_per_minute}/minute"],
    storage_uri=_settings.rate_limit.storage_uri,
    enabled=_settings.rate_limit.enabled,
)


async def rate_limit_exceeded_handler(
    request: Request,
    exc: RateLimitExceeded,
) -> JSONResponse:
    """Handle rate limit exceeded errors.

    Args:
        request: HTTP request.
        exc: Rate limit exceeded exception.

    Returns:
        429 JSON response in the standard error shape.
    """
    logger.warning(
        "Rate limit exceeded: %s for %s",
        exc.detail,
        get_client_identifier(request),
    )
    return JSONResponse(
        status_code=429,
        content={"message": "Too many requests, please try again later"},
        headers={"Retry-After": "60"},
    )
