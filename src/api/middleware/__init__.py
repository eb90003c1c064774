# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""API middleware components.

This package provides middleware for request processing:
- AuthMiddleware: JWT authentication.
- RequestLoggingMiddleware: Request ID binding and access logging.
- limiter: slowapi rate limiter keyed by user or client address.
"""

from src.api.middleware.auth import AuthMiddleware, CurrentUser, get_current_user
from src.api.middleware.rate_limit import limiter, rate_limit_exceeded_handler
from src.api.middleware.request_logging import RequestLoggingMiddleware

__all__ = [
    "AuthMiddleware",
    "CurrentUser",
    "get_current_user",
    "RequestLoggingMiddleware",
    "limiter",
    "rate_limit_exceeded_handler",
]
