# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Request logging middleware.

Binds a request ID, method and path into the structlog context for every
log line emitted while the request runs, logs completion with status and
duration, and echoes the ID back in the X-Request-ID header.
"""

import logging
import time
import uuid
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from src.utils.logging import bind_context, clear_context

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"

SKIP_LOGGING_PATHS = frozenset({"/health"})


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log each HTTP request with a correlation ID."""

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Response],
    ) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        path = request.url.path
        request.state.request_id = request_id

        clear_context()
        bind_context(request_id=request_id, method=request.method, path=path)

        start_time = time.perf_counter()
        try:
            response = await call_next(request)
            duration_ms = (time.perf_counter() - start_time) * 1000
            response.headers[REQUEST_ID_HEADER] = request_id

            if path not in SKIP_LOGGING_PATHS:
                logger.info(
                    "Request completed: %s %s -> %d (%.2fms)",
                    request.method,
                    path,
                    response.status_code,
                    duration_ms,
                )
            return response
        finally:
            clear_context()
