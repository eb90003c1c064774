# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Utility functions and helpers for EduTrack.

This package contains cross-cutting utilities:
- logging: Structured logging with structlog
- datetime: Timezone-aware datetime operations
- pagination: Page/limit normalisation and result metadata
"""

from src.utils.datetime import (
    date_ranges_overlap,
    ensure_utc,
    utc_now,
)
from src.utils.logging import bind_context, clear_context, get_logger, setup_logging
from src.utils.pagination import Pagination, PageParams

__all__ = [
    # Logging
    "setup_logging",
    "get_logger",
    "bind_context",
    "clear_context",
    # Datetime
    "utc_now",
    "ensure_utc",
    "date_ranges_overlap",
    # Pagination
    "PageParams",
    "Pagination",
]
