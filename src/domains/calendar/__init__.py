# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Academic calendar domain package."""

from src.domains.calendar.service import (
    CalendarNotFoundError,
    CalendarService,
    CalendarServiceError,
    InvalidCalendarDatesError,
    TermInUseError,
    TermOverlapError,
)

__all__ = [
    "CalendarService",
    "CalendarServiceError",
    "CalendarNotFoundError",
    "InvalidCalendarDatesError",
    "TermOverlapError",
    "TermInUseError",
]
