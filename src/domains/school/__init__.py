# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""School domain package.

This package provides school management functionality including:
- School creation and verification
- Scoped school listing
"""

from src.domains.school.service import (
    SchoolNameExistsError,
    SchoolNotFoundError,
    SchoolPermissionError,
    SchoolService,
    SchoolServiceError,
)

__all__ = [
    "SchoolService",
    "SchoolServiceError",
    "SchoolNotFoundError",
    "SchoolNameExistsError",
    "SchoolPermissionError",
]
