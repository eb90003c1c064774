# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Class domain package."""

from src.domains.school_class.service import (
    ClassInUseError,
    ClassNameExistsError,
    ClassNotFoundError,
    ClassReferenceNotFoundError,
    ClassService,
    ClassServiceError,
    InvalidClassError,
)

__all__ = [
    "ClassService",
    "ClassServiceError",
    "ClassNotFoundError",
    "ClassNameExistsError",
    "ClassReferenceNotFoundError",
    "InvalidClassError",
    "ClassInUseError",
]
