# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Grade level domain package."""

from src.domains.grade.service import (
    GradeInUseError,
    GradeLevelExistsError,
    GradeNotFoundError,
    GradeService,
    GradeServiceError,
)

__all__ = [
    "GradeService",
    "GradeServiceError",
    "GradeNotFoundError",
    "GradeLevelExistsError",
    "GradeInUseError",
]
