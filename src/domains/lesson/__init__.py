# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Lesson domain package."""

from src.domains.lesson.service import (
    InvalidLessonError,
    LessonConflictError,
    LessonNotFoundError,
    LessonReferenceNotFoundError,
    LessonService,
    LessonServiceError,
)

__all__ = [
    "LessonService",
    "LessonServiceError",
    "LessonNotFoundError",
    "LessonReferenceNotFoundError",
    "InvalidLessonError",
    "LessonConflictError",
]
