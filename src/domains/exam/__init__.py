# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Exam domain package."""

from src.domains.exam.service import (
    ExamInUseError,
    ExamNotFoundError,
    ExamReferenceNotFoundError,
    ExamService,
    ExamServiceError,
    ExamSessionNotFoundError,
    InvalidExamError,
    SchedulingConflictError,
)

__all__ = [
    "ExamService",
    "ExamServiceError",
    "ExamNotFoundError",
    "ExamReferenceNotFoundError",
    "ExamSessionNotFoundError",
    "InvalidExamError",
    "ExamInUseError",
    "SchedulingConflictError",
]
