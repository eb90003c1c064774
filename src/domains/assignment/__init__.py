# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Assignment domain package.

This package provides assignment management functionality including:
- Assignment CRUD with tenant and ownership scoping
- Document uploads
- Parent submissions and per-student status
"""

from src.domains.assignment.service import (
    AssignmentHasResultsError,
    AssignmentNotFoundError,
    AssignmentService,
    AssignmentServiceError,
    ClassNotFoundError,
    InvalidAssignmentError,
    StudentAccessError,
    StudentAssignment,
    SubjectAccessError,
    SubmissionNotAllowedError,
    TeacherNotFoundError,
)

__all__ = [
    "AssignmentService",
    "AssignmentServiceError",
    "AssignmentNotFoundError",
    "AssignmentHasResultsError",
    "SubjectAccessError",
    "ClassNotFoundError",
    "TeacherNotFoundError",
    "StudentAccessError",
    "SubmissionNotAllowedError",
    "InvalidAssignmentError",
    "StudentAssignment",
]
