# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Registration approval domain package."""

from src.domains.approval.service import (
    ApprovalAlreadyReviewedError,
    ApprovalNotFoundError,
    ApprovalPermissionError,
    ApprovalService,
    ApprovalServiceError,
)

__all__ = [
    "ApprovalService",
    "ApprovalServiceError",
    "ApprovalNotFoundError",
    "ApprovalPermissionError",
    "ApprovalAlreadyReviewedError",
]
