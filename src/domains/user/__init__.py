# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""User domain package.

This package provides user management functionality:
- UserService: listing, reading, updating and deactivating accounts
- Exceptions: User-related error types

Example:
    >>> from src.domains.user import UserService
    >>> service = UserService(db)
    >>> user = await service.get_user(actor, user_id)
"""

from src.domains.user.service import (
    UserAccessDeniedError,
    UserAlreadyExistsError,
    UserNotFoundError,
    UserOperationError,
    UserService,
    UserServiceError,
    school_members_clause,
)

__all__ = [
    "UserService",
    "UserServiceError",
    "UserNotFoundError",
    "UserAccessDeniedError",
    "UserAlreadyExistsError",
    "UserOperationError",
    "school_members_clause",
]
