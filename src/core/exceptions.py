# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Base exception types shared by the domain services.

Each domain defines its own hierarchy rooted at a ``XServiceError``
subclass of ServiceError. The API layer renders any ServiceError as
``{"message": str(exc)}`` with the class's ``status_code``, so services
only choose the right exception and never build HTTP responses.

Example:
    class SubjectServiceError(ServiceError):
        pass

    class SubjectNotFoundError(SubjectServiceError, NotFoundError):
        pass
"""

from fastapi import status


class ServiceError(Exception):
    """Base exception for business-rule failures.

    Attributes:
        message: Human-readable error description returned to the client.
        status_code: HTTP status code used when rendering the error.
    """

    status_code: int = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationFailedError(ServiceError):
    """A business-rule validation failed (dates, marks, capacity)."""

    status_code = status.HTTP_400_BAD_REQUEST


class AuthenticationFailedError(ServiceError):
    """Credentials or tokens could not be verified."""

    status_code = status.HTTP_401_UNAUTHORIZED


class PermissionDeniedError(ServiceError):
    """The caller is authenticated but not allowed to perform the action."""

    status_code = status.HTTP_403_FORBIDDEN


class NotFoundError(ServiceError):
    """The requested resource does not exist in the caller's scope."""

    status_code = status.HTTP_404_NOT_FOUND


class ConflictError(ServiceError):
    """The request conflicts with existing state (duplicate, double booking)."""

    status_code = status.HTTP_409_CONFLICT


class DependentRecordsError(ServiceError):
    """A delete was refused because other records still reference the row."""

    status_code = status.HTTP_400_BAD_REQUEST
