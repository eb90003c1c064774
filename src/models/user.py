# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""User management models."""

from uuid import UUID

from pydantic import BaseModel, EmailStr, Field, field_validator, model_validator

from src.models.auth import UserSummary
from src.models.common import MessageResponse, PaginatedResponse, Role


class UserUpdateRequest(BaseModel):
    """Partial update of a user account.

    role and is_active are only honoured for super admins.
    """

    email: EmailStr | None = None
    username: str | None = Field(
        default=None,
        min_length=3,
        max_length=50,
        pattern=r"^[A-Za-z0-9_.-]+$",
    )
    name: str | None = Field(default=None, min_length=1, max_length=100)
    surname: str | None = Field(default=None, min_length=1, max_length=100)
    role: Role | None = None
    is_active: bool | None = None

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: str | None) -> str | None:
        return value.lower() if value else value

    @model_validator(mode="after")
    def has_changes(self):
        if not self.model_fields_set:
            raise ValueError("At least one field must be provided")
        return self


class UserResponse(UserSummary):
    school_id: UUID | None = None


class UserListResponse(PaginatedResponse):
    users: list[UserResponse]


class UserDetailResponse(MessageResponse):
    user: UserResponse
