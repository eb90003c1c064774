# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Authentication request and response models."""

from datetime import datetime
from uuid import UUID

from pydantic import (
    BaseModel,
    EmailStr,
    Field,
    ValidationInfo,
    field_validator,
)

from src.models.common import (
    SCHOOL_BOUND_ROLES,
    ApprovalStatus,
    MessageResponse,
    ORMModel,
    Role,
)

MIN_PASSWORD_LENGTH = 8
MAX_PASSWORD_BYTES = 72


def _check_password_bytes(value: str) -> str:
    if len(value.encode("utf-8")) > MAX_PASSWORD_BYTES:
        raise ValueError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes")
    return value


class RegisterRequest(BaseModel):
    """Self-registration of a new account."""

    email: EmailStr = Field(..., description="Login email, unique")
    username: str = Field(..., min_length=3, max_length=50, pattern=r"^[A-Za-z0-9_.-]+$")
    password: str = Field(..., min_length=MIN_PASSWORD_LENGTH)
    name: str = Field(..., min_length=1, max_length=100)
    surname: str = Field(..., min_length=1, max_length=100)
    role: Role
    school_id: UUID | None = Field(
        default=None,
        validate_default=True,
        description="Required for SCHOOL_ADMIN, PRINCIPAL and TEACHER",
    )
    qualifications: str | None = None
    bio: str | None = None
    image_url: str | None = Field(default=None, max_length=500)
    phone: str | None = Field(default=None, max_length=50)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return value.lower()

    @field_validator("password")
    @classmethod
    def password_fits_bcrypt(cls, value: str) -> str:
        return _check_password_bytes(value)

    @field_validator("school_id")
    @classmethod
    def school_required_for_staff(cls, value: UUID | None, info: ValidationInfo) -> UUID | None:
        role = info.data.get("role")
        if value is None and role in SCHOOL_BOUND_ROLES:
            raise ValueError(f"school_id is required for role {role}")
        return value


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return value.lower()


class RefreshRequest(BaseModel):
    refresh_token: str = Field(..., min_length=1)


class LogoutRequest(BaseModel):
    refresh_token: str = Field(..., min_length=1, description="Refresh token to revoke")


class PasswordResetRequest(BaseModel):
    email: EmailStr

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return value.lower()


class PasswordResetConfirm(BaseModel):
    token: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=MIN_PASSWORD_LENGTH)

    @field_validator("new_password")
    @classmethod
    def password_fits_bcrypt(cls, value: str) -> str:
        return _check_password_bytes(value)


class UserSummary(ORMModel):
    """Public view of a user account."""

    id: UUID
    email: str
    username: str
    name: str
    surname: str
    role: Role
    is_active: bool
    last_login: datetime | None = None
    created_at: datetime


class AuthResponse(MessageResponse):
    """Returned by register and login."""

    user: UserSummary
    access_token: str
    refresh_token: str
    token_type: str = "Bearer"
    expires_in: int
    school_id: UUID | None = None
    approval_status: ApprovalStatus | None = None


class RefreshResponse(MessageResponse):
    access_token: str
    token_type: str = "Bearer"
    expires_in: int


class MeResponse(MessageResponse):
    user: UserSummary
    school_id: UUID | None = None
    tenant_id: UUID | None = None
    approval_status: ApprovalStatus | None = None
