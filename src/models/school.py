# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""School and registration approval models."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field

from src.models.common import ApprovalStatus, MessageResponse, ORMModel, PaginatedResponse, Role


# =============================================================================
# Schools
# =============================================================================


class SchoolCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    address: str | None = None
    city: str | None = Field(default=None, max_length=100)
    email: EmailStr | None = None
    phone: str | None = Field(default=None, max_length=50)
    tenant_id: UUID | None = Field(
        default=None,
        description="Organisation grouping; defaults to the school's own id",
    )
    is_verified: bool = False


class SchoolResponse(ORMModel):
    id: UUID
    name: str
    address: str | None = None
    city: str | None = None
    email: str | None = None
    phone: str | None = None
    tenant_id: UUID | None = None
    is_verified: bool
    verified_at: datetime | None = None
    created_at: datetime


class SchoolListResponse(PaginatedResponse):
    schools: list[SchoolResponse]


class SchoolDetailResponse(MessageResponse):
    school: SchoolResponse


# =============================================================================
# Approvals
# =============================================================================


class ApprovalReviewRequest(BaseModel):
    comments: str | None = Field(default=None, max_length=2000)


class ApprovalUser(ORMModel):
    id: UUID
    email: str
    name: str
    surname: str
    role: Role


class ApprovalResponse(ORMModel):
    id: UUID
    user_id: UUID
    role: Role
    school_id: UUID
    status: ApprovalStatus
    reviewed_by_id: UUID | None = None
    reviewed_at: datetime | None = None
    comments: str | None = None
    created_at: datetime
    user: ApprovalUser | None = None


class ApprovalListResponse(PaginatedResponse):
    approvals: list[ApprovalResponse]


class ApprovalDetailResponse(MessageResponse):
    approval: ApprovalResponse
