# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Registration approval API endpoints.

Principals and teachers register in a pending state. Super admins review
principals; super admins and school managers review teachers of their school.
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Body, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.dependencies import RequireRole, get_db, get_page_params
from src.api.middleware.auth import CurrentUser
from src.domains.approval import ApprovalService
from src.models.common import SCHOOL_MANAGER_ROLES, ApprovalStatus, Role
from src.models.school import (
    ApprovalDetailResponse,
    ApprovalListResponse,
    ApprovalResponse,
    ApprovalReviewRequest,
)
from src.utils.pagination import PageParams, Pagination

logger = logging.getLogger(__name__)

router = APIRouter()

require_reviewer = RequireRole(*SCHOOL_MANAGER_ROLES)


def get_approval_service(db: AsyncSession = Depends(get_db)) -> ApprovalService:
    return ApprovalService(db)


@router.get("", response_model=ApprovalListResponse, summary="List approvals")
async def list_approvals(
    approval_status: ApprovalStatus = Query(ApprovalStatus.PENDING, alias="status"),
    role: Role | None = Query(None),
    school_id: UUID | None = Query(None, description="Super admin school filter"),
    params: PageParams = Depends(get_page_params),
    current_user: CurrentUser = Depends(require_reviewer),
    service: ApprovalService = Depends(get_approval_service),
) -> ApprovalListResponse:
    approvals, total = await service.list_approvals(
        current_user.to_actor(),
        params,
        status=approval_status,
        role=role,
        school_id=str(school_id) if school_id else None,
    )
    return ApprovalListResponse(
        message="Approvals retrieved successfully",
        approvals=[ApprovalResponse.model_validate(a) for a in approvals],
        pagination=Pagination.build(params, total),
    )


@router.post(
    "/{approval_id}/approve",
    response_model=ApprovalDetailResponse,
    summary="Approve a registration",
)
async def approve(
    approval_id: UUID,
    body: ApprovalReviewRequest | None = Body(None),
    current_user: CurrentUser = Depends(require_reviewer),
    service: ApprovalService = Depends(get_approval_service),
) -> ApprovalDetailResponse:
    approval = await service.approve(
        current_user.to_actor(), str(approval_id), body.comments if body else None
    )
    return ApprovalDetailResponse(
        message="User approved successfully",
        approval=ApprovalResponse.model_validate(approval),
    )


@router.post(
    "/{approval_id}/reject",
    response_model=ApprovalDetailResponse,
    summary="Reject a registration",
)
async def reject(
    approval_id: UUID,
    body: ApprovalReviewRequest | None = Body(None),
    current_user: CurrentUser = Depends(require_reviewer),
    service: ApprovalService = Depends(get_approval_service),
) -> ApprovalDetailResponse:
    approval = await service.reject(
        current_user.to_actor(), str(approval_id), body.comments if body else None
    )
    return ApprovalDetailResponse(
        message="User rejected successfully",
        approval=ApprovalResponse.model_validate(approval),
    )
