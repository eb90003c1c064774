# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Grade level API endpoints."""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.dependencies import RequireRole, get_db, get_page_params
from src.api.middleware.auth import CurrentUser
from src.domains.grade import GradeService
from src.models.academic import (
    GradeCreateRequest,
    GradeDetailResponse,
    GradeListResponse,
    GradeResponse,
    GradeUpdateRequest,
)
from src.models.common import SCHOOL_MANAGER_ROLES, MessageResponse, Role
from src.utils.pagination import PageParams, Pagination

logger = logging.getLogger(__name__)

router = APIRouter()

require_grade_reader = RequireRole(*SCHOOL_MANAGER_ROLES, Role.TEACHER)
require_grade_manager = RequireRole(*SCHOOL_MANAGER_ROLES)


def get_grade_service(db: AsyncSession = Depends(get_db)) -> GradeService:
    return GradeService(db)


@router.get("", response_model=GradeListResponse, summary="List grade levels")
async def list_grades(
    school_id: UUID | None = Query(None, description="Super admin school filter"),
    params: PageParams = Depends(get_page_params),
    current_user: CurrentUser = Depends(require_grade_reader),
    service: GradeService = Depends(get_grade_service),
) -> GradeListResponse:
    grades, total = await service.list_grades(
        current_user.to_actor(),
        params,
        school_id=str(school_id) if school_id else None,
    )
    return GradeListResponse(
        message="Grades retrieved successfully",
        grades=[GradeResponse.model_validate(grade) for grade in grades],
        pagination=Pagination.build(params, total),
    )


@router.post(
    "",
    response_model=GradeDetailResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a grade level",
)
async def create_grade(
    body: GradeCreateRequest,
    current_user: CurrentUser = Depends(require_grade_manager),
    service: GradeService = Depends(get_grade_service),
) -> GradeDetailResponse:
    grade = await service.create_grade(current_user.to_actor(), body)
    return GradeDetailResponse(
        message="Grade created successfully",
        grade=GradeResponse.model_validate(grade),
    )


@router.get("/{grade_id}", response_model=GradeDetailResponse, summary="Get a grade level")
async def get_grade(
    grade_id: UUID,
    current_user: CurrentUser = Depends(require_grade_reader),
    service: GradeService = Depends(get_grade_service),
) -> GradeDetailResponse:
    grade = await service.get_grade(current_user.to_actor(), str(grade_id))
    return GradeDetailResponse(
        message="Grade retrieved successfully",
        grade=GradeResponse.model_validate(grade),
    )


@router.put("/{grade_id}", response_model=GradeDetailResponse, summary="Update a grade level")
async def update_grade(
    grade_id: UUID,
    body: GradeUpdateRequest,
    current_user: CurrentUser = Depends(require_grade_manager),
    service: GradeService = Depends(get_grade_service),
) -> GradeDetailResponse:
    grade = await service.update_grade(current_user.to_actor(), str(grade_id), body)
    return GradeDetailResponse(
        message="Grade updated successfully",
        grade=GradeResponse.model_validate(grade),
    )


@router.delete("/{grade_id}", response_model=MessageResponse, summary="Delete a grade level")
async def delete_grade(
    grade_id: UUID,
    current_user: CurrentUser = Depends(require_grade_manager),
    service: GradeService = Depends(get_grade_service),
) -> MessageResponse:
    await service.delete_grade(current_user.to_actor(), str(grade_id))
    return MessageResponse(message="Grade deleted successfully")
