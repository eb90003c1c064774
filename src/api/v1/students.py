# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Student API endpoints.

Staff of the school read students; school managers enroll, update and
delete them and link them to their parents. Parents read their own
children only.
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.dependencies import RequireRole, get_db, get_page_params
from src.api.middleware.auth import CurrentUser
from src.domains.student import StudentService
from src.models.academic import (
    StudentCreateRequest,
    StudentDetailResponse,
    StudentListResponse,
    StudentResponse,
    StudentUpdateRequest,
)
from src.models.common import SCHOOL_MANAGER_ROLES, MessageResponse, Role
from src.utils.pagination import PageParams, Pagination

logger = logging.getLogger(__name__)

router = APIRouter()

require_student_reader = RequireRole(*SCHOOL_MANAGER_ROLES, Role.TEACHER, Role.PARENT)
require_student_manager = RequireRole(*SCHOOL_MANAGER_ROLES)


def get_student_service(db: AsyncSession = Depends(get_db)) -> StudentService:
    return StudentService(db)


@router.get("", response_model=StudentListResponse, summary="List students")
async def list_students(
    school_id: UUID | None = Query(None, description="Super admin school filter"),
    class_id: UUID | None = Query(None),
    parent_id: UUID | None = Query(None, description="Children of one parent"),
    params: PageParams = Depends(get_page_params),
    current_user: CurrentUser = Depends(require_student_reader),
    service: StudentService = Depends(get_student_service),
) -> StudentListResponse:
    students, total = await service.list_students(
        current_user.to_actor(),
        params,
        school_id=str(school_id) if school_id else None,
        class_id=str(class_id) if class_id else None,
        parent_id=str(parent_id) if parent_id else None,
    )
    return StudentListResponse(
        message="Students retrieved successfully",
        students=[StudentResponse.model_validate(student) for student in students],
        pagination=Pagination.build(params, total),
    )


@router.post(
    "",
    response_model=StudentDetailResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Enroll a student",
)
async def create_student(
    body: StudentCreateRequest,
    current_user: CurrentUser = Depends(require_student_manager),
    service: StudentService = Depends(get_student_service),
) -> StudentDetailResponse:
    student = await service.create_student(current_user.to_actor(), body)
    return StudentDetailResponse(
        message="Student created successfully",
        student=StudentResponse.model_validate(student),
    )


@router.get("/{student_id}", response_model=StudentDetailResponse, summary="Get a student")
async def get_student(
    student_id: UUID,
    current_user: CurrentUser = Depends(require_student_reader),
    service: StudentService = Depends(get_student_service),
) -> StudentDetailResponse:
    student = await service.get_student(current_user.to_actor(), str(student_id))
    return StudentDetailResponse(
        message="Student retrieved successfully",
        student=StudentResponse.model_validate(student),
    )


@router.put("/{student_id}", response_model=StudentDetailResponse, summary="Update a student")
async def update_student(
    student_id: UUID,
    body: StudentUpdateRequest,
    current_user: CurrentUser = Depends(require_student_manager),
    service: StudentService = Depends(get_student_service),
) -> StudentDetailResponse:
    student = await service.update_student(current_user.to_actor(), str(student_id), body)
    return StudentDetailResponse(
        message="Student updated successfully",
        student=StudentResponse.model_validate(student),
    )


@router.delete("/{student_id}", response_model=MessageResponse, summary="Delete a student")
async def delete_student(
    student_id: UUID,
    current_user: CurrentUser = Depends(require_student_manager),
    service: StudentService = Depends(get_student_service),
) -> MessageResponse:
    await service.delete_student(current_user.to_actor(), str(student_id))
    return MessageResponse(message="Student deleted successfully")
