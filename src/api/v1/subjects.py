# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Subject API endpoints.

This module provides endpoints for subjects:
- GET / - List subjects with teachers and usage counts
- POST / - Create a subject
- GET /{subject_id} - Get one subject
- PUT /{subject_id} - Update a subject
- DELETE /{subject_id} - Delete an unused subject
- POST /{subject_id}/teachers - Assign a teacher
- DELETE /{subject_id}/teachers/{teacher_id} - Remove a teacher
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.dependencies import RequireRole, get_db, get_page_params
from src.api.middleware.auth import CurrentUser
from src.domains.subject import SubjectService
from src.models.academic import (
    SubjectCreateRequest,
    SubjectDetailResponse,
    SubjectListResponse,
    SubjectTeacherRequest,
    SubjectUpdateRequest,
)
from src.models.common import SCHOOL_MANAGER_ROLES, MessageResponse, Role
from src.utils.pagination import PageParams, Pagination

logger = logging.getLogger(__name__)

router = APIRouter()

require_subject_reader = RequireRole(*SCHOOL_MANAGER_ROLES, Role.TEACHER, Role.PARENT)
require_subject_manager = RequireRole(*SCHOOL_MANAGER_ROLES)


def get_subject_service(db: AsyncSession = Depends(get_db)) -> SubjectService:
    return SubjectService(db)


@router.get("", response_model=SubjectListResponse, summary="List subjects")
async def list_subjects(
    school_id: UUID | None = Query(None, description="Super admin school filter"),
    params: PageParams = Depends(get_page_params),
    current_user: CurrentUser = Depends(require_subject_reader),
    service: SubjectService = Depends(get_subject_service),
) -> SubjectListResponse:
    subjects, total = await service.list_subjects(
        current_user.to_actor(),
        params,
        school_id=str(school_id) if school_id else None,
    )
    return SubjectListResponse(
        message="Subjects retrieved successfully",
        subjects=subjects,
        pagination=Pagination.build(params, total),
    )


@router.post(
    "",
    response_model=SubjectDetailResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a subject",
)
async def create_subject(
    body: SubjectCreateRequest,
    current_user: CurrentUser = Depends(require_subject_manager),
    service: SubjectService = Depends(get_subject_service),
) -> SubjectDetailResponse:
    actor = current_user.to_actor()
    subject = await service.create_subject(actor, body)
    return SubjectDetailResponse(
        message="Subject created successfully",
        subject=await service.get_subject(actor, subject.id),
    )


@router.get("/{subject_id}", response_model=SubjectDetailResponse, summary="Get a subject")
async def get_subject(
    subject_id: UUID,
    current_user: CurrentUser = Depends(require_subject_reader),
    service: SubjectService = Depends(get_subject_service),
) -> SubjectDetailResponse:
    subject = await service.get_subject(current_user.to_actor(), str(subject_id))
    return SubjectDetailResponse(message="Subject retrieved successfully", subject=subject)


@router.put("/{subject_id}", response_model=SubjectDetailResponse, summary="Update a subject")
async def update_subject(
    subject_id: UUID,
    body: SubjectUpdateRequest,
    current_user: CurrentUser = Depends(require_subject_manager),
    service: SubjectService = Depends(get_subject_service),
) -> SubjectDetailResponse:
    actor = current_user.to_actor()
    subject = await service.update_subject(actor, str(subject_id), body)
    return SubjectDetailResponse(
        message="Subject updated successfully",
        subject=await service.get_subject(actor, subject.id),
    )


@router.delete("/{subject_id}", response_model=MessageResponse, summary="Delete a subject")
async def delete_subject(
    subject_id: UUID,
    current_user: CurrentUser = Depends(require_subject_manager),
    service: SubjectService = Depends(get_subject_service),
) -> MessageResponse:
    await service.delete_subject(current_user.to_actor(), str(subject_id))
    return MessageResponse(message="Subject deleted successfully")


@router.post(
    "/{subject_id}/teachers",
    response_model=SubjectDetailResponse,
    summary="Assign a teacher to a subject",
)
async def assign_teacher(
    subject_id: UUID,
    body: SubjectTeacherRequest,
    current_user: CurrentUser = Depends(require_subject_manager),
    service: SubjectService = Depends(get_subject_service),
) -> SubjectDetailResponse:
    subject = await service.assign_teacher(
        current_user.to_actor(), str(subject_id), str(body.teacher_id)
    )
    return SubjectDetailResponse(message="Teacher assigned successfully", subject=subject)


@router.delete(
    "/{subject_id}/teachers/{teacher_id}",
    response_model=SubjectDetailResponse,
    summary="Remove a teacher from a subject",
)
async def remove_teacher(
    subject_id: UUID,
    teacher_id: UUID,
    current_user: CurrentUser = Depends(require_subject_manager),
    service: SubjectService = Depends(get_subject_service),
) -> SubjectDetailResponse:
    subject = await service.remove_teacher(
        current_user.to_actor(), str(subject_id), str(teacher_id)
    )
    return SubjectDetailResponse(message="Teacher removed successfully", subject=subject)
