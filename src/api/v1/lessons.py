# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Lesson (weekly timetable) API endpoints."""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.dependencies import RequireRole, get_db, get_page_params
from src.api.middleware.auth import CurrentUser
from src.domains.lesson import LessonService
from src.models.academic import (
    LessonCreateRequest,
    LessonDetailResponse,
    LessonListResponse,
    LessonResponse,
    LessonUpdateRequest,
)
from src.models.common import SCHOOL_MANAGER_ROLES, DayOfWeek, MessageResponse, Role
from src.utils.pagination import PageParams, Pagination

logger = logging.getLogger(__name__)

router = APIRouter()

require_lesson_reader = RequireRole(*SCHOOL_MANAGER_ROLES, Role.TEACHER, Role.PARENT)
require_lesson_manager = RequireRole(*SCHOOL_MANAGER_ROLES)


def get_lesson_service(db: AsyncSession = Depends(get_db)) -> LessonService:
    return LessonService(db)


@router.get("", response_model=LessonListResponse, summary="List lessons")
async def list_lessons(
    school_id: UUID | None = Query(None, description="Super admin school filter"),
    class_id: UUID | None = Query(None),
    teacher_id: UUID | None = Query(None),
    day_of_week: DayOfWeek | None = Query(None),
    params: PageParams = Depends(get_page_params),
    current_user: CurrentUser = Depends(require_lesson_reader),
    service: LessonService = Depends(get_lesson_service),
) -> LessonListResponse:
    lessons, total = await service.list_lessons(
        current_user.to_actor(),
        params,
        school_id=str(school_id) if school_id else None,
        class_id=str(class_id) if class_id else None,
        teacher_id=str(teacher_id) if teacher_id else None,
        day_of_week=day_of_week,
    )
    return LessonListResponse(
        message="Lessons retrieved successfully",
        lessons=[LessonResponse.model_validate(lesson) for lesson in lessons],
        pagination=Pagination.build(params, total),
    )


@router.post(
    "",
    response_model=LessonDetailResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Schedule a lesson",
)
async def create_lesson(
    body: LessonCreateRequest,
    current_user: CurrentUser = Depends(require_lesson_manager),
    service: LessonService = Depends(get_lesson_service),
) -> LessonDetailResponse:
    lesson = await service.create_lesson(current_user.to_actor(), body)
    return LessonDetailResponse(
        message="Lesson created successfully",
        lesson=LessonResponse.model_validate(lesson),
    )


@router.get("/{lesson_id}", response_model=LessonDetailResponse, summary="Get a lesson")
async def get_lesson(
    lesson_id: UUID,
    current_user: CurrentUser = Depends(require_lesson_reader),
    service: LessonService = Depends(get_lesson_service),
) -> LessonDetailResponse:
    lesson = await service.get_lesson(current_user.to_actor(), str(lesson_id))
    return LessonDetailResponse(
        message="Lesson retrieved successfully",
        lesson=LessonResponse.model_validate(lesson),
    )


@router.put("/{lesson_id}", response_model=LessonDetailResponse, summary="Update a lesson")
async def update_lesson(
    lesson_id: UUID,
    body: LessonUpdateRequest,
    current_user: CurrentUser = Depends(require_lesson_manager),
    service: LessonService = Depends(get_lesson_service),
) -> LessonDetailResponse:
    lesson = await service.update_lesson(current_user.to_actor(), str(lesson_id), body)
    return LessonDetailResponse(
        message="Lesson updated successfully",
        lesson=LessonResponse.model_validate(lesson),
    )


@router.delete("/{lesson_id}", response_model=MessageResponse, summary="Delete a lesson")
async def delete_lesson(
    lesson_id: UUID,
    current_user: CurrentUser = Depends(require_lesson_manager),
    service: LessonService = Depends(get_lesson_service),
) -> MessageResponse:
    await service.delete_lesson(current_user.to_actor(), str(lesson_id))
    return MessageResponse(message="Lesson deleted successfully")
