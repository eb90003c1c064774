# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Exam API endpoints.

This module provides endpoints for exams and their sessions:
- GET / - List exams in scope
- POST / - Create an exam
- GET /sessions/{session_id} - Get one session
- PUT /sessions/{session_id} - Reschedule or change a session status
- DELETE /sessions/{session_id} - Delete a session that has not started
- GET /{exam_id} - Get one exam
- PUT /{exam_id} - Update or publish an exam
- DELETE /{exam_id} - Delete an exam without sessions or results
- GET /{exam_id}/sessions - List sessions of an exam
- POST /{exam_id}/sessions - Schedule a session
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.dependencies import RequireRole, get_actor, get_db, get_page_params
from src.api.middleware.auth import CurrentUser
from src.domains.exam import ExamService
from src.domains.tenancy import Actor
from src.models.common import (
    SCHOOL_MANAGER_ROLES,
    ExamStatus,
    ExamType,
    MessageResponse,
    Role,
)
from src.models.exam import (
    ExamCreateRequest,
    ExamDetailResponse,
    ExamListResponse,
    ExamResponse,
    ExamSessionCreateRequest,
    ExamSessionDetailResponse,
    ExamSessionListResponse,
    ExamSessionUpdateRequest,
    ExamUpdateRequest,
)
from src.utils.pagination import PageParams, Pagination

logger = logging.getLogger(__name__)

router = APIRouter()

require_exam_staff = RequireRole(*SCHOOL_MANAGER_ROLES, Role.TEACHER)


def get_exam_service(db: AsyncSession = Depends(get_db)) -> ExamService:
    return ExamService(db)


@router.get("", response_model=ExamListResponse, summary="List exams")
async def list_exams(
    subject_id: UUID | None = Query(None),
    class_id: UUID | None = Query(None),
    term_id: UUID | None = Query(None),
    exam_status: ExamStatus | None = Query(None, alias="status"),
    exam_type: ExamType | None = Query(None),
    school_id: UUID | None = Query(None, description="Super admin school filter"),
    params: PageParams = Depends(get_page_params),
    actor: Actor = Depends(get_actor),
    service: ExamService = Depends(get_exam_service),
) -> ExamListResponse:
    exams, total = await service.list_exams(
        actor,
        params,
        subject_id=str(subject_id) if subject_id else None,
        class_id=str(class_id) if class_id else None,
        term_id=str(term_id) if term_id else None,
        status=exam_status,
        exam_type=exam_type,
        school_id=str(school_id) if school_id else None,
    )
    return ExamListResponse(
        message="Exams retrieved successfully",
        exams=exams,
        pagination=Pagination.build(params, total),
    )


@router.post(
    "",
    response_model=ExamDetailResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create an exam",
)
async def create_exam(
    body: ExamCreateRequest,
    current_user: CurrentUser = Depends(require_exam_staff),
    service: ExamService = Depends(get_exam_service),
) -> ExamDetailResponse:
    exam = await service.create_exam(current_user.to_actor(), body)
    return ExamDetailResponse(
        message="Exam created successfully",
        exam=ExamResponse.model_validate(exam),
    )


# Session routes are declared before /{exam_id} so "sessions" is not read as an exam ID.


@router.get(
    "/sessions/{session_id}",
    response_model=ExamSessionDetailResponse,
    summary="Get an exam session",
)
async def get_session(
    session_id: UUID,
    actor: Actor = Depends(get_actor),
    service: ExamService = Depends(get_exam_service),
) -> ExamSessionDetailResponse:
    session = await service.get_session(actor, str(session_id))
    return ExamSessionDetailResponse(
        message="Exam session retrieved successfully",
        session=await service.to_response(session),
    )


@router.put(
    "/sessions/{session_id}",
    response_model=ExamSessionDetailResponse,
    summary="Update an exam session",
)
async def update_session(
    session_id: UUID,
    body: ExamSessionUpdateRequest,
    current_user: CurrentUser = Depends(require_exam_staff),
    service: ExamService = Depends(get_exam_service),
) -> ExamSessionDetailResponse:
    session = await service.update_session(current_user.to_actor(), str(session_id), body)
    return ExamSessionDetailResponse(
        message="Exam session updated successfully",
        session=await service.to_response(session),
    )


@router.delete(
    "/sessions/{session_id}",
    response_model=MessageResponse,
    summary="Delete an exam session",
)
async def delete_session(
    session_id: UUID,
    current_user: CurrentUser = Depends(require_exam_staff),
    service: ExamService = Depends(get_exam_service),
) -> MessageResponse:
    await service.delete_session(current_user.to_actor(), str(session_id))
    return MessageResponse(message="Exam session deleted successfully")


@router.get("/{exam_id}", response_model=ExamDetailResponse, summary="Get an exam")
async def get_exam(
    exam_id: UUID,
    actor: Actor = Depends(get_actor),
    service: ExamService = Depends(get_exam_service),
) -> ExamDetailResponse:
    exam = await service.get_exam(actor, str(exam_id))
    return ExamDetailResponse(
        message="Exam retrieved successfully",
        exam=ExamResponse.model_validate(exam),
    )


@router.put("/{exam_id}", response_model=ExamDetailResponse, summary="Update an exam")
async def update_exam(
    exam_id: UUID,
    body: ExamUpdateRequest,
    current_user: CurrentUser = Depends(require_exam_staff),
    service: ExamService = Depends(get_exam_service),
) -> ExamDetailResponse:
    exam = await service.update_exam(current_user.to_actor(), str(exam_id), body)
    return ExamDetailResponse(
        message="Exam updated successfully",
        exam=ExamResponse.model_validate(exam),
    )


@router.delete("/{exam_id}", response_model=MessageResponse, summary="Delete an exam")
async def delete_exam(
    exam_id: UUID,
    current_user: CurrentUser = Depends(require_exam_staff),
    service: ExamService = Depends(get_exam_service),
) -> MessageResponse:
    await service.delete_exam(current_user.to_actor(), str(exam_id))
    return MessageResponse(message="Exam deleted successfully")


@router.get(
    "/{exam_id}/sessions",
    response_model=ExamSessionListResponse,
    summary="List exam sessions",
)
async def list_sessions(
    exam_id: UUID,
    actor: Actor = Depends(get_actor),
    service: ExamService = Depends(get_exam_service),
) -> ExamSessionListResponse:
    sessions = await service.list_sessions(actor, str(exam_id))
    return ExamSessionListResponse(
        message="Exam sessions retrieved successfully",
        sessions=sessions,
    )


@router.post(
    "/{exam_id}/sessions",
    response_model=ExamSessionDetailResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Schedule an exam session",
)
async def create_session(
    exam_id: UUID,
    body: ExamSessionCreateRequest,
    current_user: CurrentUser = Depends(require_exam_staff),
    service: ExamService = Depends(get_exam_service),
) -> ExamSessionDetailResponse:
    session = await service.create_session(current_user.to_actor(), str(exam_id), body)
    return ExamSessionDetailResponse(
        message="Exam session created successfully",
        session=await service.to_response(session),
    )
