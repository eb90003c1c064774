# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Assignment API endpoints.

This module provides endpoints for assignments:
- GET / - List assignments in scope
- POST / - Create an assignment and notify parents of the class
- GET /{assignment_id} - Get one assignment
- PUT /{assignment_id} - Update an owned assignment
- DELETE /{assignment_id} - Delete an owned assignment without results
- POST /{assignment_id}/upload - Attach documents
- POST /{assignment_id}/submit - Parent submission for a child
- GET /students/{student_id} - A student's assignments with status
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.dependencies import RequireRole, get_actor, get_db, get_page_params, get_storage
from src.api.middleware.auth import CurrentUser
from src.domains.assignment import AssignmentService
from src.domains.tenancy import Actor
from src.infrastructure.storage import FileUpload, StorageBackend
from src.models.assignment import (
    AssignmentCreateRequest,
    AssignmentCreateResponse,
    AssignmentDetailResponse,
    AssignmentListResponse,
    AssignmentResponse,
    AssignmentStatusFilter,
    AssignmentUpdateRequest,
    AssignmentUploadResponse,
    StudentAssignmentItem,
    StudentAssignmentStatus,
    StudentAssignmentsResponse,
    StudentRef,
    SubmissionCreateResponse,
    SubmissionResponse,
    UploadedFileResponse,
)
from src.models.common import MessageResponse, Role
from src.utils.pagination import PageParams, Pagination

logger = logging.getLogger(__name__)

router = APIRouter()

require_assignment_writer = RequireRole(
    Role.TEACHER,
    Role.PRINCIPAL,
    Role.SCHOOL_ADMIN,
    Role.SUPER_ADMIN,
)


def get_assignment_service(
    db: AsyncSession = Depends(get_db),
    storage: StorageBackend = Depends(get_storage),
) -> AssignmentService:
    return AssignmentService(db, storage)


async def read_uploads(files: list[UploadFile] | None) -> list[FileUpload]:
    """Read multipart files into memory, skipping empty form fields."""
    uploads = []
    for file in files or []:
        if not file.filename:
            continue
        uploads.append(
            FileUpload(
                original_name=file.filename,
                content=await file.read(),
                content_type=file.content_type,
            )
        )
    return uploads


@router.get("", response_model=AssignmentListResponse, summary="List assignments")
async def list_assignments(
    class_id: UUID | None = Query(None),
    subject_id: UUID | None = Query(None),
    assignment_status: AssignmentStatusFilter | None = Query(None, alias="status"),
    school_id: UUID | None = Query(None, description="Super admin school filter"),
    params: PageParams = Depends(get_page_params),
    actor: Actor = Depends(get_actor),
    service: AssignmentService = Depends(get_assignment_service),
) -> AssignmentListResponse:
    assignments, total = await service.list_assignments(
        actor,
        params,
        class_id=str(class_id) if class_id else None,
        subject_id=str(subject_id) if subject_id else None,
        status=assignment_status,
        school_id=str(school_id) if school_id else None,
    )
    return AssignmentListResponse(
        message="Assignments retrieved successfully",
        assignments=[AssignmentResponse.model_validate(a) for a in assignments],
        pagination=Pagination.build(params, total),
    )


@router.post(
    "",
    response_model=AssignmentCreateResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create an assignment",
)
async def create_assignment(
    body: AssignmentCreateRequest,
    current_user: CurrentUser = Depends(require_assignment_writer),
    service: AssignmentService = Depends(get_assignment_service),
) -> AssignmentCreateResponse:
    assignment, notified = await service.create_assignment(current_user.to_actor(), body)
    return AssignmentCreateResponse(
        message="Assignment created successfully",
        assignment=AssignmentResponse.model_validate(assignment),
        notifications_sent=notified,
    )


@router.get(
    "/students/{student_id}",
    response_model=StudentAssignmentsResponse,
    summary="List a student's assignments with status",
)
async def get_student_assignments(
    student_id: UUID,
    assignment_status: StudentAssignmentStatus | None = Query(None, alias="status"),
    actor: Actor = Depends(get_actor),
    service: AssignmentService = Depends(get_assignment_service),
) -> StudentAssignmentsResponse:
    student, items = await service.get_student_assignments(
        actor, str(student_id), assignment_status
    )
    return StudentAssignmentsResponse(
        message="Student assignments retrieved successfully",
        student=StudentRef.model_validate(student),
        assignments=[
            StudentAssignmentItem(
                assignment=AssignmentResponse.model_validate(item.assignment),
                status=item.status,
                submission=(
                    SubmissionResponse.model_validate(item.submission)
                    if item.submission is not None
                    else None
                ),
            )
            for item in items
        ],
    )


@router.get("/{assignment_id}", response_model=AssignmentDetailResponse, summary="Get an assignment")
async def get_assignment(
    assignment_id: UUID,
    actor: Actor = Depends(get_actor),
    service: AssignmentService = Depends(get_assignment_service),
) -> AssignmentDetailResponse:
    assignment = await service.get_assignment(actor, str(assignment_id))
    return AssignmentDetailResponse(
        message="Assignment retrieved successfully",
        assignment=AssignmentResponse.model_validate(assignment),
    )


@router.put(
    "/{assignment_id}",
    response_model=AssignmentDetailResponse,
    summary="Update an assignment",
)
async def update_assignment(
    assignment_id: UUID,
    body: AssignmentUpdateRequest,
    current_user: CurrentUser = Depends(require_assignment_writer),
    service: AssignmentService = Depends(get_assignment_service),
) -> AssignmentDetailResponse:
    assignment = await service.update_assignment(
        current_user.to_actor(), str(assignment_id), body
    )
    return AssignmentDetailResponse(
        message="Assignment updated successfully",
        assignment=AssignmentResponse.model_validate(assignment),
    )


@router.delete(
    "/{assignment_id}",
    response_model=MessageResponse,
    summary="Delete an assignment",
)
async def delete_assignment(
    assignment_id: UUID,
    current_user: CurrentUser = Depends(require_assignment_writer),
    service: AssignmentService = Depends(get_assignment_service),
) -> MessageResponse:
    await service.delete_assignment(current_user.to_actor(), str(assignment_id))
    return MessageResponse(message="Assignment deleted successfully")


@router.post(
    "/{assignment_id}/upload",
    response_model=AssignmentUploadResponse,
    summary="Upload assignment documents",
)
async def upload_assignment_files(
    assignment_id: UUID,
    files: list[UploadFile] | None = File(None),
    current_user: CurrentUser = Depends(require_assignment_writer),
    service: AssignmentService = Depends(get_assignment_service),
) -> AssignmentUploadResponse:
    uploads = await read_uploads(files)
    assignment, records = await service.upload_files(
        current_user.to_actor(), str(assignment_id), uploads
    )
    return AssignmentUploadResponse(
        message="Files uploaded successfully",
        assignment=AssignmentResponse.model_validate(assignment),
        document_urls=[record.url for record in records],
        files=[UploadedFileResponse.model_validate(record) for record in records],
    )


@router.post(
    "/{assignment_id}/submit",
    response_model=SubmissionCreateResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Submit an assignment for a child",
)
async def submit_assignment(
    assignment_id: UUID,
    student_id: UUID = Form(...),
    content: str | None = Form(None),
    files: list[UploadFile] | None = File(None),
    actor: Actor = Depends(get_actor),
    service: AssignmentService = Depends(get_assignment_service),
) -> SubmissionCreateResponse:
    uploads = await read_uploads(files)
    submission = await service.submit_assignment(
        actor,
        str(assignment_id),
        str(student_id),
        content=content,
        uploads=uploads,
    )
    return SubmissionCreateResponse(
        message="Assignment submitted successfully",
        submission=SubmissionResponse.model_validate(submission),
    )
