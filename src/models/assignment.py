# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Assignment, submission and upload models."""

from datetime import datetime
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, Field, field_validator, model_validator

from src.models.common import AssignmentType, MessageResponse, ORMModel, PaginatedResponse
from src.utils.datetime import ensure_utc

AssignmentStatusFilter = Literal["upcoming", "active", "overdue"]
StudentAssignmentStatus = Literal["pending", "submitted", "overdue"]


class AssignmentCreateRequest(BaseModel):
    """Create an assignment for a subject and optionally a class."""

    title: str = Field(..., min_length=1, max_length=255)
    description: str | None = None
    instructions: str | None = None
    start_date: datetime
    due_date: datetime
    max_score: float = Field(default=100.0, ge=0)
    assignment_type: AssignmentType = AssignmentType.INDIVIDUAL
    subject_id: UUID
    class_id: UUID | None = None
    teacher_id: UUID | None = Field(
        default=None,
        description="Owning teacher; required when the creator is not a teacher",
    )

    @field_validator("start_date", "due_date")
    @classmethod
    def to_utc(cls, value: datetime) -> datetime:
        # Naive values are read as UTC so mixed inputs stay comparable
        return ensure_utc(value)

    @model_validator(mode="after")
    def due_after_start(self) -> "AssignmentCreateRequest":
        if self.due_date <= self.start_date:
            raise ValueError("Due date must be after start date")
        return self


class AssignmentUpdateRequest(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    instructions: str | None = None
    start_date: datetime | None = None
    due_date: datetime | None = None
    max_score: float | None = Field(default=None, ge=0)
    assignment_type: AssignmentType | None = None

    @field_validator("start_date", "due_date")
    @classmethod
    def to_utc(cls, value: datetime | None) -> datetime | None:
        return ensure_utc(value)

    @model_validator(mode="after")
    def has_changes(self) -> "AssignmentUpdateRequest":
        if not self.model_fields_set:
            raise ValueError("At least one field must be provided")
        return self


class AssignmentResponse(ORMModel):
    id: UUID
    title: str
    description: str | None = None
    instructions: str | None = None
    start_date: datetime
    due_date: datetime
    max_score: float
    assignment_type: AssignmentType
    document_urls: list[str] = Field(default_factory=list)
    subject_id: UUID
    class_id: UUID | None = None
    teacher_id: UUID
    school_id: UUID
    created_at: datetime
    updated_at: datetime


class AssignmentListResponse(PaginatedResponse):
    assignments: list[AssignmentResponse]


class AssignmentDetailResponse(MessageResponse):
    assignment: AssignmentResponse


class AssignmentCreateResponse(AssignmentDetailResponse):
    notifications_sent: int = Field(description="Parents notified about the new assignment")


class UploadedFileResponse(ORMModel):
    id: UUID
    original_name: str
    content_type: str | None = None
    size: int
    url: str


class AssignmentUploadResponse(AssignmentDetailResponse):
    document_urls: list[str] = Field(description="URLs of the files uploaded by this request")
    files: list[UploadedFileResponse]


class SubmissionResponse(ORMModel):
    id: UUID
    assignment_id: UUID
    student_id: UUID
    submitted_by_id: UUID
    content: str | None = None
    submission_urls: list[str] = Field(default_factory=list)
    submitted_at: datetime


class SubmissionCreateResponse(MessageResponse):
    submission: SubmissionResponse


class StudentRef(ORMModel):
    id: UUID
    name: str
    surname: str


class StudentAssignmentItem(BaseModel):
    assignment: AssignmentResponse
    status: StudentAssignmentStatus
    submission: SubmissionResponse | None = None


class StudentAssignmentsResponse(MessageResponse):
    student: StudentRef
    assignments: list[StudentAssignmentItem]
