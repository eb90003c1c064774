# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Exam and exam session models."""

from datetime import date, datetime
from uuid import UUID

from pydantic import BaseModel, Field, field_validator, model_validator

from src.models.common import (
    ExamSessionStatus,
    ExamStatus,
    ExamType,
    MessageResponse,
    ORMModel,
    PaginatedResponse,
)

TIME_PATTERN = r"^([01]?\d|2[0-3]):[0-5]\d$"


def _pad_time(value: str | None) -> str | None:
    """Normalise H:MM to HH:MM so times compare correctly as strings."""
    if value is None:
        return None
    hours, minutes = value.split(":")
    return f"{int(hours):02d}:{minutes}"


class ExamCreateRequest(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: str | None = None
    instructions: str | None = None
    exam_type: ExamType
    total_marks: float = Field(..., gt=0)
    passing_marks: float = Field(..., ge=0)
    duration_minutes: int = Field(..., ge=1)
    start_date: datetime
    end_date: datetime
    subject_id: UUID
    grade_id: UUID | None = None
    class_id: UUID | None = None
    term_id: UUID | None = None
    school_id: UUID | None = Field(
        default=None,
        description="Defaults to the caller's school; required for super admins",
    )


class ExamUpdateRequest(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    instructions: str | None = None
    exam_type: ExamType | None = None
    total_marks: float | None = Field(default=None, gt=0)
    passing_marks: float | None = Field(default=None, ge=0)
    duration_minutes: int | None = Field(default=None, ge=1)
    start_date: datetime | None = None
    end_date: datetime | None = None
    status: ExamStatus | None = None

    @model_validator(mode="after")
    def has_changes(self) -> "ExamUpdateRequest":
        if not self.model_fields_set:
            raise ValueError("At least one field must be provided")
        return self


class ExamResponse(ORMModel):
    id: UUID
    title: str
    description: str | None = None
    instructions: str | None = None
    exam_type: ExamType
    status: ExamStatus
    start_date: datetime
    end_date: datetime
    duration_minutes: int
    total_marks: float
    passing_marks: float
    subject_id: UUID
    grade_id: UUID | None = None
    class_id: UUID | None = None
    term_id: UUID | None = None
    school_id: UUID
    created_by_id: UUID
    published_at: datetime | None = None
    created_at: datetime
    updated_at: datetime


class ExamListItem(ExamResponse):
    session_count: int = 0
    result_count: int = 0


class ExamListResponse(PaginatedResponse):
    exams: list[ExamListItem]


class ExamDetailResponse(MessageResponse):
    exam: ExamResponse


class ExamSessionCreateRequest(BaseModel):
    session_date: date
    start_time: str = Field(..., pattern=TIME_PATTERN, description="HH:MM")
    end_time: str = Field(..., pattern=TIME_PATTERN, description="HH:MM")
    room_id: UUID
    invigilator_id: UUID
    student_ids: list[UUID] = Field(..., min_length=1)
    notes: str | None = None

    @field_validator("start_time", "end_time")
    @classmethod
    def pad_time(cls, value: str | None) -> str | None:
        return _pad_time(value)


class ExamSessionUpdateRequest(BaseModel):
    session_date: date | None = None
    start_time: str | None = Field(default=None, pattern=TIME_PATTERN)
    end_time: str | None = Field(default=None, pattern=TIME_PATTERN)
    room_id: UUID | None = None
    invigilator_id: UUID | None = None
    status: ExamSessionStatus | None = None
    notes: str | None = None

    @field_validator("start_time", "end_time")
    @classmethod
    def pad_time(cls, value: str | None) -> str | None:
        return _pad_time(value)

    @model_validator(mode="after")
    def has_changes(self) -> "ExamSessionUpdateRequest":
        if not self.model_fields_set:
            raise ValueError("At least one field must be provided")
        return self


class SessionStudent(ORMModel):
    id: UUID
    name: str
    surname: str
    registration_number: str | None = None


class ExamSessionResponse(ORMModel):
    id: UUID
    exam_id: UUID
    session_date: date
    start_time: str
    end_time: str
    room_id: UUID | None = None
    invigilator_id: UUID | None = None
    status: ExamSessionStatus
    notes: str | None = None
    school_id: UUID
    students: list[SessionStudent] = Field(default_factory=list)


class ExamSessionDetailResponse(MessageResponse):
    session: ExamSessionResponse


class ExamSessionListResponse(MessageResponse):
    sessions: list[ExamSessionResponse]
