# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Academic structure models: subjects, grades, classes, students, rooms and lessons."""

from datetime import date, datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from src.models.common import DayOfWeek, MessageResponse, ORMModel, PaginatedResponse
from src.models.exam import TIME_PATTERN, _pad_time


class _PartialUpdate(BaseModel):
    @model_validator(mode="after")
    def has_changes(self):
        if not self.model_fields_set:
            raise ValueError("At least one field must be provided")
        return self


# =============================================================================
# Subjects
# =============================================================================


class SubjectCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    code: str | None = Field(default=None, max_length=20)
    description: str | None = None
    school_id: UUID | None = Field(
        default=None,
        description="Defaults to the caller's school; required for super admins",
    )


class SubjectUpdateRequest(_PartialUpdate):
    name: str | None = Field(default=None, min_length=1, max_length=100)
    code: str | None = Field(default=None, max_length=20)
    description: str | None = None


class TeacherRef(BaseModel):
    id: UUID
    name: str
    surname: str


class SubjectCounts(BaseModel):
    lessons: int = 0
    assignments: int = 0
    exams: int = 0


class SubjectResponse(ORMModel):
    id: UUID
    name: str
    code: str | None = None
    description: str | None = None
    school_id: UUID
    created_at: datetime
    updated_at: datetime


class SubjectDetail(SubjectResponse):
    teachers: list[TeacherRef] = Field(default_factory=list)
    counts: SubjectCounts = Field(default_factory=SubjectCounts)


class SubjectListResponse(PaginatedResponse):
    subjects: list[SubjectDetail]


class SubjectDetailResponse(MessageResponse):
    subject: SubjectDetail


class SubjectTeacherRequest(BaseModel):
    teacher_id: UUID


# =============================================================================
# Grades
# =============================================================================


class GradeCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    level: int = Field(..., ge=1)
    school_id: UUID | None = Field(
        default=None,
        description="Defaults to the caller's school; required for super admins",
    )


class GradeUpdateRequest(_PartialUpdate):
    name: str | None = Field(default=None, min_length=1, max_length=100)
    level: int | None = Field(default=None, ge=1)


class GradeResponse(ORMModel):
    id: UUID
    name: str
    level: int
    school_id: UUID
    created_at: datetime


class GradeListResponse(PaginatedResponse):
    grades: list[GradeResponse]


class GradeDetailResponse(MessageResponse):
    grade: GradeResponse


# =============================================================================
# Classes
# =============================================================================


class ClassCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    capacity: int = Field(default=30, ge=1)
    grade_id: UUID | None = None
    supervisor_id: UUID | None = Field(default=None, description="Supervising teacher")
    school_id: UUID | None = Field(
        default=None,
        description="Defaults to the caller's school; required for super admins",
    )


class ClassUpdateRequest(_PartialUpdate):
    name: str | None = Field(default=None, min_length=1, max_length=100)
    capacity: int | None = Field(default=None, ge=1)
    grade_id: UUID | None = None
    supervisor_id: UUID | None = None


class ClassResponse(ORMModel):
    id: UUID
    name: str
    capacity: int
    school_id: UUID
    grade_id: UUID | None = None
    supervisor_id: UUID | None = None
    created_at: datetime


class ClassDetail(ClassResponse):
    student_count: int = 0


class ClassListResponse(PaginatedResponse):
    classes: list[ClassDetail]


class ClassDetailResponse(MessageResponse):
    model_config = ConfigDict(populate_by_name=True)

    class_: ClassDetail = Field(alias="class")


# =============================================================================
# Students
# =============================================================================


class StudentCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    surname: str = Field(..., min_length=1, max_length=100)
    registration_number: str | None = Field(default=None, min_length=1, max_length=50)
    birth_date: date | None = None
    class_id: UUID | None = None
    grade_id: UUID | None = None
    parent_id: UUID | None = Field(default=None, description="User ID of the parent")
    school_id: UUID | None = Field(
        default=None,
        description="Defaults to the caller's school; required for super admins",
    )


class StudentUpdateRequest(_PartialUpdate):
    """Partial update. An explicit null unlinks class, grade or parent."""

    name: str | None = Field(default=None, min_length=1, max_length=100)
    surname: str | None = Field(default=None, min_length=1, max_length=100)
    registration_number: str | None = Field(default=None, min_length=1, max_length=50)
    birth_date: date | None = None
    class_id: UUID | None = None
    grade_id: UUID | None = None
    parent_id: UUID | None = None


class StudentResponse(ORMModel):
    id: UUID
    name: str
    surname: str
    registration_number: str | None = None
    birth_date: date | None = None
    school_id: UUID
    class_id: UUID | None = None
    grade_id: UUID | None = None
    parent_id: UUID | None = None
    created_at: datetime


class StudentListResponse(PaginatedResponse):
    students: list[StudentResponse]


class StudentDetailResponse(MessageResponse):
    student: StudentResponse


# =============================================================================
# Rooms
# =============================================================================


class RoomCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    capacity: int = Field(..., ge=1)
    school_id: UUID | None = Field(
        default=None,
        description="Defaults to the caller's school; required for super admins",
    )


class RoomUpdateRequest(_PartialUpdate):
    name: str | None = Field(default=None, min_length=1, max_length=100)
    capacity: int | None = Field(default=None, ge=1)


class RoomResponse(ORMModel):
    id: UUID
    name: str
    capacity: int
    school_id: UUID
    created_at: datetime


class RoomListResponse(PaginatedResponse):
    rooms: list[RoomResponse]


class RoomDetailResponse(MessageResponse):
    room: RoomResponse


# =============================================================================
# Lessons
# =============================================================================


class LessonCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    day_of_week: DayOfWeek
    start_time: str = Field(..., pattern=TIME_PATTERN, description="HH:MM")
    end_time: str = Field(..., pattern=TIME_PATTERN, description="HH:MM")
    subject_id: UUID
    class_id: UUID
    teacher_id: UUID

    @field_validator("start_time", "end_time")
    @classmethod
    def pad_time(cls, value: str) -> str:
        return _pad_time(value)


class LessonUpdateRequest(_PartialUpdate):
    name: str | None = Field(default=None, min_length=1, max_length=100)
    day_of_week: DayOfWeek | None = None
    start_time: str | None = Field(default=None, pattern=TIME_PATTERN)
    end_time: str | None = Field(default=None, pattern=TIME_PATTERN)
    teacher_id: UUID | None = None

    @field_validator("start_time", "end_time")
    @classmethod
    def pad_time(cls, value: str | None) -> str | None:
        return _pad_time(value)


class LessonResponse(ORMModel):
    id: UUID
    name: str
    day_of_week: DayOfWeek | None = None
    start_time: str | None = None
    end_time: str | None = None
    subject_id: UUID
    class_id: UUID
    teacher_id: UUID
    school_id: UUID
    created_at: datetime


class LessonListResponse(PaginatedResponse):
    lessons: list[LessonResponse]


class LessonDetailResponse(MessageResponse):
    lesson: LessonResponse
