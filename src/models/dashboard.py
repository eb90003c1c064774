# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Role dashboard models.

Every dashboard is an ``overview`` of counters plus a few short lists of
recent or upcoming rows.
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from src.models.academic import SubjectResponse
from src.models.assignment import AssignmentResponse
from src.models.common import MessageResponse, ORMModel
from src.models.exam import ExamResponse
from src.models.notification import NotificationResponse
from src.models.school import SchoolResponse


# =============================================================================
# Super admin
# =============================================================================


class SuperAdminOverview(BaseModel):
    total_schools: int
    verified_schools: int
    pending_schools: int
    total_users: int
    total_students: int


class SuperAdminDashboard(BaseModel):
    overview: SuperAdminOverview
    users_by_role: dict[str, int] = Field(default_factory=dict)
    recent_schools: list[SchoolResponse] = Field(default_factory=list)


class SuperAdminDashboardResponse(MessageResponse):
    dashboard: SuperAdminDashboard


# =============================================================================
# School admin and principal
# =============================================================================


class SchoolOverview(BaseModel):
    total_students: int
    total_teachers: int
    total_classes: int
    total_subjects: int
    pending_approvals: int


class SchoolDashboard(BaseModel):
    overview: SchoolOverview
    recent_assignments: list[AssignmentResponse] = Field(default_factory=list)
    upcoming_exams: list[ExamResponse] = Field(default_factory=list)


class SchoolDashboardResponse(MessageResponse):
    dashboard: SchoolDashboard


# =============================================================================
# Teacher
# =============================================================================


class ClassSummary(BaseModel):
    id: UUID
    name: str
    grade_id: UUID | None = None
    student_count: int = 0


class TeacherOverview(BaseModel):
    total_classes: int
    total_subjects: int
    total_assignments: int
    pending_submissions: int


class TeacherDashboard(BaseModel):
    overview: TeacherOverview
    my_classes: list[ClassSummary] = Field(default_factory=list)
    my_subjects: list[SubjectResponse] = Field(default_factory=list)
    recent_assignments: list[AssignmentResponse] = Field(default_factory=list)


class TeacherDashboardResponse(MessageResponse):
    dashboard: TeacherDashboard


# =============================================================================
# Parent
# =============================================================================


class ChildSummary(BaseModel):
    id: UUID
    name: str
    surname: str
    school_id: UUID
    class_id: UUID | None = None
    class_name: str | None = None


class ResultSummary(ORMModel):
    id: UUID
    student_id: UUID
    assignment_id: UUID | None = None
    exam_id: UUID | None = None
    score: float
    max_score: float
    grade: str | None = None
    feedback: str | None = None
    created_at: datetime


class ParentOverview(BaseModel):
    total_children: int
    schools_count: int
    unread_notifications: int


class ParentDashboard(BaseModel):
    overview: ParentOverview
    children: list[ChildSummary] = Field(default_factory=list)
    recent_results: list[ResultSummary] = Field(default_factory=list)
    recent_notifications: list[NotificationResponse] = Field(default_factory=list)


class ParentDashboardResponse(MessageResponse):
    dashboard: ParentDashboard
