# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Initial EduTrack schema.

Revision ID: 001_initial_schema
Revises: None
Create Date: 2025-01-15

Creates every table backing the models in
src/infrastructure/database/models/.
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision: str = "001_initial_schema"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _id() -> sa.Column:
    return sa.Column(
        "id",
        postgresql.UUID(as_uuid=False),
        server_default=sa.text("gen_random_uuid()"),
        primary_key=True,
    )


def _fk(
    name: str,
    target: str,
    nullable: bool = False,
    ondelete: str | None = None,
    **kwargs,
) -> sa.Column:
    return sa.Column(
        name,
        postgresql.UUID(as_uuid=False),
        sa.ForeignKey(target, ondelete=ondelete),
        nullable=nullable,
        **kwargs,
    )


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
    ]


def upgrade() -> None:
    """Create all tables."""
    # ==========================================================================
    # Tenant and identity
    # ==========================================================================
    op.create_table(
        "schools",
        _id(),
        sa.Column("name", sa.String(255), unique=True, nullable=False),
        sa.Column("address", sa.Text, nullable=True),
        sa.Column("city", sa.String(100), nullable=True),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("phone", sa.String(50), nullable=True),
        sa.Column("tenant_id", postgresql.UUID(as_uuid=False), nullable=True),
        sa.Column("is_verified", sa.Boolean, nullable=False, server_default="false"),
        sa.Column("verified_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_schools_tenant_id", "schools", ["tenant_id"])

    op.create_table(
        "users",
        _id(),
        sa.Column("email", sa.String(255), unique=True, nullable=False),
        sa.Column("username", sa.String(100), unique=True, nullable=False),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("surname", sa.String(100), nullable=False),
        sa.Column("role", sa.String(32), nullable=False),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default="true"),
        sa.Column("last_login", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.CheckConstraint(
            "role IN ('SUPER_ADMIN', 'SCHOOL_ADMIN', 'PRINCIPAL', 'TEACHER', 'PARENT')",
            name="valid_user_role",
        ),
    )
    op.create_index("ix_users_email", "users", ["email"])
    op.create_index("ix_users_role", "users", ["role"])

    for table in ("school_admins", "principals", "teachers"):
        extra: list[sa.Column] = []
        if table == "principals":
            extra = [sa.Column("image_url", sa.String(500), nullable=True)]
        elif table == "teachers":
            extra = [
                sa.Column("qualifications", sa.Text, nullable=True),
                sa.Column("bio", sa.Text, nullable=True),
                sa.Column("image_url", sa.String(500), nullable=True),
            ]
        op.create_table(
            table,
            _fk("id", "users.id", ondelete="CASCADE", primary_key=True),
            _fk("school_id", "schools.id"),
            *extra,
            *_timestamps(),
        )
        op.create_index(f"ix_{table}_school_id", table, ["school_id"])

    op.create_table(
        "parents",
        _fk("id", "users.id", ondelete="CASCADE", primary_key=True),
        sa.Column("phone", sa.String(50), nullable=True),
        sa.Column("address", sa.Text, nullable=True),
        *_timestamps(),
    )

    op.create_table(
        "approvals",
        _id(),
        _fk("user_id", "users.id", ondelete="CASCADE", unique=True),
        sa.Column("role", sa.String(32), nullable=False),
        _fk("school_id", "schools.id"),
        sa.Column("status", sa.String(20), nullable=False, server_default="PENDING"),
        _fk("reviewed_by_id", "users.id", nullable=True),
        sa.Column("reviewed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("comments", sa.Text, nullable=True),
        *_timestamps(),
        sa.CheckConstraint(
            "status IN ('PENDING', 'APPROVED', 'REJECTED')",
            name="valid_approval_status",
        ),
    )
    op.create_index("ix_approvals_school_id", "approvals", ["school_id"])
    op.create_index("ix_approvals_status", "approvals", ["status"])

    op.create_table(
        "device_tokens",
        _id(),
        _fk("user_id", "users.id", ondelete="CASCADE"),
        sa.Column("token_hash", sa.String(64), unique=True, nullable=False),
        sa.Column("device_type", sa.String(20), nullable=False, server_default="WEB"),
        sa.Column("user_agent", sa.String(500), nullable=True),
        sa.Column("ip_address", sa.String(45), nullable=True),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default="true"),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("last_used_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("revoked_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_device_tokens_user_id", "device_tokens", ["user_id"])

    # ==========================================================================
    # Academic structure
    # ==========================================================================
    op.create_table(
        "grades",
        _id(),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("level", sa.Integer, nullable=False),
        _fk("school_id", "schools.id"),
        *_timestamps(),
        sa.UniqueConstraint("school_id", "level", name="uq_grades_school_level"),
        sa.CheckConstraint("level >= 1", name="valid_grade_level"),
    )
    op.create_index("ix_grades_school_id", "grades", ["school_id"])

    op.create_table(
        "classes",
        _id(),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("capacity", sa.Integer, nullable=False, server_default="30"),
        _fk("school_id", "schools.id"),
        _fk("grade_id", "grades.id", nullable=True),
        _fk("supervisor_id", "teachers.id", nullable=True),
        *_timestamps(),
        sa.UniqueConstraint("school_id", "name", name="uq_classes_school_name"),
    )
    op.create_index("ix_classes_school_id", "classes", ["school_id"])

    op.create_table(
        "students",
        _id(),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("surname", sa.String(100), nullable=False),
        sa.Column("registration_number", sa.String(50), nullable=True),
        sa.Column("birth_date", sa.Date, nullable=True),
        _fk("school_id", "schools.id"),
        _fk("class_id", "classes.id", nullable=True),
        _fk("grade_id", "grades.id", nullable=True),
        _fk("parent_id", "parents.id", nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_students_school_id", "students", ["school_id"])
    op.create_index("ix_students_class_id", "students", ["class_id"])
    op.create_index("ix_students_parent_id", "students", ["parent_id"])

    op.create_table(
        "subjects",
        _id(),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("code", sa.String(20), nullable=True),
        sa.Column("description", sa.Text, nullable=True),
        _fk("school_id", "schools.id"),
        *_timestamps(),
        sa.UniqueConstraint("school_id", "name", name="uq_subjects_school_name"),
    )
    op.create_index("ix_subjects_school_id", "subjects", ["school_id"])

    op.create_table(
        "subject_teachers",
        _fk("subject_id", "subjects.id", ondelete="CASCADE", primary_key=True),
        _fk("teacher_id", "teachers.id", ondelete="CASCADE", primary_key=True),
    )

    op.create_table(
        "lessons",
        _id(),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("day_of_week", sa.String(10), nullable=True),
        sa.Column("start_time", sa.String(5), nullable=True),
        sa.Column("end_time", sa.String(5), nullable=True),
        _fk("subject_id", "subjects.id"),
        _fk("class_id", "classes.id"),
        _fk("teacher_id", "teachers.id"),
        _fk("school_id", "schools.id"),
        *_timestamps(),
    )
    op.create_index("ix_lessons_subject_id", "lessons", ["subject_id"])
    op.create_index("ix_lessons_class_id", "lessons", ["class_id"])
    op.create_index("ix_lessons_teacher_id", "lessons", ["teacher_id"])
    op.create_index("ix_lessons_school_id", "lessons", ["school_id"])

    op.create_table(
        "rooms",
        _id(),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("capacity", sa.Integer, nullable=False),
        _fk("school_id", "schools.id"),
        *_timestamps(),
    )
    op.create_index("ix_rooms_school_id", "rooms", ["school_id"])

    # ==========================================================================
    # Calendar
    # ==========================================================================
    op.create_table(
        "academic_years",
        _id(),
        sa.Column("name", sa.String(50), nullable=False),
        sa.Column("start_date", sa.Date, nullable=False),
        sa.Column("end_date", sa.Date, nullable=False),
        sa.Column("is_current", sa.Boolean, nullable=False, server_default="false"),
        _fk("school_id", "schools.id"),
        *_timestamps(),
    )
    op.create_index("ix_academic_years_school_id", "academic_years", ["school_id"])

    op.create_table(
        "terms",
        _id(),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("start_date", sa.Date, nullable=False),
        sa.Column("end_date", sa.Date, nullable=False),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default="true"),
        _fk("academic_year_id", "academic_years.id"),
        _fk("school_id", "schools.id"),
        *_timestamps(),
    )
    op.create_index("ix_terms_academic_year_id", "terms", ["academic_year_id"])
    op.create_index("ix_terms_school_id", "terms", ["school_id"])

    op.create_table(
        "holidays",
        _id(),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("start_date", sa.Date, nullable=False),
        sa.Column("end_date", sa.Date, nullable=False),
        sa.Column("holiday_type", sa.String(32), nullable=False),
        sa.Column("is_recurring", sa.Boolean, nullable=False, server_default="false"),
        _fk("school_id", "schools.id"),
        *_timestamps(),
    )
    op.create_index("ix_holidays_school_id", "holidays", ["school_id"])

    op.create_table(
        "academic_calendars",
        _id(),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        _fk("academic_year_id", "academic_years.id"),
        _fk("school_id", "schools.id"),
        *_timestamps(),
    )
    op.create_index("ix_academic_calendars_school_id", "academic_calendars", ["school_id"])

    op.create_table(
        "calendar_items",
        _id(),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("item_type", sa.String(32), nullable=False),
        sa.Column("start_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("end_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("is_all_day", sa.Boolean, nullable=False, server_default="true"),
        _fk("academic_calendar_id", "academic_calendars.id", ondelete="CASCADE"),
        _fk("school_id", "schools.id"),
        *_timestamps(),
    )
    op.create_index(
        "ix_calendar_items_academic_calendar_id",
        "calendar_items",
        ["academic_calendar_id"],
    )
    op.create_index("ix_calendar_items_school_id", "calendar_items", ["school_id"])

    # ==========================================================================
    # Exams
    # ==========================================================================
    op.create_table(
        "exams",
        _id(),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("instructions", sa.Text, nullable=True),
        sa.Column("exam_type", sa.String(32), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="DRAFT"),
        sa.Column("start_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("end_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("duration_minutes", sa.Integer, nullable=False),
        sa.Column("total_marks", sa.Float, nullable=False),
        sa.Column("passing_marks", sa.Float, nullable=False),
        _fk("subject_id", "subjects.id"),
        _fk("grade_id", "grades.id", nullable=True),
        _fk("class_id", "classes.id", nullable=True),
        _fk("term_id", "terms.id", nullable=True),
        _fk("school_id", "schools.id"),
        _fk("created_by_id", "users.id"),
        sa.Column("published_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.CheckConstraint("passing_marks <= total_marks", name="valid_passing_marks"),
    )
    op.create_index("ix_exams_subject_id", "exams", ["subject_id"])
    op.create_index("ix_exams_term_id", "exams", ["term_id"])
    op.create_index("ix_exams_school_id", "exams", ["school_id"])
    op.create_index("ix_exams_status", "exams", ["status"])

    op.create_table(
        "exam_sessions",
        _id(),
        _fk("exam_id", "exams.id", ondelete="CASCADE"),
        sa.Column("session_date", sa.Date, nullable=False),
        sa.Column("start_time", sa.String(5), nullable=False),
        sa.Column("end_time", sa.String(5), nullable=False),
        _fk("room_id", "rooms.id", nullable=True),
        _fk("invigilator_id", "teachers.id", nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default="SCHEDULED"),
        sa.Column("notes", sa.Text, nullable=True),
        _fk("school_id", "schools.id"),
        *_timestamps(),
    )
    op.create_index("ix_exam_sessions_exam_id", "exam_sessions", ["exam_id"])
    op.create_index("ix_exam_sessions_session_date", "exam_sessions", ["session_date"])
    op.create_index("ix_exam_sessions_school_id", "exam_sessions", ["school_id"])

    op.create_table(
        "exam_session_students",
        _fk("session_id", "exam_sessions.id", ondelete="CASCADE", primary_key=True),
        _fk("student_id", "students.id", ondelete="CASCADE", primary_key=True),
    )

    # ==========================================================================
    # Assignments and results
    # ==========================================================================
    op.create_table(
        "assignments",
        _id(),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("instructions", sa.Text, nullable=True),
        sa.Column("start_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("due_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("max_score", sa.Float, nullable=False, server_default="100"),
        sa.Column("assignment_type", sa.String(20), nullable=False, server_default="INDIVIDUAL"),
        sa.Column("document_urls", postgresql.JSONB, nullable=False, server_default="[]"),
        _fk("subject_id", "subjects.id"),
        _fk("class_id", "classes.id", nullable=True),
        _fk("teacher_id", "teachers.id"),
        _fk("school_id", "schools.id"),
        *_timestamps(),
    )
    op.create_index("ix_assignments_due_date", "assignments", ["due_date"])
    op.create_index("ix_assignments_subject_id", "assignments", ["subject_id"])
    op.create_index("ix_assignments_class_id", "assignments", ["class_id"])
    op.create_index("ix_assignments_teacher_id", "assignments", ["teacher_id"])
    op.create_index("ix_assignments_school_id", "assignments", ["school_id"])

    op.create_table(
        "assignment_submissions",
        _id(),
        _fk("assignment_id", "assignments.id", ondelete="CASCADE"),
        _fk("student_id", "students.id"),
        _fk("submitted_by_id", "users.id"),
        sa.Column("content", sa.Text, nullable=True),
        sa.Column("submission_urls", postgresql.JSONB, nullable=False, server_default="[]"),
        sa.Column("submitted_at", sa.DateTime(timezone=True), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint(
            "assignment_id",
            "student_id",
            name="uq_submission_assignment_student",
        ),
    )
    op.create_index(
        "ix_assignment_submissions_assignment_id",
        "assignment_submissions",
        ["assignment_id"],
    )
    op.create_index(
        "ix_assignment_submissions_student_id",
        "assignment_submissions",
        ["student_id"],
    )

    op.create_table(
        "results",
        _id(),
        _fk("student_id", "students.id"),
        _fk("assignment_id", "assignments.id", nullable=True),
        _fk("exam_id", "exams.id", nullable=True),
        sa.Column("score", sa.Float, nullable=False),
        sa.Column("max_score", sa.Float, nullable=False, server_default="100"),
        sa.Column("grade", sa.String(5), nullable=True),
        sa.Column("feedback", sa.Text, nullable=True),
        _fk("school_id", "schools.id"),
        *_timestamps(),
    )
    op.create_index("ix_results_student_id", "results", ["student_id"])
    op.create_index("ix_results_assignment_id", "results", ["assignment_id"])
    op.create_index("ix_results_exam_id", "results", ["exam_id"])
    op.create_index("ix_results_school_id", "results", ["school_id"])

    # ==========================================================================
    # Notifications and files
    # ==========================================================================
    op.create_table(
        "notifications",
        _id(),
        _fk("user_id", "users.id", ondelete="CASCADE"),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("content", sa.Text, nullable=False),
        sa.Column("type", sa.String(32), nullable=False, server_default="GENERAL"),
        sa.Column("priority", sa.String(16), nullable=False, server_default="NORMAL"),
        sa.Column("data", postgresql.JSONB, nullable=True),
        sa.Column("action_url", sa.String(500), nullable=True),
        sa.Column("image_url", sa.String(500), nullable=True),
        _fk("sender_id", "users.id", nullable=True),
        sa.Column("is_read", sa.Boolean, nullable=False, server_default="false"),
        sa.Column("read_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_notifications_user_id", "notifications", ["user_id"])
    op.create_index("ix_notifications_type", "notifications", ["type"])
    op.create_index("ix_notifications_is_read", "notifications", ["is_read"])

    op.create_table(
        "notification_preferences",
        _fk("user_id", "users.id", ondelete="CASCADE", primary_key=True),
        sa.Column("preferences", postgresql.JSONB, nullable=False, server_default="{}"),
        *_timestamps(),
    )

    op.create_table(
        "file_records",
        _id(),
        sa.Column("file_name", sa.String(255), nullable=False),
        sa.Column("original_name", sa.String(255), nullable=False),
        sa.Column("content_type", sa.String(100), nullable=True),
        sa.Column("size", sa.Integer, nullable=False),
        sa.Column("url", sa.String(500), nullable=False),
        sa.Column("folder", sa.String(100), nullable=False),
        sa.Column("entity_type", sa.String(50), nullable=False),
        sa.Column("entity_id", postgresql.UUID(as_uuid=False), nullable=False),
        _fk("uploaded_by_id", "users.id"),
        _fk("school_id", "schools.id", nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_file_records_entity_id", "file_records", ["entity_id"])


def downgrade() -> None:
    """Drop all tables in reverse dependency order."""
    for table in (
        "file_records",
        "notification_preferences",
        "notifications",
        "results",
        "assignment_submissions",
        "assignments",
        "exam_session_students",
        "exam_sessions",
        "exams",
        "calendar_items",
        "academic_calendars",
        "holidays",
        "terms",
        "academic_years",
        "rooms",
        "lessons",
        "subject_teachers",
        "subjects",
        "students",
        "classes",
        "grades",
        "device_tokens",
        "approvals",
        "parents",
        "teachers",
        "principals",
        "school_admins",
        "users",
        "schools",
    ):
        op.drop_table(table)
