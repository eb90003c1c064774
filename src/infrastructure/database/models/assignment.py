# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Assignment, submission and result models."""

from datetime import datetime

from sqlalchemy import DateTime, Float, ForeignKey, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from src.infrastructure.database.models.base import (
    Base,
    TimestampMixin,
    UUIDPrimaryKeyMixin,
    uuid_column,
)


class Assignment(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """Homework set by a teacher.

    An assignment is class-scoped when class_id is set. CLASS_WIDE
    assignments are visible to every parent with a child in the school.
    """

    __tablename__ = "assignments"

    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    instructions: Mapped[str | None] = mapped_column(Text, nullable=True)
    start_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    due_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)
    max_score: Mapped[float] = mapped_column(Float, nullable=False, default=100.0)
    assignment_type: Mapped[str] = mapped_column(String(20), nullable=False, default="INDIVIDUAL")
    document_urls: Mapped[list[str]] = mapped_column(default=list, nullable=False)
    subject_id: Mapped[str] = uuid_column(ForeignKey("subjects.id"), nullable=False, index=True)
    class_id: Mapped[str | None] = uuid_column(ForeignKey("classes.id"), nullable=True, index=True)
    teacher_id: Mapped[str] = uuid_column(ForeignKey("teachers.id"), nullable=False, index=True)
    school_id: Mapped[str] = uuid_column(ForeignKey("schools.id"), nullable=False, index=True)


class AssignmentSubmission(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """A parent's submission on behalf of one student. One row per pair."""

    __tablename__ = "assignment_submissions"
    __table_args__ = (
        UniqueConstraint("assignment_id", "student_id", name="uq_submission_assignment_student"),
    )

    assignment_id: Mapped[str] = uuid_column(
        ForeignKey("assignments.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    student_id: Mapped[str] = uuid_column(ForeignKey("students.id"), nullable=False, index=True)
    submitted_by_id: Mapped[str] = uuid_column(ForeignKey("users.id"), nullable=False)
    content: Mapped[str | None] = mapped_column(Text, nullable=True)
    submission_urls: Mapped[list[str]] = mapped_column(default=list, nullable=False)
    submitted_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)


class Result(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """A graded score for a student on an assignment or exam."""

    __tablename__ = "results"

    student_id: Mapped[str] = uuid_column(ForeignKey("students.id"), nullable=False, index=True)
    assignment_id: Mapped[str | None] = uuid_column(
        ForeignKey("assignments.id"),
        nullable=True,
        index=True,
    )
    exam_id: Mapped[str | None] = uuid_column(ForeignKey("exams.id"), nullable=True, index=True)
    score: Mapped[float] = mapped_column(Float, nullable=False)
    max_score: Mapped[float] = mapped_column(Float, nullable=False, default=100.0)
    grade: Mapped[str | None] = mapped_column(String(5), nullable=True)
    feedback: Mapped[str | None] = mapped_column(Text, nullable=True)
    school_id: Mapped[str] = uuid_column(ForeignKey("schools.id"), nullable=False, index=True)

    @property
    def percentage(self) -> float:
        if not self.max_score:
            return 0.0
        return round(self.score / self.max_score * 100, 2)
