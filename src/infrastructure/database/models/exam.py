# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Exam and exam session models."""

from datetime import date, datetime

from sqlalchemy import (
    Column,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Table,
    Text,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column

from src.infrastructure.database.models.base import (
    Base,
    TimestampMixin,
    UUIDPrimaryKeyMixin,
    uuid_column,
)

exam_session_students = Table(
    "exam_session_students",
    Base.metadata,
    Column(
        "session_id",
        Uuid(as_uuid=False),
        ForeignKey("exam_sessions.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column(
        "student_id",
        Uuid(as_uuid=False),
        ForeignKey("students.id", ondelete="CASCADE"),
        primary_key=True,
    ),
)


class Exam(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "exams"

    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    instructions: Mapped[str | None] = mapped_column(Text, nullable=True)
    exam_type: Mapped[str] = mapped_column(String(32), nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="DRAFT", index=True)
    start_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    end_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    duration_minutes: Mapped[int] = mapped_column(Integer, nullable=False)
    total_marks: Mapped[float] = mapped_column(Float, nullable=False)
    passing_marks: Mapped[float] = mapped_column(Float, nullable=False)
    subject_id: Mapped[str] = uuid_column(ForeignKey("subjects.id"), nullable=False, index=True)
    grade_id: Mapped[str | None] = uuid_column(ForeignKey("grades.id"), nullable=True)
    class_id: Mapped[str | None] = uuid_column(ForeignKey("classes.id"), nullable=True)
    term_id: Mapped[str | None] = uuid_column(ForeignKey("terms.id"), nullable=True, index=True)
    school_id: Mapped[str] = uuid_column(ForeignKey("schools.id"), nullable=False, index=True)
    created_by_id: Mapped[str] = uuid_column(ForeignKey("users.id"), nullable=False)
    published_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)


class ExamSession(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """One sitting of an exam in a room at a given date and time slot.

    Times are "HH:MM" strings in the school's local time.
    """

    __tablename__ = "exam_sessions"

    exam_id: Mapped[str] = uuid_column(
        ForeignKey("exams.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    session_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    start_time: Mapped[str] = mapped_column(String(5), nullable=False)
    end_time: Mapped[str] = mapped_column(String(5), nullable=False)
    room_id: Mapped[str | None] = uuid_column(ForeignKey("rooms.id"), nullable=True)
    invigilator_id: Mapped[str | None] = uuid_column(ForeignKey("teachers.id"), nullable=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="SCHEDULED")
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    school_id: Mapped[str] = uuid_column(ForeignKey("schools.id"), nullable=False, index=True)
