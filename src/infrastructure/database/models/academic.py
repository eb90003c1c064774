# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Academic structure models: grades, classes, students, subjects, lessons, rooms."""

from datetime import date

from sqlalchemy import (
    Column,
    Date,
    ForeignKey,
    Integer,
    String,
    Table,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column

from src.infrastructure.database.models.base import (
    Base,
    TimestampMixin,
    UUIDPrimaryKeyMixin,
    uuid_column,
)

subject_teachers = Table(
    "subject_teachers",
    Base.metadata,
    Column(
        "subject_id",
        Uuid(as_uuid=False),
        ForeignKey("subjects.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column(
        "teacher_id",
        Uuid(as_uuid=False),
        ForeignKey("teachers.id", ondelete="CASCADE"),
        primary_key=True,
    ),
)


class Grade(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """A grade level within a school (e.g. "Grade 5", level 5)."""

    __tablename__ = "grades"
    __table_args__ = (UniqueConstraint("school_id", "level", name="uq_grades_school_level"),)

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    level: Mapped[int] = mapped_column(Integer, nullable=False)
    school_id: Mapped[str] = uuid_column(ForeignKey("schools.id"), nullable=False, index=True)


class Class(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """A class (homeroom) of students, optionally supervised by a teacher."""

    __tablename__ = "classes"
    __table_args__ = (UniqueConstraint("school_id", "name", name="uq_classes_school_name"),)

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    capacity: Mapped[int] = mapped_column(Integer, nullable=False, default=30)
    school_id: Mapped[str] = uuid_column(ForeignKey("schools.id"), nullable=False, index=True)
    grade_id: Mapped[str | None] = uuid_column(ForeignKey("grades.id"), nullable=True)
    supervisor_id: Mapped[str | None] = uuid_column(ForeignKey("teachers.id"), nullable=True)


class Student(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """A student. Students do not log in; their parent acts for them."""

    __tablename__ = "students"

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    surname: Mapped[str] = mapped_column(String(100), nullable=False)
    registration_number: Mapped[str | None] = mapped_column(String(50), nullable=True)
    birth_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    school_id: Mapped[str] = uuid_column(ForeignKey("schools.id"), nullable=False, index=True)
    class_id: Mapped[str | None] = uuid_column(ForeignKey("classes.id"), nullable=True, index=True)
    grade_id: Mapped[str | None] = uuid_column(ForeignKey("grades.id"), nullable=True)
    parent_id: Mapped[str | None] = uuid_column(ForeignKey("parents.id"), nullable=True, index=True)


class Subject(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "subjects"
    __table_args__ = (UniqueConstraint("school_id", "name", name="uq_subjects_school_name"),)

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    code: Mapped[str | None] = mapped_column(String(20), nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    school_id: Mapped[str] = uuid_column(ForeignKey("schools.id"), nullable=False, index=True)


class Lesson(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """A recurring lesson of a subject taught to a class."""

    __tablename__ = "lessons"

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    day_of_week: Mapped[str | None] = mapped_column(String(10), nullable=True)
    start_time: Mapped[str | None] = mapped_column(String(5), nullable=True)
    end_time: Mapped[str | None] = mapped_column(String(5), nullable=True)
    subject_id: Mapped[str] = uuid_column(ForeignKey("subjects.id"), nullable=False, index=True)
    class_id: Mapped[str] = uuid_column(ForeignKey("classes.id"), nullable=False, index=True)
    teacher_id: Mapped[str] = uuid_column(ForeignKey("teachers.id"), nullable=False, index=True)
    school_id: Mapped[str] = uuid_column(ForeignKey("schools.id"), nullable=False, index=True)


class Room(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "rooms"

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    capacity: Mapped[int] = mapped_column(Integer, nullable=False)
    school_id: Mapped[str] = uuid_column(ForeignKey("schools.id"), nullable=False, index=True)
