# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Lesson service for the weekly class timetable.

This module provides the LessonService that handles:
- Lesson CRUD within a school
- Subject, class and teacher references, all from the lesson's school
- Weekly slot conflicts for the class and for the teacher

A lesson occupies [start_time, end_time) on its day; two lessons conflict
when their ranges overlap on the same day.

Example:
    >>> lesson_service = LessonService(db_session)
    >>> lesson = await lesson_service.create_lesson(actor, request)
"""

import logging

from sqlalchemy import case, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.exceptions import ConflictError, NotFoundError, ServiceError, ValidationFailedError
from src.domains.tenancy import Actor, resolve_tenant_scope
from src.infrastructure.database.models import Class, Lesson, Subject, Teacher, subject_teachers
from src.infrastructure.database.queries import fetch_page
from src.models.academic import LessonCreateRequest, LessonUpdateRequest
from src.models.common import DayOfWeek
from src.utils.pagination import PageParams

logger = logging.getLogger(__name__)

_DAY_ORDER = case(
    {day.value: index for index, day in enumerate(DayOfWeek)},
    value=Lesson.day_of_week,
)


class LessonServiceError(ServiceError):
    """Base exception for lesson service errors."""

    pass


class LessonNotFoundError(LessonServiceError, NotFoundError):
    pass


class LessonReferenceNotFoundError(LessonServiceError, NotFoundError):
    """Raised when the subject, class or teacher is not in scope."""

    pass


class InvalidLessonError(LessonServiceError, ValidationFailedError):
    pass


class LessonConflictError(LessonServiceError, ConflictError):
    """Raised when the class or teacher already has a lesson in the slot."""

    pass


class LessonService:
    """Service for managing timetable lessons.

    Attributes:
        _db: Async database session.
    """

    def __init__(self, db: AsyncSession) -> None:
        self._db = db

    async def list_lessons(
        self,
        actor: Actor,
        params: PageParams,
        *,
        school_id: str | None = None,
        class_id: str | None = None,
        teacher_id: str | None = None,
        day_of_week: DayOfWeek | None = None,
    ) -> tuple[list[Lesson], int]:
        """List lessons in timetable order.

        Parents see only the lessons of their children's classes.

        Returns:
            Tuple of (lessons, total count).
        """
        scope = await resolve_tenant_scope(self._db, actor, school_id)
        stmt = scope.apply(select(Lesson), Lesson, class_column="class_id")
        if class_id:
            stmt = stmt.where(Lesson.class_id == str(class_id))
        if teacher_id:
            stmt = stmt.where(Lesson.teacher_id == str(teacher_id))
        if day_of_week:
            stmt = stmt.where(Lesson.day_of_week == day_of_week)

        lessons, total = await fetch_page(
            self._db, stmt, params, _DAY_ORDER, Lesson.start_time.asc(), Lesson.name.asc()
        )

        logger.info("Lessons retrieved: user=%s, page=%d, total=%d", actor.id, params.page, total)
        return lessons, total

    async def get_lesson(self, actor: Actor, lesson_id: str) -> Lesson:
        """Get a lesson.

        Raises:
            LessonNotFoundError: If missing or out of scope.
        """
        scope = await resolve_tenant_scope(self._db, actor)
        result = await self._db.execute(
            scope.apply(
                select(Lesson).where(Lesson.id == str(lesson_id)),
                Lesson,
                class_column="class_id",
            )
        )
        lesson = result.scalar_one_or_none()
        if lesson is None:
            raise LessonNotFoundError("Lesson not found")
        return lesson

    async def create_lesson(self, actor: Actor, request: LessonCreateRequest) -> Lesson:
        """Schedule a lesson of a subject for a class.

        The school is taken from the subject, which must be visible to the
        caller. The class and teacher must belong to the same school and
        the teacher must teach the subject.

        Raises:
            LessonReferenceNotFoundError: If a reference is missing or out
                of scope.
            InvalidLessonError: If the times are inverted or the teacher
                does not teach the subject.
            LessonConflictError: If the class or teacher is already booked.
        """
        subject = await self._scoped_subject(actor, request.subject_id)
        klass = await self._db.get(Class, str(request.class_id))
        if klass is None or klass.school_id != subject.school_id:
            raise LessonReferenceNotFoundError("Class not found")
        await self._check_teacher(subject, request.teacher_id)
        self._validate_times(request.start_time, request.end_time)

        await self._check_slot(
            request.day_of_week,
            request.start_time,
            request.end_time,
            class_id=klass.id,
            teacher_id=str(request.teacher_id),
        )

        lesson = Lesson(
            name=request.name,
            day_of_week=request.day_of_week,
            start_time=request.start_time,
            end_time=request.end_time,
            subject_id=subject.id,
            class_id=klass.id,
            teacher_id=str(request.teacher_id),
            school_id=subject.school_id,
        )
        self._db.add(lesson)
        await self._db.commit()
        await self._db.refresh(lesson)

        logger.info(
            "Lesson created: %s (class=%s, %s %s-%s)",
            lesson.id,
            klass.id,
            lesson.day_of_week,
            lesson.start_time,
            lesson.end_time,
        )
        return lesson

    async def update_lesson(
        self,
        actor: Actor,
        lesson_id: str,
        request: LessonUpdateRequest,
    ) -> Lesson:
        """Move, rename or reassign a lesson.

        Raises:
            LessonNotFoundError: If missing or out of scope.
            LessonReferenceNotFoundError: If the new teacher is not in the school.
            InvalidLessonError: If the times are inverted or the teacher
                does not teach the subject.
            LessonConflictError: If the new slot is taken.
        """
        lesson = await self.get_lesson(actor, lesson_id)
        changes = {k: v for k, v in request.model_dump(exclude_unset=True).items() if v is not None}

        if "teacher_id" in changes:
            subject = await self._db.get(Subject, lesson.subject_id)
            await self._check_teacher(subject, changes["teacher_id"])
            changes["teacher_id"] = str(changes["teacher_id"])

        for field, value in changes.items():
            setattr(lesson, field, value)
        self._validate_times(lesson.start_time, lesson.end_time)

        if changes.keys() & {"day_of_week", "start_time", "end_time", "teacher_id"}:
            await self._check_slot(
                lesson.day_of_week,
                lesson.start_time,
                lesson.end_time,
                class_id=lesson.class_id,
                teacher_id=lesson.teacher_id,
                exclude_id=lesson.id,
            )

        await self._db.commit()
        await self._db.refresh(lesson)

        logger.info("Lesson updated: %s", lesson.id)
        return lesson

    async def delete_lesson(self, actor: Actor, lesson_id: str) -> None:
        lesson = await self.get_lesson(actor, lesson_id)

        await self._db.delete(lesson)
        await self._db.commit()

        logger.info("Lesson deleted: %s", lesson_id)

    async def _scoped_subject(self, actor: Actor, subject_id) -> Subject:
        scope = await resolve_tenant_scope(self._db, actor)
        result = await self._db.execute(
            scope.apply(select(Subject).where(Subject.id == str(subject_id)), Subject)
        )
        subject = result.scalar_one_or_none()
        if subject is None:
            raise LessonReferenceNotFoundError("Subject not found or access denied")
        return subject

    async def _check_teacher(self, subject: Subject, teacher_id) -> None:
        teacher = await self._db.get(Teacher, str(teacher_id))
        if teacher is None or teacher.school_id != subject.school_id:
            raise LessonReferenceNotFoundError("Teacher not found or access denied")

        assigned = await self._db.execute(
            select(subject_teachers.c.teacher_id).where(
                subject_teachers.c.subject_id == subject.id,
                subject_teachers.c.teacher_id == teacher.id,
            )
        )
        if assigned.first() is None:
            raise InvalidLessonError("Teacher is not assigned to this subject")

    @staticmethod
    def _validate_times(start_time: str | None, end_time: str | None) -> None:
        if start_time and end_time and end_time <= start_time:
            raise InvalidLessonError("End time must be after start time")

    async def _check_slot(
        self,
        day_of_week: str,
        start_time: str,
        end_time: str,
        *,
        class_id: str,
        teacher_id: str,
        exclude_id: str | None = None,
    ) -> None:
        overlapping = select(Lesson.id).where(
            Lesson.day_of_week == day_of_week,
            Lesson.start_time < end_time,
            Lesson.end_time > start_time,
        )
        if exclude_id:
            overlapping = overlapping.where(Lesson.id != exclude_id)

        result = await self._db.execute(overlapping.where(Lesson.class_id == class_id))
        if result.first() is not None:
            raise LessonConflictError("Class already has a lesson at this time")

        result = await self._db.execute(overlapping.where(Lesson.teacher_id == teacher_id))
        if result.first() is not None:
            raise LessonConflictError("Teacher already has a lesson at this time")
