# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Exam service for exams and their scheduled sessions.

This module provides the ExamService that handles:
- Exam CRUD with marks and date validation
- Publishing (status PUBLISHED stamps published_at)
- Exam sessions with room capacity checks
- Room and invigilator double-booking detection

Session times are zero-padded "HH:MM" strings, so overlap checks compare
them as strings. Cancelled sessions never block a room or invigilator.

Example:
    >>> service = ExamService(db)
    >>> exam = await service.create_exam(actor, request)
    >>> session = await service.create_session(actor, exam.id, session_request)
"""

import logging
from datetime import date

from sqlalchemy import delete, func, insert, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.exceptions import (
    ConflictError,
    DependentRecordsError,
    NotFoundError,
    ServiceError,
    ValidationFailedError,
)
from src.domains.tenancy import Actor, resolve_target_school, resolve_tenant_scope
from src.infrastructure.database.models import (
    Class,
    Exam,
    ExamSession,
    Grade,
    Result,
    Room,
    Student,
    Subject,
    Teacher,
    Term,
    exam_session_students,
)
from src.infrastructure.database.queries import fetch_page
from src.models.common import ExamSessionStatus, ExamStatus
from src.models.exam import (
    ExamCreateRequest,
    ExamListItem,
    ExamSessionCreateRequest,
    ExamSessionResponse,
    ExamSessionUpdateRequest,
    ExamUpdateRequest,
    SessionStudent,
)
from src.utils.datetime import ensure_utc, utc_now
from src.utils.pagination import PageParams

logger = logging.getLogger(__name__)

# Sessions in these states can no longer be deleted
_LOCKED_SESSION_STATUSES = {ExamSessionStatus.ONGOING, ExamSessionStatus.COMPLETED}


class ExamServiceError(ServiceError):
    """Base exception for exam service errors."""

    pass


class ExamNotFoundError(ExamServiceError, NotFoundError):
    """Raised when an exam is not found in the caller's scope."""

    pass


class ExamReferenceNotFoundError(ExamServiceError, NotFoundError):
    """Raised when a referenced subject, grade, class, term, room,
    invigilator or student does not exist in the exam's school."""

    pass


class ExamSessionNotFoundError(ExamServiceError, NotFoundError):
    pass


class InvalidExamError(ExamServiceError, ValidationFailedError):
    """Raised when exam or session data breaks a business rule."""

    pass


class ExamInUseError(ExamServiceError, DependentRecordsError):
    pass


class SchedulingConflictError(ExamServiceError, ConflictError):
    """Raised when a room or invigilator is already booked."""

    pass


class ExamService:
    """Service for managing exams and exam sessions.

    Attributes:
        _db: Async database session.
    """

    def __init__(self, db: AsyncSession) -> None:
        self._db = db

    # =========================================================================
    # Exams
    # =========================================================================

    async def list_exams(
        self,
        actor: Actor,
        params: PageParams,
        *,
        subject_id: str | None = None,
        class_id: str | None = None,
        term_id: str | None = None,
        status: str | None = None,
        exam_type: str | None = None,
        school_id: str | None = None,
    ) -> tuple[list[ExamListItem], int]:
        """List exams in the caller's scope, newest first.

        Parents only see exams of their children's classes or exams not
        tied to a class, and never drafts.
        """
        scope = await resolve_tenant_scope(self._db, actor, school_id)
        stmt = scope.apply(
            select(Exam),
            Exam,
            class_column="class_id",
            school_wide=Exam.class_id.is_(None),
        )
        if actor.is_parent:
            stmt = stmt.where(Exam.status != ExamStatus.DRAFT)

        if subject_id:
            stmt = stmt.where(Exam.subject_id == subject_id)
        if class_id:
            stmt = stmt.where(Exam.class_id == class_id)
        if term_id:
            stmt = stmt.where(Exam.term_id == term_id)
        if status:
            stmt = stmt.where(Exam.status == status)
        if exam_type:
            stmt = stmt.where(Exam.exam_type == exam_type)

        exams, total = await fetch_page(self._db, stmt, params, Exam.start_date.desc())

        items = []
        for exam in exams:
            item = ExamListItem.model_validate(exam)
            item.session_count = await self._count(ExamSession, ExamSession.exam_id == exam.id)
            item.result_count = await self._count(Result, Result.exam_id == exam.id)
            items.append(item)

        logger.info("Exams retrieved: user=%s, page=%d, total=%d", actor.id, params.page, total)
        return items, total

    async def get_exam(self, actor: Actor, exam_id: str, message: str = "Exam not found") -> Exam:
        """Get an exam in the caller's scope.

        Raises:
            ExamNotFoundError: If missing or out of scope.
        """
        scope = await resolve_tenant_scope(self._db, actor)
        stmt = scope.apply(
            select(Exam).where(Exam.id == str(exam_id)),
            Exam,
            class_column="class_id",
            school_wide=Exam.class_id.is_(None),
        )
        if actor.is_parent:
            stmt = stmt.where(Exam.status != ExamStatus.DRAFT)

        exam = (await self._db.execute(stmt)).scalar_one_or_none()
        if exam is None:
            raise ExamNotFoundError(message)
        return exam

    async def create_exam(self, actor: Actor, request: ExamCreateRequest) -> Exam:
        """Create an exam in the caller's school.

        Raises:
            SchoolAccessError: If the school is outside the caller's scope.
            ExamReferenceNotFoundError: If subject, grade, class or term is
                not in the school.
            InvalidExamError: If marks or dates are inconsistent.
        """
        school_id = await resolve_target_school(self._db, actor, request.school_id)

        await self._require(Subject, request.subject_id, school_id, "Subject not found")
        if request.grade_id:
            await self._require(Grade, request.grade_id, school_id, "Grade not found")
        if request.class_id:
            await self._require(Class, request.class_id, school_id, "Class not found")
        if request.term_id:
            await self._require(Term, request.term_id, school_id, "Term not found")

        self._validate_marks(request.total_marks, request.passing_marks)
        self._validate_dates(request.start_date, request.end_date)

        exam = Exam(
            title=request.title,
            description=request.description,
            instructions=request.instructions,
            exam_type=request.exam_type,
            status=ExamStatus.DRAFT,
            start_date=request.start_date,
            end_date=request.end_date,
            duration_minutes=request.duration_minutes,
            total_marks=request.total_marks,
            passing_marks=request.passing_marks,
            subject_id=str(request.subject_id),
            grade_id=str(request.grade_id) if request.grade_id else None,
            class_id=str(request.class_id) if request.class_id else None,
            term_id=str(request.term_id) if request.term_id else None,
            school_id=school_id,
            created_by_id=actor.id,
        )
        self._db.add(exam)
        await self._db.commit()
        await self._db.refresh(exam)

        logger.info("Exam created: %s (school=%s, user=%s)", exam.id, school_id, actor.id)
        return exam

    async def update_exam(self, actor: Actor, exam_id: str, request: ExamUpdateRequest) -> Exam:
        """Update an exam. Publishing stamps published_at.

        Raises:
            ExamNotFoundError: If missing or out of scope.
            InvalidExamError: If the resulting marks or dates are inconsistent.
        """
        exam = await self.get_exam(actor, exam_id, "Exam not found or access denied")
        changes = request.model_dump(exclude_unset=True, exclude_none=True)

        self._validate_marks(
            changes.get("total_marks", exam.total_marks),
            changes.get("passing_marks", exam.passing_marks),
        )
        self._validate_dates(
            changes.get("start_date", exam.start_date),
            changes.get("end_date", exam.end_date),
        )

        for field, value in changes.items():
            setattr(exam, field, value)
        if changes.get("status") == ExamStatus.PUBLISHED:
            exam.published_at = utc_now()

        await self._db.commit()
        await self._db.refresh(exam)

        logger.info("Exam updated: %s (user=%s)", exam.id, actor.id)
        return exam

    async def delete_exam(self, actor: Actor, exam_id: str) -> None:
        """Delete an exam without sessions or results.

        Raises:
            ExamNotFoundError: If missing or out of scope.
            ExamInUseError: If sessions or results exist.
        """
        exam = await self.get_exam(actor, exam_id, "Exam not found or access denied")

        sessions = await self._count(ExamSession, ExamSession.exam_id == exam.id)
        results = await self._count(Result, Result.exam_id == exam.id)
        if sessions or results:
            raise ExamInUseError("Cannot delete exam with existing sessions or results")

        await self._db.delete(exam)
        await self._db.commit()

        logger.info("Exam deleted: %s (user=%s)", exam_id, actor.id)

    @staticmethod
    def _validate_marks(total_marks: float, passing_marks: float) -> None:
        if passing_marks > total_marks:
            raise InvalidExamError("Passing marks cannot exceed total marks")

    @staticmethod
    def _validate_dates(start_date, end_date) -> None:
        if ensure_utc(end_date) <= ensure_utc(start_date):
            raise InvalidExamError("End date must be after start date")

    # =========================================================================
    # Sessions
    # =========================================================================

    async def list_sessions(self, actor: Actor, exam_id: str) -> list[ExamSessionResponse]:
        """List the sessions of an exam by date and start time."""
        exam = await self.get_exam(actor, exam_id, "Exam not found or access denied")

        result = await self._db.execute(
            select(ExamSession)
            .where(ExamSession.exam_id == exam.id)
            .order_by(ExamSession.session_date.asc(), ExamSession.start_time.asc())
        )
        sessions = [await self.to_response(s) for s in result.scalars().all()]

        logger.info("Exam sessions retrieved: exam=%s, count=%d", exam.id, len(sessions))
        return sessions

    async def create_session(
        self,
        actor: Actor,
        exam_id: str,
        request: ExamSessionCreateRequest,
    ) -> ExamSession:
        """Schedule a session of an exam.

        Raises:
            ExamNotFoundError: If the exam is missing or out of scope.
            ExamReferenceNotFoundError: If the room, invigilator or any
                student is not in the exam's school.
            InvalidExamError: If times are inverted or the room is too small.
            SchedulingConflictError: If room or invigilator is booked.
        """
        exam = await self.get_exam(actor, exam_id, "Exam not found or access denied")
        self._validate_times(request.start_time, request.end_time)

        room = await self._require(
            Room, request.room_id, exam.school_id, "Room not found or access denied"
        )
        await self._require(
            Teacher, request.invigilator_id, exam.school_id, "Invigilator not found or access denied"
        )

        student_ids = sorted({str(s) for s in request.student_ids})
        result = await self._db.execute(
            select(Student.id).where(
                Student.id.in_(student_ids),
                Student.school_id == exam.school_id,
            )
        )
        if len(result.scalars().all()) != len(student_ids):
            raise ExamReferenceNotFoundError("Some students not found or access denied")

        if len(student_ids) > room.capacity:
            raise InvalidExamError("Room capacity exceeded")

        await self._check_availability(
            request.session_date,
            request.start_time,
            request.end_time,
            room_id=room.id,
            invigilator_id=str(request.invigilator_id),
        )

        session = ExamSession(
            exam_id=exam.id,
            session_date=request.session_date,
            start_time=request.start_time,
            end_time=request.end_time,
            room_id=room.id,
            invigilator_id=str(request.invigilator_id),
            status=ExamSessionStatus.SCHEDULED,
            notes=request.notes,
            school_id=exam.school_id,
        )
        self._db.add(session)
        await self._db.flush()

        await self._db.execute(
            insert(exam_session_students),
            [{"session_id": session.id, "student_id": sid} for sid in student_ids],
        )
        await self._db.commit()

        logger.info(
            "Exam session created: %s (exam=%s, students=%d)",
            session.id,
            exam.id,
            len(student_ids),
        )
        return session

    async def get_session(self, actor: Actor, session_id: str) -> ExamSession:
        scope = await resolve_tenant_scope(self._db, actor)
        result = await self._db.execute(
            scope.apply(select(ExamSession).where(ExamSession.id == str(session_id)), ExamSession)
        )
        session = result.scalar_one_or_none()
        if session is None:
            raise ExamSessionNotFoundError("Exam session not found or access denied")
        return session

    async def update_session(
        self,
        actor: Actor,
        session_id: str,
        request: ExamSessionUpdateRequest,
    ) -> ExamSession:
        """Reschedule or change the status of a session.

        Teachers may only update sessions they invigilate.

        Raises:
            ExamSessionNotFoundError: If missing, out of scope or, for a
                teacher, not invigilated by them.
            ExamReferenceNotFoundError: If a new room or invigilator is not
                in the school.
            SchedulingConflictError: If the new slot is booked.
        """
        session = await self.get_session(actor, session_id)
        if actor.is_teacher and session.invigilator_id != actor.id:
            raise ExamSessionNotFoundError("Exam session not found or access denied")

        changes = request.model_dump(exclude_unset=True)
        if changes.get("room_id"):
            changes["room_id"] = str(changes["room_id"])
            room = await self._require(
                Room, changes["room_id"], session.school_id, "Room not found or access denied"
            )
            enrolled = await self._count(
                exam_session_students, exam_session_students.c.session_id == session.id
            )
            if enrolled > room.capacity:
                raise InvalidExamError("Room capacity exceeded")
        if changes.get("invigilator_id"):
            changes["invigilator_id"] = str(changes["invigilator_id"])
            await self._require(
                Teacher,
                changes["invigilator_id"],
                session.school_id,
                "Invigilator not found or access denied",
            )

        for field, value in changes.items():
            if value is None and field != "notes":
                continue
            setattr(session, field, value)

        self._validate_times(session.start_time, session.end_time)

        slot_fields = {"session_date", "start_time", "end_time", "room_id", "invigilator_id", "status"}
        if slot_fields & changes.keys() and session.status != ExamSessionStatus.CANCELLED:
            await self._check_availability(
                session.session_date,
                session.start_time,
                session.end_time,
                room_id=session.room_id,
                invigilator_id=session.invigilator_id,
                exclude_id=session.id,
            )

        await self._db.commit()
        await self._db.refresh(session)

        logger.info("Exam session updated: %s (user=%s)", session.id, actor.id)
        return session

    async def delete_session(self, actor: Actor, session_id: str) -> None:
        """Delete a session that has not started.

        Raises:
            ExamSessionNotFoundError: If missing or out of scope.
            InvalidExamError: If the session is ongoing or completed.
        """
        session = await self.get_session(actor, session_id)
        if session.status in _LOCKED_SESSION_STATUSES:
            raise InvalidExamError("Cannot delete ongoing or completed exam session")

        await self._db.execute(
            delete(exam_session_students).where(exam_session_students.c.session_id == session.id)
        )
        await self._db.delete(session)
        await self._db.commit()

        logger.info("Exam session deleted: %s (user=%s)", session_id, actor.id)

    async def to_response(self, session: ExamSession) -> ExamSessionResponse:
        result = await self._db.execute(
            select(Student)
            .join(exam_session_students, exam_session_students.c.student_id == Student.id)
            .where(exam_session_students.c.session_id == session.id)
            .order_by(Student.surname, Student.name)
        )
        response = ExamSessionResponse.model_validate(session)
        response.students = [SessionStudent.model_validate(s) for s in result.scalars().all()]
        return response

    @staticmethod
    def _validate_times(start_time: str, end_time: str) -> None:
        if end_time <= start_time:
            raise InvalidExamError("End time must be after start time")

    async def _check_availability(
        self,
        session_date: date,
        start_time: str,
        end_time: str,
        *,
        room_id: str | None,
        invigilator_id: str | None,
        exclude_id: str | None = None,
    ) -> None:
        overlapping = select(ExamSession.id).where(
            ExamSession.session_date == session_date,
            ExamSession.start_time < end_time,
            ExamSession.end_time > start_time,
            ExamSession.status != ExamSessionStatus.CANCELLED,
        )
        if exclude_id:
            overlapping = overlapping.where(ExamSession.id != exclude_id)

        if room_id:
            result = await self._db.execute(overlapping.where(ExamSession.room_id == room_id))
            if result.first() is not None:
                raise SchedulingConflictError("Room is not available at this time")

        if invigilator_id:
            result = await self._db.execute(
                overlapping.where(ExamSession.invigilator_id == invigilator_id)
            )
            if result.first() is not None:
                raise SchedulingConflictError("Invigilator is not available at this time")

    async def _require(self, model, row_id, school_id: str, message: str):
        row = await self._db.get(model, str(row_id))
        if row is None or row.school_id != school_id:
            raise ExamReferenceNotFoundError(message)
        return row

    async def _count(self, target, *criteria) -> int:
        result = await self._db.execute(select(func.count()).select_from(target).where(*criteria))
        return result.scalar() or 0

