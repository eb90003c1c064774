# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Subject service for school subjects and their teachers.

This module provides the SubjectService that handles:
- Subject CRUD operations within a school
- Teacher assignment to subjects
- Usage counts used to refuse deletes of subjects still in use

Example:
    >>> subject_service = SubjectService(db_session)
    >>> subject = await subject_service.create_subject(actor, request)
    >>> await subject_service.assign_teacher(actor, subject.id, teacher_id)
"""

import logging

from sqlalchemy import delete, func, insert, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.exceptions import ConflictError, DependentRecordsError, NotFoundError, ServiceError
from src.domains.tenancy import Actor, resolve_target_school, resolve_tenant_scope
from src.infrastructure.database.models import (
    Assignment,
    Exam,
    Lesson,
    Subject,
    Teacher,
    User,
    subject_teachers,
)
from src.infrastructure.database.queries import fetch_page
from src.models.academic import (
    SubjectCounts,
    SubjectCreateRequest,
    SubjectDetail,
    SubjectResponse,
    SubjectUpdateRequest,
    TeacherRef,
)
from src.utils.pagination import PageParams

logger = logging.getLogger(__name__)


class SubjectServiceError(ServiceError):
    """Base exception for subject service errors."""

    pass


class SubjectNotFoundError(SubjectServiceError, NotFoundError):
    """Raised when a subject is not found."""

    pass


class SubjectNameExistsError(SubjectServiceError, ConflictError):
    """Raised when a school already has a subject with the name."""

    pass


class SubjectInUseError(SubjectServiceError, DependentRecordsError):
    """Raised when deleting a subject with lessons, assignments or exams."""

    pass


class SubjectTeacherNotFoundError(SubjectServiceError, NotFoundError):
    """Raised when the teacher is not in the subject's school."""

    pass


class TeacherAlreadyAssignedError(SubjectServiceError, ConflictError):
    """Raised when the teacher already teaches the subject."""

    pass


class SubjectService:
    """Service for managing school subjects.

    Attributes:
        _db: Async database session.
    """

    def __init__(self, db: AsyncSession) -> None:
        """Initialize the subject service.

        Args:
            db: Async database session.
        """
        self._db = db

    async def list_subjects(
        self,
        actor: Actor,
        params: PageParams,
        school_id: str | None = None,
    ) -> tuple[list[SubjectDetail], int]:
        """List subjects in the caller's scope, by name.

        Returns:
            Tuple of (subjects with teachers and counts, total count).
        """
        scope = await resolve_tenant_scope(self._db, actor, school_id)
        stmt = scope.apply(select(Subject), Subject)

        subjects, total = await fetch_page(self._db, stmt, params, Subject.name.asc())
        details = [await self._to_detail(subject) for subject in subjects]

        logger.info("Subjects retrieved: user=%s, page=%d, total=%d", actor.id, params.page, total)
        return details, total

    async def get_subject(self, actor: Actor, subject_id: str) -> SubjectDetail:
        """Get a subject with its teachers and usage counts.

        Raises:
            SubjectNotFoundError: If missing or out of scope.
        """
        subject = await self._get_scoped(actor, subject_id, "Subject not found")
        return await self._to_detail(subject)

    async def create_subject(self, actor: Actor, request: SubjectCreateRequest) -> Subject:
        """Create a subject.

        Raises:
            SchoolAccessError: If the target school is outside the scope.
            SubjectNameExistsError: If the name is taken in the school.
        """
        school_id = await resolve_target_school(self._db, actor, request.school_id)
        await self._ensure_name_free(school_id, request.name)

        subject = Subject(
            name=request.name,
            code=request.code,
            description=request.description,
            school_id=school_id,
        )
        self._db.add(subject)
        await self._db.commit()
        await self._db.refresh(subject)

        logger.info("Subject created: %s (name=%s, school=%s)", subject.id, subject.name, school_id)
        return subject

    async def update_subject(
        self,
        actor: Actor,
        subject_id: str,
        request: SubjectUpdateRequest,
    ) -> Subject:
        """Update a subject.

        Raises:
            SubjectNotFoundError: If missing or out of scope.
            SubjectNameExistsError: If the new name is taken in the school.
        """
        subject = await self._get_scoped(actor, subject_id, "Subject not found or access denied")
        changes = request.model_dump(exclude_unset=True)

        if changes.get("name") and changes["name"] != subject.name:
            await self._ensure_name_free(subject.school_id, changes["name"], exclude_id=subject.id)

        for field, value in changes.items():
            if field == "name" and value is None:
                continue
            setattr(subject, field, value)

        await self._db.commit()
        await self._db.refresh(subject)

        logger.info("Subject updated: %s", subject.id)
        return subject

    async def delete_subject(self, actor: Actor, subject_id: str) -> None:
        """Delete a subject that nothing references.

        Raises:
            SubjectNotFoundError: If missing or out of scope.
            SubjectInUseError: If lessons, assignments or exams use it.
        """
        subject = await self._get_scoped(actor, subject_id, "Subject not found or access denied")

        counts = await self._counts(subject.id)
        if counts.lessons or counts.assignments or counts.exams:
            raise SubjectInUseError(
                "Cannot delete subject with associated lessons, assignments, or exams"
            )

        await self._db.execute(
            delete(subject_teachers).where(subject_teachers.c.subject_id == subject.id)
        )
        await self._db.delete(subject)
        await self._db.commit()

        logger.info("Subject deleted: %s", subject_id)

    async def assign_teacher(self, actor: Actor, subject_id: str, teacher_id: str) -> SubjectDetail:
        """Add a teacher of the same school to a subject.

        Raises:
            SubjectNotFoundError: If the subject is missing or out of scope.
            SubjectTeacherNotFoundError: If the teacher is not in the school.
            TeacherAlreadyAssignedError: If already assigned.
        """
        subject = await self._get_scoped(actor, subject_id, "Subject not found or access denied")

        teacher = await self._db.get(Teacher, str(teacher_id))
        if teacher is None or teacher.school_id != subject.school_id:
            raise SubjectTeacherNotFoundError("Teacher not found or access denied")

        existing = await self._db.execute(
            select(subject_teachers.c.teacher_id).where(
                subject_teachers.c.subject_id == subject.id,
                subject_teachers.c.teacher_id == teacher.id,
            )
        )
        if existing.first() is not None:
            raise TeacherAlreadyAssignedError("Teacher is already assigned to this subject")

        await self._db.execute(
            insert(subject_teachers).values(subject_id=subject.id, teacher_id=teacher.id)
        )
        await self._db.commit()

        logger.info("Teacher assigned to subject: subject=%s, teacher=%s", subject.id, teacher.id)
        return await self._to_detail(subject)

    async def remove_teacher(self, actor: Actor, subject_id: str, teacher_id: str) -> SubjectDetail:
        """Remove a teacher from a subject.

        Raises:
            SubjectNotFoundError: If the subject is missing or out of scope.
        """
        subject = await self._get_scoped(actor, subject_id, "Subject not found or access denied")

        await self._db.execute(
            delete(subject_teachers).where(
                subject_teachers.c.subject_id == subject.id,
                subject_teachers.c.teacher_id == str(teacher_id),
            )
        )
        await self._db.commit()

        logger.info("Teacher removed from subject: subject=%s, teacher=%s", subject.id, teacher_id)
        return await self._to_detail(subject)

    async def _get_scoped(self, actor: Actor, subject_id: str, message: str) -> Subject:
        scope = await resolve_tenant_scope(self._db, actor)
        result = await self._db.execute(
            scope.apply(select(Subject).where(Subject.id == str(subject_id)), Subject)
        )
        subject = result.scalar_one_or_none()
        if subject is None:
            raise SubjectNotFoundError(message)
        return subject

    async def _ensure_name_free(
        self,
        school_id: str,
        name: str,
        exclude_id: str | None = None,
    ) -> None:
        stmt = select(Subject.id).where(Subject.school_id == school_id, Subject.name == name)
        if exclude_id:
            stmt = stmt.where(Subject.id != exclude_id)
        if (await self._db.execute(stmt)).first() is not None:
            raise SubjectNameExistsError("Subject with this name already exists in the school")

    async def _counts(self, subject_id: str) -> SubjectCounts:
        counts = {}
        for key, model in (("lessons", Lesson), ("assignments", Assignment), ("exams", Exam)):
            result = await self._db.execute(
                select(func.count(model.id)).where(model.subject_id == subject_id)
            )
            counts[key] = result.scalar() or 0
        return SubjectCounts(**counts)

    async def _to_detail(self, subject: Subject) -> SubjectDetail:
        result = await self._db.execute(
            select(User.id, User.name, User.surname)
            .join(subject_teachers, subject_teachers.c.teacher_id == User.id)
            .where(subject_teachers.c.subject_id == subject.id)
            .order_by(User.name)
        )
        teachers = [TeacherRef(id=row.id, name=row.name, surname=row.surname) for row in result]

        return SubjectDetail(
            **SubjectResponse.model_validate(subject).model_dump(),
            teachers=teachers,
            counts=await self._counts(subject.id),
        )
