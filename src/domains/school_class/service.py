# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Class (homeroom) service.

This module provides the ClassService that handles:
- Class CRUD within a school
- Grade and supervising teacher references, checked against the class's school
- Enrollment counts, used to keep capacity above the number of students

A class still referenced by students, lessons, assignments or exams cannot
be deleted.

Example:
    >>> class_service = ClassService(db_session)
    >>> klass = await class_service.create_class(actor, request)
"""

import logging

from sqlalchemy import func, select
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
    Assignment,
    Class,
    Exam,
    Grade,
    Lesson,
    Student,
    Teacher,
)
from src.infrastructure.database.queries import fetch_page
from src.models.academic import (
    ClassCreateRequest,
    ClassDetail,
    ClassResponse,
    ClassUpdateRequest,
)
from src.utils.pagination import PageParams

logger = logging.getLogger(__name__)


class ClassServiceError(ServiceError):
    """Base exception for class service errors."""

    pass


class ClassNotFoundError(ClassServiceError, NotFoundError):
    pass


class ClassNameExistsError(ClassServiceError, ConflictError):
    """Raised when a school already has a class with the name."""

    pass


class ClassReferenceNotFoundError(ClassServiceError, NotFoundError):
    """Raised when the grade or supervisor is not in the class's school."""

    pass


class InvalidClassError(ClassServiceError, ValidationFailedError):
    pass


class ClassInUseError(ClassServiceError, DependentRecordsError):
    pass


class ClassService:
    """Service for managing the classes of a school.

    Attributes:
        _db: Async database session.
    """

    def __init__(self, db: AsyncSession) -> None:
        self._db = db

    async def list_classes(
        self,
        actor: Actor,
        params: PageParams,
        school_id: str | None = None,
        grade_id: str | None = None,
    ) -> tuple[list[ClassDetail], int]:
        """List classes in the caller's scope, by name.

        Args:
            actor: The caller.
            params: Page parameters.
            school_id: Optional school filter.
            grade_id: Optional grade filter.

        Returns:
            Tuple of (classes with enrollment counts, total count).
        """
        scope = await resolve_tenant_scope(self._db, actor, school_id)
        stmt = scope.apply(select(Class), Class)
        if grade_id:
            stmt = stmt.where(Class.grade_id == str(grade_id))

        classes, total = await fetch_page(self._db, stmt, params, Class.name.asc())
        details = [await self._to_detail(klass) for klass in classes]

        logger.info("Classes retrieved: user=%s, page=%d, total=%d", actor.id, params.page, total)
        return details, total

    async def get_class(self, actor: Actor, class_id: str) -> ClassDetail:
        klass = await self._get_scoped(actor, class_id, "Class not found")
        return await self._to_detail(klass)

    async def create_class(self, actor: Actor, request: ClassCreateRequest) -> ClassDetail:
        """Create a class.

        Raises:
            SchoolAccessError: If the target school is outside the scope.
            ClassNameExistsError: If the name is taken in the school.
            ClassReferenceNotFoundError: If the grade or supervisor is not
                in the school.
        """
        school_id = await resolve_target_school(self._db, actor, request.school_id)
        await self._ensure_name_free(school_id, request.name)
        await self._check_references(school_id, request.grade_id, request.supervisor_id)

        klass = Class(
            name=request.name,
            capacity=request.capacity,
            school_id=school_id,
            grade_id=str(request.grade_id) if request.grade_id else None,
            supervisor_id=str(request.supervisor_id) if request.supervisor_id else None,
        )
        self._db.add(klass)
        await self._db.commit()
        await self._db.refresh(klass)

        logger.info("Class created: %s (name=%s, school=%s)", klass.id, klass.name, school_id)
        return await self._to_detail(klass)

    async def update_class(
        self,
        actor: Actor,
        class_id: str,
        request: ClassUpdateRequest,
    ) -> ClassDetail:
        """Update a class.

        Raises:
            ClassNotFoundError: If missing or out of scope.
            ClassNameExistsError: If the new name is taken in the school.
            ClassReferenceNotFoundError: If a new grade or supervisor is not
                in the school.
            InvalidClassError: If the capacity would drop below enrollment.
        """
        klass = await self._get_scoped(actor, class_id, "Class not found or access denied")
        changes = request.model_dump(exclude_unset=True)

        if changes.get("name") and changes["name"] != klass.name:
            await self._ensure_name_free(klass.school_id, changes["name"], exclude_id=klass.id)
        await self._check_references(
            klass.school_id, changes.get("grade_id"), changes.get("supervisor_id")
        )
        if changes.get("capacity") is not None:
            if changes["capacity"] < await self._student_count(klass.id):
                raise InvalidClassError(
                    "Capacity cannot be less than the number of enrolled students"
                )

        for field, value in changes.items():
            if field in ("name", "capacity") and value is None:
                continue
            if field in ("grade_id", "supervisor_id") and value is not None:
                value = str(value)
            setattr(klass, field, value)

        await self._db.commit()
        await self._db.refresh(klass)

        logger.info("Class updated: %s", klass.id)
        return await self._to_detail(klass)

    async def delete_class(self, actor: Actor, class_id: str) -> None:
        """Delete a class that nothing references.

        Raises:
            ClassNotFoundError: If missing or out of scope.
            ClassInUseError: If students, lessons, assignments or exams use it.
        """
        klass = await self._get_scoped(actor, class_id, "Class not found or access denied")

        for model in (Student, Lesson, Assignment, Exam):
            result = await self._db.execute(
                select(func.count(model.id)).where(model.class_id == klass.id)
            )
            if result.scalar():
                raise ClassInUseError(
                    "Cannot delete class with existing students, lessons, assignments, or exams"
                )

        await self._db.delete(klass)
        await self._db.commit()

        logger.info("Class deleted: %s", class_id)

    async def _get_scoped(self, actor: Actor, class_id: str, message: str) -> Class:
        scope = await resolve_tenant_scope(self._db, actor)
        result = await self._db.execute(
            scope.apply(select(Class).where(Class.id == str(class_id)), Class)
        )
        klass = result.scalar_one_or_none()
        if klass is None:
            raise ClassNotFoundError(message)
        return klass

    async def _ensure_name_free(
        self,
        school_id: str,
        name: str,
        exclude_id: str | None = None,
    ) -> None:
        stmt = select(Class.id).where(Class.school_id == school_id, Class.name == name)
        if exclude_id:
            stmt = stmt.where(Class.id != exclude_id)
        if (await self._db.execute(stmt)).first() is not None:
            raise ClassNameExistsError("Class with this name already exists in the school")

    async def _check_references(self, school_id: str, grade_id, supervisor_id) -> None:
        if grade_id is not None:
            grade = await self._db.get(Grade, str(grade_id))
            if grade is None or grade.school_id != school_id:
                raise ClassReferenceNotFoundError("Grade not found")
        if supervisor_id is not None:
            teacher = await self._db.get(Teacher, str(supervisor_id))
            if teacher is None or teacher.school_id != school_id:
                raise ClassReferenceNotFoundError("Teacher not found or access denied")

    async def _student_count(self, class_id: str) -> int:
        result = await self._db.execute(
            select(func.count(Student.id)).where(Student.class_id == class_id)
        )
        return result.scalar() or 0

    async def _to_detail(self, klass: Class) -> ClassDetail:
        return ClassDetail(
            **ClassResponse.model_validate(klass).model_dump(),
            student_count=await self._student_count(klass.id),
        )
