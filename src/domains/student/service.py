# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Student service.

Students never log in. Each may be linked to one parent user, and that
link is what gives the parent access to the student's school, class,
assignments and results. Staff manage students within their school;
parents can only read their own children.
"""

import logging

from sqlalchemy import delete, func, select
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
    AssignmentSubmission,
    Class,
    Grade,
    Parent,
    Result,
    Student,
    exam_session_students,
)
from src.infrastructure.database.queries import fetch_page
from src.models.academic import StudentCreateRequest, StudentUpdateRequest
from src.utils.pagination import PageParams

logger = logging.getLogger(__name__)


class StudentServiceError(ServiceError):
    """Base exception for student service errors."""

    pass


class StudentNotFoundError(StudentServiceError, NotFoundError):
    pass


class StudentReferenceNotFoundError(StudentServiceError, NotFoundError):
    """Raised when the class, grade or parent cannot be linked."""

    pass


class RegistrationNumberExistsError(StudentServiceError, ConflictError):
    pass


class ClassFullError(StudentServiceError, ValidationFailedError):
    pass


class StudentInUseError(StudentServiceError, DependentRecordsError):
    pass


class StudentService:
    """CRUD for students and their class and parent links."""

    def __init__(self, db: AsyncSession) -> None:
        self._db = db

    async def list_students(
        self,
        actor: Actor,
        params: PageParams,
        *,
        school_id: str | None = None,
        class_id: str | None = None,
        parent_id: str | None = None,
    ) -> tuple[list[Student], int]:
        """List students visible to the caller, by surname then name.

        Parents only ever see their own children, whatever the filters.
        """
        stmt = await self._scoped_select(actor, school_id)
        if class_id:
            stmt = stmt.where(Student.class_id == str(class_id))
        if parent_id:
            stmt = stmt.where(Student.parent_id == str(parent_id))

        students, total = await fetch_page(
            self._db, stmt, params, Student.surname.asc(), Student.name.asc()
        )

        logger.info("Students retrieved: user=%s, page=%d, total=%d", actor.id, params.page, total)
        return students, total

    async def get_student(self, actor: Actor, student_id: str) -> Student:
        return await self._get_scoped(actor, student_id, "Student not found")

    async def create_student(self, actor: Actor, request: StudentCreateRequest) -> Student:
        """Enroll a student, optionally in a class and linked to a parent.

        Raises:
            SchoolAccessError: If the target school is outside the scope.
            RegistrationNumberExistsError: If the number is taken in the school.
            StudentReferenceNotFoundError: If the class or grade is not in
                the school, or the parent does not exist.
            ClassFullError: If the class is at capacity.
        """
        school_id = await resolve_target_school(self._db, actor, request.school_id)
        if request.registration_number:
            await self._ensure_registration_free(school_id, request.registration_number)
        await self._check_references(
            school_id,
            class_id=request.class_id,
            grade_id=request.grade_id,
            parent_id=request.parent_id,
        )

        student = Student(
            name=request.name,
            surname=request.surname,
            registration_number=request.registration_number,
            birth_date=request.birth_date,
            school_id=school_id,
            class_id=str(request.class_id) if request.class_id else None,
            grade_id=str(request.grade_id) if request.grade_id else None,
            parent_id=str(request.parent_id) if request.parent_id else None,
        )
        self._db.add(student)
        await self._db.commit()
        await self._db.refresh(student)

        logger.info(
            "Student created: %s (school=%s, class=%s, parent=%s)",
            student.id,
            school_id,
            student.class_id,
            student.parent_id,
        )
        return student

    async def update_student(
        self,
        actor: Actor,
        student_id: str,
        request: StudentUpdateRequest,
    ) -> Student:
        """Update a student. An explicit null unlinks class, grade or parent.

        Raises:
            StudentNotFoundError: If missing or out of scope.
            RegistrationNumberExistsError: If the new number is taken.
            StudentReferenceNotFoundError: If a new link cannot be made.
            ClassFullError: If moving into a class at capacity.
        """
        student = await self._get_scoped(actor, student_id, "Student not found or access denied")
        changes = request.model_dump(exclude_unset=True)

        number = changes.get("registration_number")
        if number and number != student.registration_number:
            await self._ensure_registration_free(student.school_id, number, exclude_id=student.id)

        new_class = changes.get("class_id")
        if new_class is not None and str(new_class) == student.class_id:
            new_class = None
        await self._check_references(
            student.school_id,
            class_id=new_class,
            grade_id=changes.get("grade_id"),
            parent_id=changes.get("parent_id"),
        )

        for field, value in changes.items():
            if field in ("name", "surname") and value is None:
                continue
            if field in ("class_id", "grade_id", "parent_id") and value is not None:
                value = str(value)
            setattr(student, field, value)

        await self._db.commit()
        await self._db.refresh(student)

        logger.info("Student updated: %s", student.id)
        return student

    async def delete_student(self, actor: Actor, student_id: str) -> None:
        """Delete a student without submissions or results.

        Raises:
            StudentNotFoundError: If missing or out of scope.
            StudentInUseError: If submissions or results reference the student.
        """
        student = await self._get_scoped(actor, student_id, "Student not found or access denied")

        for model in (AssignmentSubmission, Result):
            result = await self._db.execute(
                select(func.count(model.id)).where(model.student_id == student.id)
            )
            if result.scalar():
                raise StudentInUseError(
                    "Cannot delete student with existing submissions or results"
                )

        await self._db.execute(
            delete(exam_session_students).where(exam_session_students.c.student_id == student.id)
        )
        await self._db.delete(student)
        await self._db.commit()

        logger.info("Student deleted: %s", student_id)

    async def _scoped_select(self, actor: Actor, school_id: str | None = None):
        scope = await resolve_tenant_scope(self._db, actor, school_id)
        stmt = scope.apply(select(Student), Student)
        if actor.is_parent:
            stmt = stmt.where(Student.parent_id == actor.id)
        return stmt

    async def _get_scoped(self, actor: Actor, student_id: str, message: str) -> Student:
        stmt = await self._scoped_select(actor)
        result = await self._db.execute(stmt.where(Student.id == str(student_id)))
        student = result.scalar_one_or_none()
        if student is None:
            raise StudentNotFoundError(message)
        return student

    async def _ensure_registration_free(
        self,
        school_id: str,
        number: str,
        exclude_id: str | None = None,
    ) -> None:
        stmt = select(Student.id).where(
            Student.school_id == school_id, Student.registration_number == number
        )
        if exclude_id:
            stmt = stmt.where(Student.id != exclude_id)
        if (await self._db.execute(stmt)).first() is not None:
            raise RegistrationNumberExistsError(
                "Student with this registration number already exists in the school"
            )

    async def _check_references(
        self,
        school_id: str,
        *,
        class_id=None,
        grade_id=None,
        parent_id=None,
    ) -> None:
        if class_id is not None:
            klass = await self._db.get(Class, str(class_id))
            if klass is None or klass.school_id != school_id:
                raise StudentReferenceNotFoundError("Class not found")
            enrolled = await self._db.execute(
                select(func.count(Student.id)).where(Student.class_id == klass.id)
            )
            if (enrolled.scalar() or 0) >= klass.capacity:
                raise ClassFullError("Class is full")

        if grade_id is not None:
            grade = await self._db.get(Grade, str(grade_id))
            if grade is None or grade.school_id != school_id:
                raise StudentReferenceNotFoundError("Grade not found")

        # Parents are tenant-independent; any parent account can be linked
        if parent_id is not None and await self._db.get(Parent, str(parent_id)) is None:
            raise StudentReferenceNotFoundError("Parent not found")
