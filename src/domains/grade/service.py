# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Grade level service.

Grades are the year levels of a school (e.g. "Grade 5", level 5). Classes
and students point at a grade, so a grade still in use cannot be deleted.
"""

import logging

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.exceptions import ConflictError, DependentRecordsError, NotFoundError, ServiceError
from src.domains.tenancy import Actor, resolve_target_school, resolve_tenant_scope
from src.infrastructure.database.models import Class, Grade, Student
from src.infrastructure.database.queries import fetch_page
from src.models.academic import GradeCreateRequest, GradeUpdateRequest
from src.utils.pagination import PageParams

logger = logging.getLogger(__name__)


class GradeServiceError(ServiceError):
    """Base exception for grade service errors."""

    pass


class GradeNotFoundError(GradeServiceError, NotFoundError):
    pass


class GradeLevelExistsError(GradeServiceError, ConflictError):
    pass


class GradeInUseError(GradeServiceError, DependentRecordsError):
    pass


class GradeService:
    """CRUD for school grade levels, scoped to the caller's school."""

    def __init__(self, db: AsyncSession) -> None:
        self._db = db

    async def list_grades(
        self,
        actor: Actor,
        params: PageParams,
        school_id: str | None = None,
    ) -> tuple[list[Grade], int]:
        scope = await resolve_tenant_scope(self._db, actor, school_id)
        stmt = scope.apply(select(Grade), Grade)
        grades, total = await fetch_page(self._db, stmt, params, Grade.level.asc(), Grade.name.asc())

        logger.info("Grades retrieved: user=%s, page=%d, total=%d", actor.id, params.page, total)
        return grades, total

    async def get_grade(self, actor: Actor, grade_id: str) -> Grade:
        scope = await resolve_tenant_scope(self._db, actor)
        result = await self._db.execute(
            scope.apply(select(Grade).where(Grade.id == str(grade_id)), Grade)
        )
        grade = result.scalar_one_or_none()
        if grade is None:
            raise GradeNotFoundError("Grade not found")
        return grade

    async def create_grade(self, actor: Actor, request: GradeCreateRequest) -> Grade:
        school_id = await resolve_target_school(self._db, actor, request.school_id)
        await self._ensure_level_free(school_id, request.level)

        grade = Grade(name=request.name, level=request.level, school_id=school_id)
        self._db.add(grade)
        await self._db.commit()
        await self._db.refresh(grade)

        logger.info("Grade created: %s (level=%d, school=%s)", grade.id, grade.level, school_id)
        return grade

    async def update_grade(
        self,
        actor: Actor,
        grade_id: str,
        request: GradeUpdateRequest,
    ) -> Grade:
        grade = await self.get_grade(actor, grade_id)

        if request.level is not None and request.level != grade.level:
            await self._ensure_level_free(grade.school_id, request.level)
            grade.level = request.level
        if request.name is not None:
            grade.name = request.name

        await self._db.commit()
        await self._db.refresh(grade)

        logger.info("Grade updated: %s", grade.id)
        return grade

    async def delete_grade(self, actor: Actor, grade_id: str) -> None:
        """Delete a grade that no class or student references.

        Raises:
            GradeNotFoundError: If missing or out of scope.
            GradeInUseError: If classes or students reference it.
        """
        grade = await self.get_grade(actor, grade_id)

        for model in (Class, Student):
            result = await self._db.execute(
                select(func.count(model.id)).where(model.grade_id == grade.id)
            )
            if result.scalar():
                raise GradeInUseError("Cannot delete grade with existing classes or students")

        await self._db.delete(grade)
        await self._db.commit()

        logger.info("Grade deleted: %s", grade_id)

    async def _ensure_level_free(self, school_id: str, level: int) -> None:
        result = await self._db.execute(
            select(Grade.id).where(Grade.school_id == school_id, Grade.level == level)
        )
        if result.first() is not None:
            raise GradeLevelExistsError("Grade with this level already exists in the school")
