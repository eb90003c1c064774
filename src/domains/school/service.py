# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""School service for the tenant registry.

This module provides the SchoolService that handles:
- School creation and verification by super admins
- Scoped school listing and lookup

Staff of an unverified school cannot log in, so verification is what opens
a school for use.

Example:
    >>> school_service = SchoolService(db_session)
    >>> school = await school_service.create_school(actor, request)
    >>> school = await school_service.verify_school(actor, school.id)
"""

import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.exceptions import ConflictError, NotFoundError, PermissionDeniedError, ServiceError
from src.domains.tenancy import Actor, resolve_tenant_scope
from src.infrastructure.database.models import School
from src.infrastructure.database.models.base import new_uuid
from src.infrastructure.database.queries import fetch_page
from src.models.school import SchoolCreateRequest
from src.utils.datetime import utc_now
from src.utils.pagination import PageParams

logger = logging.getLogger(__name__)


class SchoolServiceError(ServiceError):
    """Base exception for school service errors."""

    pass


class SchoolNotFoundError(SchoolServiceError, NotFoundError):
    """Raised when a school is not found."""

    pass


class SchoolNameExistsError(SchoolServiceError, ConflictError):
    """Raised when trying to create a school with an existing name."""

    pass


class SchoolPermissionError(SchoolServiceError, PermissionDeniedError):
    """Raised when a non super admin manages schools."""

    pass


class SchoolService:
    """Service for managing schools.

    Attributes:
        _db: Async database session.

    Example:
        >>> service = SchoolService(db)
        >>> schools, total = await service.list_schools(actor, PageParams())
    """

    def __init__(self, db: AsyncSession) -> None:
        """Initialize the school service.

        Args:
            db: Async database session.
        """
        self._db = db

    async def create_school(self, actor: Actor, request: SchoolCreateRequest) -> School:
        """Create a new school.

        The tenant_id defaults to the school's own id.

        Args:
            actor: The caller, must be a super admin.
            request: School creation request.

        Returns:
            Created school.

        Raises:
            SchoolPermissionError: If the caller is not a super admin.
            SchoolNameExistsError: If a school with the name exists.
        """
        self._require_super_admin(actor)

        existing = await self._db.execute(select(School.id).where(School.name == request.name))
        if existing.scalar_one_or_none() is not None:
            raise SchoolNameExistsError("School with this name already exists")

        school_id = new_uuid()
        school = School(
            id=school_id,
            name=request.name,
            address=request.address,
            city=request.city,
            email=request.email,
            phone=request.phone,
            tenant_id=str(request.tenant_id) if request.tenant_id else school_id,
            is_verified=request.is_verified,
            verified_at=utc_now() if request.is_verified else None,
        )
        self._db.add(school)
        try:
            await self._db.commit()
        except IntegrityError:
            await self._db.rollback()
            raise SchoolNameExistsError("School with this name already exists")
        await self._db.refresh(school)

        logger.info("School created: %s (name=%s, by=%s)", school.id, school.name, actor.id)
        return school

    async def verify_school(self, actor: Actor, school_id: str) -> School:
        """Mark a school verified so its staff can log in.

        Verifying an already verified school keeps the original timestamp.
        """
        self._require_super_admin(actor)
        school = await self._get_by_id(str(school_id))

        if not school.is_verified:
            school.is_verified = True
            school.verified_at = utc_now()
            await self._db.commit()
            await self._db.refresh(school)
            logger.info("School verified: %s (by=%s)", school.id, actor.id)

        return school

    async def list_schools(
        self,
        actor: Actor,
        params: PageParams,
        *,
        search: str | None = None,
        is_verified: bool | None = None,
    ) -> tuple[list[School], int]:
        """List schools visible to the caller.

        Returns:
            Tuple of (schools, total count).
        """
        scope = await resolve_tenant_scope(self._db, actor)
        stmt = scope.apply(select(School), School, school_column="id")

        if search:
            stmt = stmt.where(School.name.ilike(f"%{search}%"))
        if is_verified is not None:
            stmt = stmt.where(School.is_verified.is_(is_verified))

        return await fetch_page(self._db, stmt, params, School.name.asc())

    async def get_school(self, actor: Actor, school_id: str) -> School:
        """Get a school the caller can see.

        Raises:
            SchoolNotFoundError: If missing or outside the caller's scope.
        """
        scope = await resolve_tenant_scope(self._db, actor)
        if not scope.allows_school(str(school_id)):
            raise SchoolNotFoundError("School not found")
        return await self._get_by_id(str(school_id))

    async def _get_by_id(self, school_id: str) -> School:
        school = await self._db.get(School, school_id)
        if school is None:
            raise SchoolNotFoundError("School not found")
        return school

    @staticmethod
    def _require_super_admin(actor: Actor) -> None:
        if not actor.is_super_admin:
            raise SchoolPermissionError("Only super admins can manage schools")
