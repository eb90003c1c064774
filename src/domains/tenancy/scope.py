# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Role-based tenant scoping for queries.

Every list and lookup query is narrowed by a TenantScope derived from the
caller's role and identity claims:

- SUPER_ADMIN: no restriction, optionally narrowed to one requested school
- SCHOOL_ADMIN / PRINCIPAL: rows of the caller's school
- TEACHER: rows of the caller's school; owned resources additionally
  require owner == caller
- PARENT: rows of the schools where the caller has a child; class-scoped
  resources additionally require a class containing one of the caller's
  children, unless the row is marked school-wide
- any other role: nothing

build_tenant_scope() is pure. resolve_tenant_scope() performs the single
lookup needed for parents. Scopes are rebuilt on every request.

Example:
    scope = await resolve_tenant_scope(db, actor, requested_school_id)
    stmt = scope.apply(
        select(Assignment),
        Assignment,
        owner_column="teacher_id",
        class_column="class_id",
        school_wide=Assignment.assignment_type == AssignmentType.CLASS_WIDE,
    )
"""

from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any

from sqlalchemy import ColumnElement, Select, false, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.exceptions import NotFoundError
from src.infrastructure.database.models import School, Student
from src.models.common import Role


@dataclass(frozen=True)
class Actor:
    """Identity of the caller a request runs on behalf of.

    Attributes:
        id: User ID.
        role: User role.
        school_id: School of a staff user, None for SUPER_ADMIN and PARENT.
        tenant_id: Tenant grouping of the school.
        approval_status: Approval state for principals and teachers.
    """

    id: str
    role: str
    school_id: str | None = None
    tenant_id: str | None = None
    approval_status: str | None = None

    @property
    def is_super_admin(self) -> bool:
        return self.role == Role.SUPER_ADMIN

    @property
    def is_parent(self) -> bool:
        return self.role == Role.PARENT

    @property
    def is_teacher(self) -> bool:
        return self.role == Role.TEACHER

    def has_any_role(self, *roles: str) -> bool:
        return self.role in roles


@dataclass(frozen=True)
class TenantScope:
    """Row visibility for one caller.

    Attributes:
        role: Caller role.
        user_id: Caller user ID.
        school_ids: Visible schools. None means every school; an empty
            set means none.
    """

    role: str
    user_id: str
    school_ids: frozenset[str] | None

    @property
    def is_unrestricted(self) -> bool:
        return self.school_ids is None

    @property
    def is_empty(self) -> bool:
        return self.school_ids is not None and not self.school_ids

    def allows_school(self, school_id: str | None) -> bool:
        """Check whether a row of the given school is visible."""
        if self.school_ids is None:
            return True
        return school_id is not None and str(school_id) in self.school_ids

    def school_clause(self, column: Any) -> ColumnElement[bool] | None:
        """Predicate restricting a school_id column, or None for no restriction."""
        if self.school_ids is None:
            return None
        if not self.school_ids:
            return false()
        return column.in_(sorted(self.school_ids))

    def clauses(
        self,
        model: Any,
        *,
        school_column: str = "school_id",
        owner_column: str | None = None,
        class_column: str | None = None,
        school_wide: ColumnElement[bool] | None = None,
    ) -> list[ColumnElement[bool]]:
        """Build the predicates restricting a model to this scope.

        Args:
            model: ORM model class being queried.
            school_column: Attribute holding the tenant key.
            owner_column: Attribute identifying the owning teacher, for
                resources teachers only see when they own them.
            class_column: Attribute holding the class, for resources
                parents only see through their children's classes.
            school_wide: Predicate marking rows visible to every parent
                of the school regardless of class.

        Returns:
            List of predicates to AND into the query's where clause.
        """
        result: list[ColumnElement[bool]] = []

        school = self.school_clause(getattr(model, school_column))
        if school is not None:
            result.append(school)
        if self.is_empty:
            return result

        if self.role == Role.TEACHER and owner_column:
            result.append(getattr(model, owner_column) == self.user_id)

        if self.role == Role.PARENT and class_column:
            children_classes = select(Student.class_id).where(
                Student.parent_id == self.user_id,
                Student.class_id.is_not(None),
            )
            visible = getattr(model, class_column).in_(children_classes)
            if school_wide is not None:
                visible = or_(visible, school_wide)
            result.append(visible)

        return result

    def apply(self, stmt: Select, model: Any, **kwargs: Any) -> Select:
        """Return stmt narrowed to this scope. See clauses() for kwargs."""
        return stmt.where(*self.clauses(model, **kwargs))


def build_tenant_scope(
    actor: Actor,
    *,
    parent_school_ids: Iterable[str] = (),
    requested_school_id: str | None = None,
) -> TenantScope:
    """Derive the tenant scope for a caller.

    Args:
        actor: The caller.
        parent_school_ids: For parents, schools where they have a child.
        requested_school_id: Optional explicit school filter. For a
            SUPER_ADMIN it narrows the scope; for anyone else it can only
            intersect with what they already see.

    Returns:
        The caller's TenantScope. Unrecognised roles get an empty scope.
    """
    requested = {str(requested_school_id)} if requested_school_id else None

    if actor.role == Role.SUPER_ADMIN:
        return TenantScope(
            role=actor.role,
            user_id=actor.id,
            school_ids=frozenset(requested) if requested else None,
        )

    if actor.role in (Role.SCHOOL_ADMIN, Role.PRINCIPAL, Role.TEACHER):
        visible = {str(actor.school_id)} if actor.school_id else set()
    elif actor.role == Role.PARENT:
        visible = {str(s) for s in parent_school_ids}
    else:
        visible = set()

    if requested is not None:
        visible &= requested

    return TenantScope(role=actor.role, user_id=actor.id, school_ids=frozenset(visible))


async def get_parent_school_ids(db: AsyncSession, parent_id: str) -> set[str]:
    """Schools where the parent has at least one child."""
    result = await db.execute(
        select(Student.school_id).where(Student.parent_id == parent_id).distinct()
    )
    return {str(school_id) for school_id in result.scalars().all()}


async def get_parent_student_ids(db: AsyncSession, parent_id: str) -> set[str]:
    """IDs of the parent's children."""
    result = await db.execute(select(Student.id).where(Student.parent_id == parent_id))
    return {str(student_id) for student_id in result.scalars().all()}


async def resolve_tenant_scope(
    db: AsyncSession,
    actor: Actor,
    requested_school_id: str | None = None,
) -> TenantScope:
    """Build the caller's scope, fetching child schools for parents.

    Args:
        db: Database session.
        actor: The caller.
        requested_school_id: Optional explicit school filter.

    Returns:
        The caller's TenantScope.
    """
    parent_school_ids: set[str] = set()
    if actor.role == Role.PARENT:
        parent_school_ids = await get_parent_school_ids(db, actor.id)

    return build_tenant_scope(
        actor,
        parent_school_ids=parent_school_ids,
        requested_school_id=requested_school_id,
    )


class SchoolAccessError(NotFoundError):
    """Raised when a write targets a school outside the caller's scope."""

    pass


async def resolve_target_school(
    db: AsyncSession,
    actor: Actor,
    requested_school_id: str | None = None,
) -> str:
    """Pick the school a new row is written to.

    Staff write to their own school; a differing explicit school_id is
    refused. Super admins must name an existing school.

    Raises:
        SchoolAccessError: If no school can be resolved for the caller.
    """
    requested = str(requested_school_id) if requested_school_id else None

    if actor.is_super_admin:
        if requested and await db.get(School, requested) is not None:
            return requested
        raise SchoolAccessError("School not found or access denied")

    if actor.role in (Role.SCHOOL_ADMIN, Role.PRINCIPAL, Role.TEACHER) and actor.school_id:
        if requested is None or requested == str(actor.school_id):
            return str(actor.school_id)

    raise SchoolAccessError("School not found or access denied")
