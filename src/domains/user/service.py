# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""User service for account management.

This module provides the UserService that handles:
- Listing users visible to the caller
- Reading and updating accounts with self/super-admin rules
- Deactivating accounts, which also revokes their refresh tokens

Users of a school are its staff (through their profile school_id) and the
parents of its students.

Example:
    >>> user_service = UserService(db_session)
    >>> users, total = await user_service.list_users(actor, PageParams())
    >>> await user_service.delete_user(actor, user_id)
"""

import logging
from typing import Any

from sqlalchemy import ColumnElement, false, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.exceptions import (
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
    ServiceError,
    ValidationFailedError,
)
from src.domains.tenancy import Actor
from src.infrastructure.database.models import (
    DeviceToken,
    Principal,
    SchoolAdmin,
    Student,
    Teacher,
    User,
)
from src.infrastructure.database.queries import fetch_page
from src.models.auth import UserSummary
from src.models.common import Role
from src.models.user import UserResponse, UserUpdateRequest
from src.utils.datetime import utc_now
from src.utils.pagination import PageParams

logger = logging.getLogger(__name__)

_STAFF_PROFILES = (SchoolAdmin, Principal, Teacher)


class UserServiceError(ServiceError):
    """Base exception for user service errors."""

    pass


class UserNotFoundError(UserServiceError, NotFoundError):
    """Raised when a user is not found."""

    pass


class UserAccessDeniedError(UserServiceError, PermissionDeniedError):
    """Raised when the caller may not read or change the user."""

    pass


class UserAlreadyExistsError(UserServiceError, ConflictError):
    """Raised when the email or username is taken."""

    pass


class UserOperationError(UserServiceError, ValidationFailedError):
    """Raised when a user operation is not allowed on the target."""

    pass


def school_members_clause(school_id: str) -> ColumnElement[bool]:
    """Predicate on User.id matching the staff and parents of a school."""
    clauses = [
        User.id.in_(select(profile.id).where(profile.school_id == school_id))
        for profile in _STAFF_PROFILES
    ]
    clauses.append(
        User.id.in_(
            select(Student.parent_id).where(
                Student.school_id == school_id,
                Student.parent_id.is_not(None),
            )
        )
    )
    return or_(*clauses)


class UserService:
    """Service for user accounts.

    Attributes:
        _db: Async database session.
    """

    def __init__(self, db: AsyncSession) -> None:
        self._db = db

    async def list_users(
        self,
        actor: Actor,
        params: PageParams,
        *,
        role: str | None = None,
        search: str | None = None,
        school_id: str | None = None,
    ) -> tuple[list[UserResponse], int]:
        """List users visible to the caller.

        Super admins see everyone (optionally one school). School admins and
        principals see their school's users. Everyone else sees themselves.

        Returns:
            Tuple of (users, total count).
        """
        stmt = select(User)

        if actor.is_super_admin:
            if school_id:
                stmt = stmt.where(school_members_clause(str(school_id)))
        elif actor.has_any_role(Role.SCHOOL_ADMIN, Role.PRINCIPAL):
            if actor.school_id:
                stmt = stmt.where(school_members_clause(actor.school_id))
            else:
                stmt = stmt.where(false())
        else:
            stmt = stmt.where(User.id == actor.id)

        if role:
            stmt = stmt.where(User.role == role)
        if search:
            pattern = f"%{search}%"
            stmt = stmt.where(
                or_(
                    User.email.ilike(pattern),
                    User.username.ilike(pattern),
                    User.name.ilike(pattern),
                    User.surname.ilike(pattern),
                )
            )

        users, total = await fetch_page(self._db, stmt, params, User.created_at.desc())
        schools = await self._school_ids_for([user.id for user in users])

        logger.info("Users retrieved: user=%s, page=%d, total=%d", actor.id, params.page, total)
        return [self._to_response(user, schools.get(str(user.id))) for user in users], total

    async def get_user(self, actor: Actor, user_id: str) -> UserResponse:
        """Get one user.

        Raises:
            UserNotFoundError: If the user does not exist.
            UserAccessDeniedError: If the caller may not see the user.
        """
        user = await self._get_by_id(str(user_id))
        await self._check_read_access(actor, user)
        schools = await self._school_ids_for([user.id])
        return self._to_response(user, schools.get(str(user.id)))

    async def update_user(
        self,
        actor: Actor,
        user_id: str,
        request: UserUpdateRequest,
    ) -> UserResponse:
        """Update a user.

        Raises:
            UserNotFoundError: If the user does not exist.
            UserAccessDeniedError: If the caller is not the user or a super
                admin, or a non super admin changes role or status.
            UserAlreadyExistsError: If the new email or username is taken.
        """
        user = await self._get_by_id(str(user_id))

        if not actor.is_super_admin and actor.id != str(user.id):
            raise UserAccessDeniedError("You can only update your own profile")

        changes = request.model_dump(exclude_unset=True, exclude_none=True)
        if not actor.is_super_admin and ({"role", "is_active"} & changes.keys()):
            raise UserAccessDeniedError("Only super admins can change role or status")

        if "email" in changes or "username" in changes:
            await self._ensure_unique(
                changes.get("email", user.email),
                changes.get("username", user.username),
                exclude_id=user.id,
            )

        for field, value in changes.items():
            setattr(user, field, value)

        try:
            await self._db.commit()
        except IntegrityError:
            await self._db.rollback()
            raise UserAlreadyExistsError("Email or username already exists")
        await self._db.refresh(user)

        logger.info("User updated: %s (by=%s, fields=%s)", user.id, actor.id, sorted(changes))
        schools = await self._school_ids_for([user.id])
        return self._to_response(user, schools.get(str(user.id)))

    async def delete_user(self, actor: Actor, user_id: str) -> None:
        """Deactivate a user and revoke all of their refresh tokens.

        Rows are kept so the user's records stay intact.

        Raises:
            UserNotFoundError: If the user does not exist.
            UserOperationError: If the caller targets their own account.
        """
        user = await self._get_by_id(str(user_id))
        if str(user.id) == actor.id:
            raise UserOperationError("Cannot delete your own account")

        user.is_active = False
        await self._db.execute(
            update(DeviceToken)
            .where(DeviceToken.user_id == user.id, DeviceToken.is_active.is_(True))
            .values(is_active=False, revoked_at=utc_now())
        )
        await self._db.commit()

        logger.info("User deactivated: %s (by=%s)", user.id, actor.id)

    async def _check_read_access(self, actor: Actor, user: User) -> None:
        if actor.is_super_admin or actor.id == str(user.id):
            return
        if actor.has_any_role(Role.SCHOOL_ADMIN, Role.PRINCIPAL) and actor.school_id:
            result = await self._db.execute(
                select(User.id).where(User.id == user.id, school_members_clause(actor.school_id))
            )
            if result.scalar_one_or_none() is not None:
                return
        raise UserAccessDeniedError("Access denied")

    async def _ensure_unique(self, email: str, username: str, exclude_id: str) -> None:
        result = await self._db.execute(
            select(User.id).where(
                or_(User.email == email, User.username == username),
                User.id != exclude_id,
            )
        )
        if result.first() is not None:
            raise UserAlreadyExistsError("Email or username already exists")

    async def _school_ids_for(self, user_ids: list[Any]) -> dict[str, str]:
        """Map staff user IDs to their profile school."""
        if not user_ids:
            return {}
        schools: dict[str, str] = {}
        for profile in _STAFF_PROFILES:
            result = await self._db.execute(
                select(profile.id, profile.school_id).where(profile.id.in_(user_ids))
            )
            schools.update({str(row.id): str(row.school_id) for row in result})
        return schools

    async def _get_by_id(self, user_id: str) -> User:
        user = await self._db.get(User, user_id)
        if user is None:
            raise UserNotFoundError("User not found")
        return user

    def _to_response(self, user: User, school_id: str | None) -> UserResponse:
        summary = UserSummary.model_validate(user)
        return UserResponse(**summary.model_dump(), school_id=school_id)
