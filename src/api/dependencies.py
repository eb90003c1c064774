# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""FastAPI dependency injection definitions.

This module provides dependency functions for FastAPI endpoints.
Dependencies are used to:
- Get database sessions
- Get authenticated users and their tenant identity
- Get pagination parameters
- Get service instances

Example:
    @router.get("/assignments")
    async def list_assignments(
        db: AsyncSession = Depends(get_db),
        actor: Actor = Depends(get_actor),
    ):
        ...
"""

import logging
from typing import AsyncGenerator

from fastapi import Depends, HTTPException, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.middleware.auth import CurrentUser, get_current_user
from src.core.config import get_settings
from src.domains.auth.jwt import JWTManager
from src.domains.auth.password import PasswordHasher
from src.domains.auth.service import AuthService
from src.domains.tenancy import Actor
from src.infrastructure.database.connection import (
    close_database,
    create_all_tables,
    get_session,
    init_database,
)
from src.infrastructure.database.migrations.runner import run_migrations
from src.infrastructure.notifications.email import EmailSender
from src.infrastructure.storage import LocalStorageBackend, StorageBackend
from src.utils.pagination import DEFAULT_LIMIT, MAX_LIMIT, PageParams

logger = logging.getLogger(__name__)


async def init_db() -> None:
    """Initialize the database and bring the schema up to date."""
    settings = get_settings()

    await init_database(settings)

    if settings.database.run_migrations:
        applied = await run_migrations(settings.database.url)
        logger.info("Migrations applied: %s", applied or "none")
    elif settings.database.auto_create:
        await create_all_tables()
        logger.info("Database tables created from metadata")


async def close_db() -> None:
    await close_database()


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Get a database session for the request.

    Yields:
        AsyncSession, rolled back if the endpoint raises.
    """
    async with get_session() as session:
        yield session


# =========================================================================
# Authentication Dependencies
# =========================================================================


def get_optional_user(request: Request) -> CurrentUser | None:
    return get_current_user(request)


def require_auth(request: Request) -> CurrentUser:
    """Require authenticated user.

    Args:
        request: HTTP request.

    Returns:
        CurrentUser.

    Raises:
        HTTPException: If not authenticated.
    """
    user = get_current_user(request)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


def _ensure_approved(user: CurrentUser) -> None:
    if user.is_pending:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account pending approval",
        )


def require_approved(request: Request) -> CurrentUser:
    """Require an authenticated user whose registration is not pending.

    Principals and teachers awaiting approval can log in and read their own
    account, but nothing else.

    Raises:
        HTTPException: 401 if not authenticated, 403 if pending approval.
    """
    user = require_auth(request)
    _ensure_approved(user)
    return user


class RequireRole:
    """Dependency for requiring specific roles.

    Pending principals and teachers are refused even when their role
    matches.

    Example:
        @router.post("/subjects")
        async def create_subject(
            user: CurrentUser = Depends(RequireRole(Role.PRINCIPAL, Role.SUPER_ADMIN)),
        ):
            ...
    """

    def __init__(self, *roles: str) -> None:
        """Initialize role requirement.

        Args:
            roles: Allowed role codes.
        """
        self.roles = roles

    def __call__(self, request: Request) -> CurrentUser:
        """Check roles and return user.

        Raises:
            HTTPException: If not authenticated, role not allowed or the
                account is pending approval.
        """
        user = require_auth(request)

        if not user.has_any_role(*self.roles):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Insufficient permissions",
            )
        _ensure_approved(user)
        return user


def get_actor(user: CurrentUser = Depends(require_approved)) -> Actor:
    """Tenant identity of an approved caller."""
    return user.to_actor()


def get_page_params(
    page: int = Query(1, ge=1, description="Page number, 1-based"),
    limit: int = Query(DEFAULT_LIMIT, ge=1, le=MAX_LIMIT, description="Items per page"),
) -> PageParams:
    return PageParams.normalize(page, limit)


# =========================================================================
# Service Dependencies
# =========================================================================


def get_jwt_manager() -> JWTManager:
    """Get JWT manager instance.

    Returns:
        JWTManager.
    """
    settings = get_settings()
    return JWTManager(settings.jwt)


def get_password_hasher() -> PasswordHasher:
    """Get password hasher instance.

    Returns:
        PasswordHasher.
    """
    return PasswordHasher(rounds=get_settings().auth.bcrypt_rounds)


def get_email_sender() -> EmailSender:
    return EmailSender(get_settings().smtp)


def get_storage() -> StorageBackend:
    return LocalStorageBackend(get_settings().storage)


async def get_auth_service(
    db: AsyncSession = Depends(get_db),
    jwt_manager: JWTManager = Depends(get_jwt_manager),
    password_hasher: PasswordHasher = Depends(get_password_hasher),
    email_sender: EmailSender = Depends(get_email_sender),
) -> AuthService:
    """Get AuthService instance.

    Args:
        db: Database session.
        jwt_manager: JWT manager.
        password_hasher: Password hasher.
        email_sender: Sender for password reset emails.

    Returns:
        AuthService.
    """
    return AuthService(
        db,
        jwt_manager,
        password_hasher,
        email_sender=email_sender,
        allow_super_admin_signup=get_settings().auth.allow_super_admin_signup,
    )
