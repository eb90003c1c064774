# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""User management API endpoints.

This module provides endpoints for users:
- GET / - List users visible to the caller
- GET /{user_id} - Get a user
- PUT /{user_id} - Update a profile (self or super admin)
- DELETE /{user_id} - Deactivate a user (super admin)
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.dependencies import RequireRole, get_actor, get_db, get_page_params
from src.api.middleware.auth import CurrentUser
from src.domains.tenancy import Actor
from src.domains.user import UserService
from src.models.common import MessageResponse, Role
from src.models.user import UserDetailResponse, UserListResponse, UserUpdateRequest
from src.utils.pagination import PageParams, Pagination

logger = logging.getLogger(__name__)

router = APIRouter()

require_super_admin = RequireRole(Role.SUPER_ADMIN)


def get_user_service(db: AsyncSession = Depends(get_db)) -> UserService:
    return UserService(db)


@router.get("", response_model=UserListResponse, summary="List users")
async def list_users(
    role: Role | None = Query(None),
    search: str | None = Query(None, max_length=100),
    school_id: UUID | None = Query(None, description="Super admin school filter"),
    params: PageParams = Depends(get_page_params),
    actor: Actor = Depends(get_actor),
    service: UserService = Depends(get_user_service),
) -> UserListResponse:
    users, total = await service.list_users(
        actor,
        params,
        role=role,
        search=search,
        school_id=str(school_id) if school_id else None,
    )
    return UserListResponse(
        message="Users retrieved successfully",
        users=users,
        pagination=Pagination.build(params, total),
    )


@router.get("/{user_id}", response_model=UserDetailResponse, summary="Get a user")
async def get_user(
    user_id: UUID,
    actor: Actor = Depends(get_actor),
    service: UserService = Depends(get_user_service),
) -> UserDetailResponse:
    user = await service.get_user(actor, str(user_id))
    return UserDetailResponse(message="User retrieved successfully", user=user)


@router.put("/{user_id}", response_model=UserDetailResponse, summary="Update a user")
async def update_user(
    user_id: UUID,
    body: UserUpdateRequest,
    actor: Actor = Depends(get_actor),
    service: UserService = Depends(get_user_service),
) -> UserDetailResponse:
    user = await service.update_user(actor, str(user_id), body)
    return UserDetailResponse(message="User updated successfully", user=user)


@router.delete("/{user_id}", response_model=MessageResponse, summary="Deactivate a user")
async def delete_user(
    user_id: UUID,
    current_user: CurrentUser = Depends(require_super_admin),
    service: UserService = Depends(get_user_service),
) -> MessageResponse:
    await service.delete_user(current_user.to_actor(), str(user_id))
    return MessageResponse(message="User deleted successfully")
