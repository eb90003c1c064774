# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Class API endpoints."""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.dependencies import RequireRole, get_db, get_page_params
from src.api.middleware.auth import CurrentUser
from src.domains.school_class import ClassService
from src.models.academic import (
    ClassCreateRequest,
    ClassDetailResponse,
    ClassListResponse,
    ClassUpdateRequest,
)
from src.models.common import SCHOOL_MANAGER_ROLES, MessageResponse, Role
from src.utils.pagination import PageParams, Pagination

logger = logging.getLogger(__name__)

router = APIRouter()

require_class_reader = RequireRole(*SCHOOL_MANAGER_ROLES, Role.TEACHER)
require_class_manager = RequireRole(*SCHOOL_MANAGER_ROLES)


def get_class_service(db: AsyncSession = Depends(get_db)) -> ClassService:
    return ClassService(db)


@router.get("", response_model=ClassListResponse, summary="List classes")
async def list_classes(
    school_id: UUID | None = Query(None, description="Super admin school filter"),
    grade_id: UUID | None = Query(None),
    params: PageParams = Depends(get_page_params),
    current_user: CurrentUser = Depends(require_class_reader),
    service: ClassService = Depends(get_class_service),
) -> ClassListResponse:
    classes, total = await service.list_classes(
        current_user.to_actor(),
        params,
        school_id=str(school_id) if school_id else None,
        grade_id=str(grade_id) if grade_id else None,
    )
    return ClassListResponse(
        message="Classes retrieved successfully",
        classes=classes,
        pagination=Pagination.build(params, total),
    )


@router.post(
    "",
    response_model=ClassDetailResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a class",
)
async def create_class(
    body: ClassCreateRequest,
    current_user: CurrentUser = Depends(require_class_manager),
    service: ClassService = Depends(get_class_service),
) -> ClassDetailResponse:
    klass = await service.create_class(current_user.to_actor(), body)
    return ClassDetailResponse(message="Class created successfully", class_=klass)


@router.get("/{class_id}", response_model=ClassDetailResponse, summary="Get a class")
async def get_class(
    class_id: UUID,
    current_user: CurrentUser = Depends(require_class_reader),
    service: ClassService = Depends(get_class_service),
) -> ClassDetailResponse:
    klass = await service.get_class(current_user.to_actor(), str(class_id))
    return ClassDetailResponse(message="Class retrieved successfully", class_=klass)


@router.put("/{class_id}", response_model=ClassDetailResponse, summary="Update a class")
async def update_class(
    class_id: UUID,
    body: ClassUpdateRequest,
    current_user: CurrentUser = Depends(require_class_manager),
    service: ClassService = Depends(get_class_service),
) -> ClassDetailResponse:
    klass = await service.update_class(current_user.to_actor(), str(class_id), body)
    return ClassDetailResponse(message="Class updated successfully", class_=klass)


@router.delete("/{class_id}", response_model=MessageResponse, summary="Delete a class")
async def delete_class(
    class_id: UUID,
    current_user: CurrentUser = Depends(require_class_manager),
    service: ClassService = Depends(get_class_service),
) -> MessageResponse:
    await service.delete_class(current_user.to_actor(), str(class_id))
    return MessageResponse(message="Class deleted successfully")
