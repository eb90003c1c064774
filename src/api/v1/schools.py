# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""School API endpoints.

This module provides endpoints for schools:
- GET / - List schools visible to the caller
- POST / - Create a school (super admin)
- GET /{school_id} - Get a school
- POST /{school_id}/verify - Verify a school (super admin)
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.dependencies import RequireRole, get_actor, get_db, get_page_params
from src.api.middleware.auth import CurrentUser
from src.domains.school import SchoolService
from src.domains.tenancy import Actor
from src.models.common import Role
from src.models.school import (
    SchoolCreateRequest,
    SchoolDetailResponse,
    SchoolListResponse,
    SchoolResponse,
)
from src.utils.pagination import PageParams, Pagination

logger = logging.getLogger(__name__)

router = APIRouter()

require_super_admin = RequireRole(Role.SUPER_ADMIN)


def get_school_service(db: AsyncSession = Depends(get_db)) -> SchoolService:
    return SchoolService(db)


@router.get("", response_model=SchoolListResponse, summary="List schools")
async def list_schools(
    search: str | None = Query(None, max_length=100),
    is_verified: bool | None = Query(None),
    params: PageParams = Depends(get_page_params),
    actor: Actor = Depends(get_actor),
    service: SchoolService = Depends(get_school_service),
) -> SchoolListResponse:
    schools, total = await service.list_schools(
        actor, params, search=search, is_verified=is_verified
    )
    return SchoolListResponse(
        message="Schools retrieved successfully",
        schools=[SchoolResponse.model_validate(school) for school in schools],
        pagination=Pagination.build(params, total),
    )


@router.post(
    "",
    response_model=SchoolDetailResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a school",
)
async def create_school(
    body: SchoolCreateRequest,
    current_user: CurrentUser = Depends(require_super_admin),
    service: SchoolService = Depends(get_school_service),
) -> SchoolDetailResponse:
    school = await service.create_school(current_user.to_actor(), body)
    return SchoolDetailResponse(
        message="School created successfully",
        school=SchoolResponse.model_validate(school),
    )


@router.get("/{school_id}", response_model=SchoolDetailResponse, summary="Get a school")
async def get_school(
    school_id: UUID,
    actor: Actor = Depends(get_actor),
    service: SchoolService = Depends(get_school_service),
) -> SchoolDetailResponse:
    school = await service.get_school(actor, str(school_id))
    return SchoolDetailResponse(
        message="School retrieved successfully",
        school=SchoolResponse.model_validate(school),
    )


@router.post(
    "/{school_id}/verify",
    response_model=SchoolDetailResponse,
    summary="Verify a school",
)
async def verify_school(
    school_id: UUID,
    current_user: CurrentUser = Depends(require_super_admin),
    service: SchoolService = Depends(get_school_service),
) -> SchoolDetailResponse:
    school = await service.verify_school(current_user.to_actor(), str(school_id))
    return SchoolDetailResponse(
        message="School verified successfully",
        school=SchoolResponse.model_validate(school),
    )
