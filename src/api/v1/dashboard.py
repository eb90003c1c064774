# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Role dashboard API endpoints.

Each dashboard is guarded by the role it is built for. School admins and
principals share the school dashboard.
"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.dependencies import RequireRole, get_db
from src.api.middleware.auth import CurrentUser
from src.domains.dashboard import DashboardService
from src.models.common import Role
from src.models.dashboard import (
    ParentDashboardResponse,
    SchoolDashboardResponse,
    SuperAdminDashboardResponse,
    TeacherDashboardResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def get_dashboard_service(db: AsyncSession = Depends(get_db)) -> DashboardService:
    return DashboardService(db)


@router.get(
    "/super-admin",
    response_model=SuperAdminDashboardResponse,
    summary="Super admin dashboard",
)
async def super_admin_dashboard(
    current_user: CurrentUser = Depends(RequireRole(Role.SUPER_ADMIN)),
    service: DashboardService = Depends(get_dashboard_service),
) -> SuperAdminDashboardResponse:
    dashboard = await service.get_super_admin_dashboard(current_user.to_actor())
    return SuperAdminDashboardResponse(
        message="Dashboard data retrieved successfully",
        dashboard=dashboard,
    )


@router.get(
    "/school-admin",
    response_model=SchoolDashboardResponse,
    summary="School admin dashboard",
)
async def school_admin_dashboard(
    current_user: CurrentUser = Depends(RequireRole(Role.SCHOOL_ADMIN)),
    service: DashboardService = Depends(get_dashboard_service),
) -> SchoolDashboardResponse:
    dashboard = await service.get_school_dashboard(current_user.to_actor())
    return SchoolDashboardResponse(
        message="Dashboard data retrieved successfully",
        dashboard=dashboard,
    )


@router.get(
    "/principal",
    response_model=SchoolDashboardResponse,
    summary="Principal dashboard",
)
async def principal_dashboard(
    current_user: CurrentUser = Depends(RequireRole(Role.PRINCIPAL)),
    service: DashboardService = Depends(get_dashboard_service),
) -> SchoolDashboardResponse:
    dashboard = await service.get_school_dashboard(current_user.to_actor())
    return SchoolDashboardResponse(
        message="Dashboard data retrieved successfully",
        dashboard=dashboard,
    )


@router.get(
    "/teacher",
    response_model=TeacherDashboardResponse,
    summary="Teacher dashboard",
)
async def teacher_dashboard(
    current_user: CurrentUser = Depends(RequireRole(Role.TEACHER)),
    service: DashboardService = Depends(get_dashboard_service),
) -> TeacherDashboardResponse:
    dashboard = await service.get_teacher_dashboard(current_user.to_actor())
    return TeacherDashboardResponse(
        message="Dashboard data retrieved successfully",
        dashboard=dashboard,
    )


@router.get(
    "/parent",
    response_model=ParentDashboardResponse,
    summary="Parent dashboard",
)
async def parent_dashboard(
    current_user: CurrentUser = Depends(RequireRole(Role.PARENT)),
    service: DashboardService = Depends(get_dashboard_service),
) -> ParentDashboardResponse:
    dashboard = await service.get_parent_dashboard(current_user.to_actor())
    return ParentDashboardResponse(
        message="Dashboard data retrieved successfully",
        dashboard=dashboard,
    )
