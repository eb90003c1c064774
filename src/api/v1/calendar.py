# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Academic calendar API endpoints.

This module provides endpoints for:
- Academic years and academic calendars
- Terms (CRUD, dates within the year, no overlaps)
- Holidays (CRUD)
- Calendar items of an academic calendar
- GET /overview - Everything on the calendar within a date range
"""

import logging
from datetime import date
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.dependencies import RequireRole, get_actor, get_db, get_page_params
from src.api.middleware.auth import CurrentUser
from src.core.exceptions import ValidationFailedError
from src.domains.calendar import CalendarService
from src.domains.tenancy import Actor
from src.models.calendar import (
    AcademicCalendarCreateRequest,
    AcademicCalendarDetailResponse,
    AcademicCalendarListResponse,
    AcademicCalendarResponse,
    AcademicYearCreateRequest,
    AcademicYearDetailResponse,
    AcademicYearListResponse,
    AcademicYearResponse,
    CalendarItemCreateRequest,
    CalendarItemDetailResponse,
    CalendarItemListResponse,
    CalendarItemResponse,
    CalendarOverview,
    CalendarOverviewResponse,
    CalendarPeriod,
    HolidayCreateRequest,
    HolidayDetailResponse,
    HolidayListResponse,
    HolidayResponse,
    HolidayUpdateRequest,
    TermCreateRequest,
    TermDetailResponse,
    TermListResponse,
    TermResponse,
    TermUpdateRequest,
)
from src.models.common import SCHOOL_MANAGER_ROLES, HolidayType, MessageResponse, Role
from src.models.exam import ExamResponse
from src.utils.pagination import PageParams, Pagination

logger = logging.getLogger(__name__)

router = APIRouter()

require_calendar_reader = RequireRole(*SCHOOL_MANAGER_ROLES, Role.TEACHER)
require_calendar_manager = RequireRole(*SCHOOL_MANAGER_ROLES)


def get_calendar_service(db: AsyncSession = Depends(get_db)) -> CalendarService:
    return CalendarService(db)


def _optional_id(value: UUID | None) -> str | None:
    return str(value) if value else None


# =============================================================================
# Academic years and calendars
# =============================================================================


@router.get(
    "/academic-years",
    response_model=AcademicYearListResponse,
    summary="List academic years",
)
async def list_academic_years(
    school_id: UUID | None = Query(None, description="Super admin school filter"),
    params: PageParams = Depends(get_page_params),
    current_user: CurrentUser = Depends(require_calendar_reader),
    service: CalendarService = Depends(get_calendar_service),
) -> AcademicYearListResponse:
    years, total = await service.list_academic_years(
        current_user.to_actor(), params, school_id=_optional_id(school_id)
    )
    return AcademicYearListResponse(
        message="Academic years retrieved successfully",
        academic_years=[AcademicYearResponse.model_validate(y) for y in years],
        pagination=Pagination.build(params, total),
    )


@router.post(
    "/academic-years",
    response_model=AcademicYearDetailResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create an academic year",
)
async def create_academic_year(
    body: AcademicYearCreateRequest,
    current_user: CurrentUser = Depends(require_calendar_manager),
    service: CalendarService = Depends(get_calendar_service),
) -> AcademicYearDetailResponse:
    year = await service.create_academic_year(current_user.to_actor(), body)
    return AcademicYearDetailResponse(
        message="Academic year created successfully",
        academic_year=AcademicYearResponse.model_validate(year),
    )


@router.get(
    "/academic-calendars",
    response_model=AcademicCalendarListResponse,
    summary="List academic calendars",
)
async def list_calendars(
    school_id: UUID | None = Query(None, description="Super admin school filter"),
    params: PageParams = Depends(get_page_params),
    current_user: CurrentUser = Depends(require_calendar_reader),
    service: CalendarService = Depends(get_calendar_service),
) -> AcademicCalendarListResponse:
    calendars, total = await service.list_calendars(
        current_user.to_actor(), params, school_id=_optional_id(school_id)
    )
    return AcademicCalendarListResponse(
        message="Academic calendars retrieved successfully",
        calendars=[AcademicCalendarResponse.model_validate(c) for c in calendars],
        pagination=Pagination.build(params, total),
    )


@router.post(
    "/academic-calendars",
    response_model=AcademicCalendarDetailResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create an academic calendar",
)
async def create_calendar(
    body: AcademicCalendarCreateRequest,
    current_user: CurrentUser = Depends(require_calendar_manager),
    service: CalendarService = Depends(get_calendar_service),
) -> AcademicCalendarDetailResponse:
    calendar = await service.create_calendar(current_user.to_actor(), body)
    return AcademicCalendarDetailResponse(
        message="Academic calendar created successfully",
        calendar=AcademicCalendarResponse.model_validate(calendar),
    )


@router.post(
    "/academic-calendars/{calendar_id}/items",
    response_model=CalendarItemDetailResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add an item to an academic calendar",
)
async def create_calendar_item(
    calendar_id: UUID,
    body: CalendarItemCreateRequest,
    current_user: CurrentUser = Depends(require_calendar_manager),
    service: CalendarService = Depends(get_calendar_service),
) -> CalendarItemDetailResponse:
    item = await service.create_calendar_item(current_user.to_actor(), str(calendar_id), body)
    return CalendarItemDetailResponse(
        message="Calendar item created successfully",
        calendar_item=CalendarItemResponse.model_validate(item),
    )


@router.get(
    "/academic-calendars/{calendar_id}/items",
    response_model=CalendarItemListResponse,
    summary="List the items of an academic calendar",
)
async def list_calendar_items(
    calendar_id: UUID,
    start_date: date | None = Query(None),
    end_date: date | None = Query(None),
    current_user: CurrentUser = Depends(require_calendar_reader),
    service: CalendarService = Depends(get_calendar_service),
) -> CalendarItemListResponse:
    items = await service.list_calendar_items(
        current_user.to_actor(), str(calendar_id), start_date, end_date
    )
    return CalendarItemListResponse(
        message="Calendar items retrieved successfully",
        calendar_items=[CalendarItemResponse.model_validate(item) for item in items],
    )


@router.delete(
    "/items/{item_id}",
    response_model=MessageResponse,
    summary="Delete a calendar item",
)
async def delete_calendar_item(
    item_id: UUID,
    current_user: CurrentUser = Depends(require_calendar_manager),
    service: CalendarService = Depends(get_calendar_service),
) -> MessageResponse:
    await service.delete_calendar_item(current_user.to_actor(), str(item_id))
    return MessageResponse(message="Calendar item deleted successfully")


# =============================================================================
# Terms
# =============================================================================


@router.get("/terms", response_model=TermListResponse, summary="List terms")
async def list_terms(
    academic_year_id: UUID | None = Query(None),
    school_id: UUID | None = Query(None, description="Super admin school filter"),
    params: PageParams = Depends(get_page_params),
    current_user: CurrentUser = Depends(require_calendar_reader),
    service: CalendarService = Depends(get_calendar_service),
) -> TermListResponse:
    terms, total = await service.list_terms(
        current_user.to_actor(),
        params,
        academic_year_id=_optional_id(academic_year_id),
        school_id=_optional_id(school_id),
    )
    return TermListResponse(
        message="Terms retrieved successfully",
        terms=[TermResponse.model_validate(term) for term in terms],
        pagination=Pagination.build(params, total),
    )


@router.post(
    "/terms",
    response_model=TermDetailResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a term",
)
async def create_term(
    body: TermCreateRequest,
    current_user: CurrentUser = Depends(require_calendar_manager),
    service: CalendarService = Depends(get_calendar_service),
) -> TermDetailResponse:
    term = await service.create_term(current_user.to_actor(), body)
    return TermDetailResponse(
        message="Term created successfully",
        term=TermResponse.model_validate(term),
    )


@router.get("/terms/{term_id}", response_model=TermDetailResponse, summary="Get a term")
async def get_term(
    term_id: UUID,
    current_user: CurrentUser = Depends(require_calendar_reader),
    service: CalendarService = Depends(get_calendar_service),
) -> TermDetailResponse:
    term = await service.get_term(current_user.to_actor(), str(term_id))
    return TermDetailResponse(
        message="Term retrieved successfully",
        term=TermResponse.model_validate(term),
    )


@router.put("/terms/{term_id}", response_model=TermDetailResponse, summary="Update a term")
async def update_term(
    term_id: UUID,
    body: TermUpdateRequest,
    current_user: CurrentUser = Depends(require_calendar_manager),
    service: CalendarService = Depends(get_calendar_service),
) -> TermDetailResponse:
    term = await service.update_term(current_user.to_actor(), str(term_id), body)
    return TermDetailResponse(
        message="Term updated successfully",
        term=TermResponse.model_validate(term),
    )


@router.delete("/terms/{term_id}", response_model=MessageResponse, summary="Delete a term")
async def delete_term(
    term_id: UUID,
    current_user: CurrentUser = Depends(require_calendar_manager),
    service: CalendarService = Depends(get_calendar_service),
) -> MessageResponse:
    await service.delete_term(current_user.to_actor(), str(term_id))
    return MessageResponse(message="Term deleted successfully")


# =============================================================================
# Holidays
# =============================================================================


@router.get("/holidays", response_model=HolidayListResponse, summary="List holidays")
async def list_holidays(
    holiday_type: HolidayType | None = Query(None, alias="type"),
    school_id: UUID | None = Query(None, description="Super admin school filter"),
    params: PageParams = Depends(get_page_params),
    current_user: CurrentUser = Depends(require_calendar_reader),
    service: CalendarService = Depends(get_calendar_service),
) -> HolidayListResponse:
    holidays, total = await service.list_holidays(
        current_user.to_actor(),
        params,
        holiday_type=holiday_type,
        school_id=_optional_id(school_id),
    )
    return HolidayListResponse(
        message="Holidays retrieved successfully",
        holidays=[HolidayResponse.model_validate(h) for h in holidays],
        pagination=Pagination.build(params, total),
    )


@router.post(
    "/holidays",
    response_model=HolidayDetailResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a holiday",
)
async def create_holiday(
    body: HolidayCreateRequest,
    current_user: CurrentUser = Depends(require_calendar_manager),
    service: CalendarService = Depends(get_calendar_service),
) -> HolidayDetailResponse:
    holiday = await service.create_holiday(current_user.to_actor(), body)
    return HolidayDetailResponse(
        message="Holiday created successfully",
        holiday=HolidayResponse.model_validate(holiday),
    )


@router.put(
    "/holidays/{holiday_id}",
    response_model=HolidayDetailResponse,
    summary="Update a holiday",
)
async def update_holiday(
    holiday_id: UUID,
    body: HolidayUpdateRequest,
    current_user: CurrentUser = Depends(require_calendar_manager),
    service: CalendarService = Depends(get_calendar_service),
) -> HolidayDetailResponse:
    holiday = await service.update_holiday(current_user.to_actor(), str(holiday_id), body)
    return HolidayDetailResponse(
        message="Holiday updated successfully",
        holiday=HolidayResponse.model_validate(holiday),
    )


@router.delete(
    "/holidays/{holiday_id}",
    response_model=MessageResponse,
    summary="Delete a holiday",
)
async def delete_holiday(
    holiday_id: UUID,
    current_user: CurrentUser = Depends(require_calendar_manager),
    service: CalendarService = Depends(get_calendar_service),
) -> MessageResponse:
    await service.delete_holiday(current_user.to_actor(), str(holiday_id))
    return MessageResponse(message="Holiday deleted successfully")


# =============================================================================
# Overview
# =============================================================================


@router.get(
    "/overview",
    response_model=CalendarOverviewResponse,
    summary="Get the calendar overview for a date range",
)
async def get_overview(
    start_date: date | None = Query(None),
    end_date: date | None = Query(None),
    actor: Actor = Depends(get_actor),
    service: CalendarService = Depends(get_calendar_service),
) -> CalendarOverviewResponse:
    if start_date is None or end_date is None:
        raise ValidationFailedError("Start date and end date are required")

    overview = await service.get_overview(actor, start_date, end_date)
    return CalendarOverviewResponse(
        message="Calendar overview retrieved successfully",
        period=CalendarPeriod(start_date=start_date, end_date=end_date),
        calendar=CalendarOverview(
            terms=[TermResponse.model_validate(t) for t in overview["terms"]],
            holidays=[HolidayResponse.model_validate(h) for h in overview["holidays"]],
            exams=[ExamResponse.model_validate(e) for e in overview["exams"]],
            calendar_items=[
                CalendarItemResponse.model_validate(i) for i in overview["calendar_items"]
            ],
        ),
    )
