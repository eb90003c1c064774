# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Academic calendar models: years, terms, holidays and calendar items."""

from datetime import date, datetime
from uuid import UUID

from pydantic import BaseModel, Field, model_validator

from src.models.common import (
    CalendarItemType,
    HolidayType,
    MessageResponse,
    ORMModel,
    PaginatedResponse,
)
from src.models.exam import ExamResponse

_SCHOOL_FIELD = Field(
    default=None,
    description="Defaults to the caller's school; required for super admins",
)


class _PartialUpdate(BaseModel):
    @model_validator(mode="after")
    def has_changes(self):
        if not self.model_fields_set:
            raise ValueError("At least one field must be provided")
        return self


# =============================================================================
# Academic years and calendars
# =============================================================================


class AcademicYearCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=50, examples=["2025-2026"])
    start_date: date
    end_date: date
    is_current: bool = False
    school_id: UUID | None = _SCHOOL_FIELD

    @model_validator(mode="after")
    def end_after_start(self) -> "AcademicYearCreateRequest":
        if self.end_date <= self.start_date:
            raise ValueError("End date must be after start date")
        return self


class AcademicYearResponse(ORMModel):
    id: UUID
    name: str
    start_date: date
    end_date: date
    is_current: bool
    school_id: UUID


class AcademicYearListResponse(PaginatedResponse):
    academic_years: list[AcademicYearResponse]


class AcademicYearDetailResponse(MessageResponse):
    academic_year: AcademicYearResponse


class AcademicCalendarCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: str | None = None
    academic_year_id: UUID


class AcademicCalendarResponse(ORMModel):
    id: UUID
    name: str
    description: str | None = None
    academic_year_id: UUID
    school_id: UUID


class AcademicCalendarListResponse(PaginatedResponse):
    calendars: list[AcademicCalendarResponse]


class AcademicCalendarDetailResponse(MessageResponse):
    calendar: AcademicCalendarResponse


# =============================================================================
# Terms
# =============================================================================


class TermCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    start_date: date
    end_date: date
    academic_year_id: UUID


class TermUpdateRequest(_PartialUpdate):
    name: str | None = Field(default=None, min_length=1, max_length=100)
    start_date: date | None = None
    end_date: date | None = None
    is_active: bool | None = None


class TermResponse(ORMModel):
    id: UUID
    name: str
    start_date: date
    end_date: date
    is_active: bool
    academic_year_id: UUID
    school_id: UUID
    created_at: datetime


class TermListResponse(PaginatedResponse):
    terms: list[TermResponse]


class TermDetailResponse(MessageResponse):
    term: TermResponse


# =============================================================================
# Holidays
# =============================================================================


class HolidayCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: str | None = None
    start_date: date
    end_date: date
    holiday_type: HolidayType
    is_recurring: bool = False
    school_id: UUID | None = _SCHOOL_FIELD


class HolidayUpdateRequest(_PartialUpdate):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    start_date: date | None = None
    end_date: date | None = None
    holiday_type: HolidayType | None = None
    is_recurring: bool | None = None


class HolidayResponse(ORMModel):
    id: UUID
    name: str
    description: str | None = None
    start_date: date
    end_date: date
    holiday_type: HolidayType
    is_recurring: bool
    school_id: UUID


class HolidayListResponse(PaginatedResponse):
    holidays: list[HolidayResponse]


class HolidayDetailResponse(MessageResponse):
    holiday: HolidayResponse


# =============================================================================
# Calendar items
# =============================================================================


class CalendarItemCreateRequest(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: str | None = None
    item_type: CalendarItemType
    start_date: datetime
    end_date: datetime
    is_all_day: bool = False


class CalendarItemResponse(ORMModel):
    id: UUID
    title: str
    description: str | None = None
    item_type: CalendarItemType
    start_date: datetime
    end_date: datetime
    is_all_day: bool
    academic_calendar_id: UUID
    school_id: UUID


class CalendarItemListResponse(MessageResponse):
    calendar_items: list[CalendarItemResponse]


class CalendarItemDetailResponse(MessageResponse):
    calendar_item: CalendarItemResponse


# =============================================================================
# Overview
# =============================================================================


class CalendarPeriod(BaseModel):
    start_date: date
    end_date: date


class CalendarOverview(BaseModel):
    terms: list[TermResponse]
    holidays: list[HolidayResponse]
    exams: list[ExamResponse]
    calendar_items: list[CalendarItemResponse]


class CalendarOverviewResponse(MessageResponse):
    period: CalendarPeriod
    calendar: CalendarOverview
