# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Academic calendar service.

This module provides the CalendarService that handles:
- Academic years and academic calendars
- Terms, kept inside their academic year and never overlapping
- Holidays
- Calendar items attached to an academic calendar
- The combined calendar overview for a date range

Example:
    >>> service = CalendarService(db)
    >>> term = await service.create_term(actor, request)
    >>> overview = await service.get_overview(actor, date(2025, 9, 1), date(2025, 12, 31))
"""

import logging
from datetime import date, datetime, time, timedelta, timezone
from typing import Any

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.exceptions import (
    ConflictError,
    DependentRecordsError,
    NotFoundError,
    ServiceError,
    ValidationFailedError,
)
from src.domains.tenancy import Actor, TenantScope, resolve_target_school, resolve_tenant_scope
from src.infrastructure.database.models import (
    AcademicCalendar,
    AcademicYear,
    CalendarItem,
    Exam,
    Holiday,
    Term,
)
from src.infrastructure.database.queries import count_rows, fetch_page
from src.models.calendar import (
    AcademicCalendarCreateRequest,
    AcademicYearCreateRequest,
    CalendarItemCreateRequest,
    HolidayCreateRequest,
    HolidayUpdateRequest,
    TermCreateRequest,
    TermUpdateRequest,
)
from src.models.common import ExamStatus
from src.utils.datetime import date_ranges_overlap, ensure_utc
from src.utils.pagination import PageParams

logger = logging.getLogger(__name__)


class CalendarServiceError(ServiceError):
    """Base exception for calendar service errors."""

    pass


class CalendarNotFoundError(CalendarServiceError, NotFoundError):
    """Raised when a year, calendar, term, holiday or item is not found."""

    pass


class InvalidCalendarDatesError(CalendarServiceError, ValidationFailedError):
    """Raised when dates are inverted or outside their academic year."""

    pass


class TermOverlapError(CalendarServiceError, ConflictError):
    """Raised when a term overlaps another term of the same year."""

    pass


class TermInUseError(CalendarServiceError, DependentRecordsError):
    """Raised when deleting a term that exams reference."""

    pass


class CalendarService:
    """Service for the academic calendar of a school.

    Attributes:
        _db: Async database session.
    """

    def __init__(self, db: AsyncSession) -> None:
        self._db = db

    async def _get_in_scope(self, actor: Actor, model: Any, row_id: str, message: str) -> Any:
        scope = await resolve_tenant_scope(self._db, actor)
        result = await self._db.execute(
            scope.apply(select(model).where(model.id == str(row_id)), model)
        )
        row = result.scalar_one_or_none()
        if row is None:
            raise CalendarNotFoundError(message)
        return row

    # =========================================================================
    # Academic years and calendars
    # =========================================================================

    async def list_academic_years(
        self,
        actor: Actor,
        params: PageParams,
        school_id: str | None = None,
    ) -> tuple[list[AcademicYear], int]:
        scope = await resolve_tenant_scope(self._db, actor, school_id)
        stmt = scope.apply(select(AcademicYear), AcademicYear)
        return await fetch_page(self._db, stmt, params, AcademicYear.start_date.desc())

    async def create_academic_year(
        self,
        actor: Actor,
        request: AcademicYearCreateRequest,
    ) -> AcademicYear:
        """Create an academic year. Marking it current unmarks the others."""
        school_id = await resolve_target_school(self._db, actor, request.school_id)

        if request.is_current:
            await self._db.execute(
                update(AcademicYear)
                .where(AcademicYear.school_id == school_id)
                .values(is_current=False)
            )

        year = AcademicYear(
            name=request.name,
            start_date=request.start_date,
            end_date=request.end_date,
            is_current=request.is_current,
            school_id=school_id,
        )
        self._db.add(year)
        await self._db.commit()
        await self._db.refresh(year)

        logger.info("Academic year created: %s (school=%s)", year.id, school_id)
        return year

    async def list_calendars(
        self,
        actor: Actor,
        params: PageParams,
        school_id: str | None = None,
    ) -> tuple[list[AcademicCalendar], int]:
        scope = await resolve_tenant_scope(self._db, actor, school_id)
        stmt = scope.apply(select(AcademicCalendar), AcademicCalendar)
        return await fetch_page(self._db, stmt, params, AcademicCalendar.name.asc())

    async def create_calendar(
        self,
        actor: Actor,
        request: AcademicCalendarCreateRequest,
    ) -> AcademicCalendar:
        year = await self._get_in_scope(
            actor, AcademicYear, request.academic_year_id, "Academic year not found"
        )
        calendar = AcademicCalendar(
            name=request.name,
            description=request.description,
            academic_year_id=year.id,
            school_id=year.school_id,
        )
        self._db.add(calendar)
        await self._db.commit()
        await self._db.refresh(calendar)

        logger.info("Academic calendar created: %s (school=%s)", calendar.id, year.school_id)
        return calendar

    # =========================================================================
    # Terms
    # =========================================================================

    async def list_terms(
        self,
        actor: Actor,
        params: PageParams,
        *,
        academic_year_id: str | None = None,
        school_id: str | None = None,
    ) -> tuple[list[Term], int]:
        scope = await resolve_tenant_scope(self._db, actor, school_id)
        stmt = scope.apply(select(Term), Term)
        if academic_year_id:
            stmt = stmt.where(Term.academic_year_id == academic_year_id)

        terms, total = await fetch_page(self._db, stmt, params, Term.start_date.asc())
        logger.info("Terms retrieved: user=%s, page=%d, total=%d", actor.id, params.page, total)
        return terms, total

    async def get_term(self, actor: Actor, term_id: str) -> Term:
        return await self._get_in_scope(actor, Term, term_id, "Term not found")

    async def create_term(self, actor: Actor, request: TermCreateRequest) -> Term:
        """Create a term inside its academic year.

        Raises:
            CalendarNotFoundError: If the academic year is not in scope.
            InvalidCalendarDatesError: If dates are inverted or outside the year.
            TermOverlapError: If another term of the year overlaps.
        """
        year = await self._get_in_scope(
            actor, AcademicYear, request.academic_year_id, "Academic year not found"
        )
        await self._validate_term_dates(year, request.start_date, request.end_date)

        term = Term(
            name=request.name,
            start_date=request.start_date,
            end_date=request.end_date,
            is_active=True,
            academic_year_id=year.id,
            school_id=year.school_id,
        )
        self._db.add(term)
        await self._db.commit()
        await self._db.refresh(term)

        logger.info("Term created: %s (year=%s, school=%s)", term.id, year.id, year.school_id)
        return term

    async def update_term(self, actor: Actor, term_id: str, request: TermUpdateRequest) -> Term:
        term = await self._get_in_scope(actor, Term, term_id, "Term not found or access denied")
        changes = request.model_dump(exclude_unset=True, exclude_none=True)

        if "start_date" in changes or "end_date" in changes:
            year = await self._db.get(AcademicYear, term.academic_year_id)
            await self._validate_term_dates(
                year,
                changes.get("start_date", term.start_date),
                changes.get("end_date", term.end_date),
                exclude_id=term.id,
            )

        for field, value in changes.items():
            setattr(term, field, value)

        await self._db.commit()
        await self._db.refresh(term)

        logger.info("Term updated: %s", term.id)
        return term

    async def delete_term(self, actor: Actor, term_id: str) -> None:
        """Delete a term that no exam references.

        Raises:
            CalendarNotFoundError: If missing or out of scope.
            TermInUseError: If exams reference the term.
        """
        term = await self._get_in_scope(actor, Term, term_id, "Term not found or access denied")

        if await count_rows(self._db, select(Exam.id).where(Exam.term_id == term.id)):
            raise TermInUseError("Cannot delete term with existing exams")

        await self._db.delete(term)
        await self._db.commit()

        logger.info("Term deleted: %s", term_id)

    async def _validate_term_dates(
        self,
        year: AcademicYear,
        start_date: date,
        end_date: date,
        exclude_id: str | None = None,
    ) -> None:
        if end_date <= start_date:
            raise InvalidCalendarDatesError("End date must be after start date")
        if start_date < year.start_date or end_date > year.end_date:
            raise InvalidCalendarDatesError("Term dates must be within the academic year")

        stmt = select(Term).where(Term.academic_year_id == year.id)
        if exclude_id:
            stmt = stmt.where(Term.id != exclude_id)
        for other in (await self._db.execute(stmt)).scalars().all():
            if date_ranges_overlap(start_date, end_date, other.start_date, other.end_date):
                raise TermOverlapError("Term dates overlap with existing term")

    # =========================================================================
    # Holidays
    # =========================================================================

    async def list_holidays(
        self,
        actor: Actor,
        params: PageParams,
        *,
        holiday_type: str | None = None,
        school_id: str | None = None,
    ) -> tuple[list[Holiday], int]:
        scope = await resolve_tenant_scope(self._db, actor, school_id)
        stmt = scope.apply(select(Holiday), Holiday)
        if holiday_type:
            stmt = stmt.where(Holiday.holiday_type == holiday_type)
        return await fetch_page(self._db, stmt, params, Holiday.start_date.asc())

    async def create_holiday(self, actor: Actor, request: HolidayCreateRequest) -> Holiday:
        school_id = await resolve_target_school(self._db, actor, request.school_id)
        if request.end_date < request.start_date:
            raise InvalidCalendarDatesError("End date must be on or after start date")

        holiday = Holiday(
            name=request.name,
            description=request.description,
            start_date=request.start_date,
            end_date=request.end_date,
            holiday_type=request.holiday_type,
            is_recurring=request.is_recurring,
            school_id=school_id,
        )
        self._db.add(holiday)
        await self._db.commit()
        await self._db.refresh(holiday)

        logger.info("Holiday created: %s (school=%s)", holiday.id, school_id)
        return holiday

    async def update_holiday(
        self,
        actor: Actor,
        holiday_id: str,
        request: HolidayUpdateRequest,
    ) -> Holiday:
        holiday = await self._get_in_scope(
            actor, Holiday, holiday_id, "Holiday not found or access denied"
        )
        changes = request.model_dump(exclude_unset=True, exclude_none=True)

        if changes.get("end_date", holiday.end_date) < changes.get("start_date", holiday.start_date):
            raise InvalidCalendarDatesError("End date must be on or after start date")

        for field, value in changes.items():
            setattr(holiday, field, value)

        await self._db.commit()
        await self._db.refresh(holiday)

        logger.info("Holiday updated: %s", holiday.id)
        return holiday

    async def delete_holiday(self, actor: Actor, holiday_id: str) -> None:
        holiday = await self._get_in_scope(
            actor, Holiday, holiday_id, "Holiday not found or access denied"
        )
        await self._db.delete(holiday)
        await self._db.commit()

        logger.info("Holiday deleted: %s", holiday_id)

    # =========================================================================
    # Calendar items
    # =========================================================================

    async def create_calendar_item(
        self,
        actor: Actor,
        calendar_id: str,
        request: CalendarItemCreateRequest,
    ) -> CalendarItem:
        calendar = await self._get_in_scope(
            actor,
            AcademicCalendar,
            calendar_id,
            "Academic calendar not found or access denied",
        )
        if ensure_utc(request.end_date) < ensure_utc(request.start_date):
            raise InvalidCalendarDatesError("End date must be on or after start date")

        item = CalendarItem(
            title=request.title,
            description=request.description,
            item_type=request.item_type,
            start_date=request.start_date,
            end_date=request.end_date,
            is_all_day=request.is_all_day,
            academic_calendar_id=calendar.id,
            school_id=calendar.school_id,
        )
        self._db.add(item)
        await self._db.commit()
        await self._db.refresh(item)

        logger.info("Calendar item created: %s (calendar=%s)", item.id, calendar.id)
        return item

    async def list_calendar_items(
        self,
        actor: Actor,
        calendar_id: str,
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> list[CalendarItem]:
        """List the items of a calendar, optionally limited to a date range."""
        calendar = await self._get_in_scope(
            actor,
            AcademicCalendar,
            calendar_id,
            "Academic calendar not found or access denied",
        )
        stmt = select(CalendarItem).where(CalendarItem.academic_calendar_id == calendar.id)
        if start_date and end_date:
            range_start, range_end = _datetime_window(start_date, end_date)
            stmt = stmt.where(
                CalendarItem.start_date < range_end,
                CalendarItem.end_date >= range_start,
            )

        result = await self._db.execute(stmt.order_by(CalendarItem.start_date.asc()))
        return list(result.scalars().all())

    async def delete_calendar_item(self, actor: Actor, item_id: str) -> None:
        item = await self._get_in_scope(
            actor, CalendarItem, item_id, "Calendar item not found or access denied"
        )
        await self._db.delete(item)
        await self._db.commit()

        logger.info("Calendar item deleted: %s", item_id)

    # =========================================================================
    # Overview
    # =========================================================================

    async def get_overview(
        self,
        actor: Actor,
        start_date: date,
        end_date: date,
    ) -> dict[str, list[Any]]:
        """Collect everything on the calendar that overlaps a date range.

        Returns:
            Dict with terms, holidays, non-cancelled exams and calendar items.

        Raises:
            InvalidCalendarDatesError: If the range is inverted.
        """
        if end_date < start_date:
            raise InvalidCalendarDatesError("End date must be on or after start date")

        scope = await resolve_tenant_scope(self._db, actor)
        range_start, range_end = _datetime_window(start_date, end_date)

        terms = await self._scoped_all(
            scope,
            Term,
            Term.start_date <= end_date,
            Term.end_date >= start_date,
            order_by=Term.start_date,
        )
        holidays = await self._scoped_all(
            scope,
            Holiday,
            Holiday.start_date <= end_date,
            Holiday.end_date >= start_date,
            order_by=Holiday.start_date,
        )

        exam_stmt = scope.apply(
            select(Exam).where(
                Exam.start_date < range_end,
                Exam.end_date >= range_start,
                Exam.status != ExamStatus.CANCELLED,
            ),
            Exam,
            class_column="class_id",
            school_wide=Exam.class_id.is_(None),
        )
        if actor.is_parent:
            exam_stmt = exam_stmt.where(Exam.status != ExamStatus.DRAFT)
        exams = list(
            (await self._db.execute(exam_stmt.order_by(Exam.start_date))).scalars().all()
        )

        items = await self._scoped_all(
            scope,
            CalendarItem,
            CalendarItem.start_date < range_end,
            CalendarItem.end_date >= range_start,
            order_by=CalendarItem.start_date,
        )

        logger.info(
            "Calendar overview retrieved: user=%s, start=%s, end=%s",
            actor.id,
            start_date,
            end_date,
        )
        return {
            "terms": terms,
            "holidays": holidays,
            "exams": exams,
            "calendar_items": items,
        }

    async def _scoped_all(
        self,
        scope: TenantScope,
        model: Any,
        *criteria: Any,
        order_by: Any,
    ) -> list[Any]:
        stmt = scope.apply(select(model).where(*criteria), model).order_by(order_by)
        return list((await self._db.execute(stmt)).scalars().all())


def _datetime_window(start_date: date, end_date: date) -> tuple[datetime, datetime]:
    """Half-open UTC datetime window covering whole days start..end."""
    start = datetime.combine(start_date, time.min, tzinfo=timezone.utc)
    end = datetime.combine(end_date + timedelta(days=1), time.min, tzinfo=timezone.utc)
    return start, end
