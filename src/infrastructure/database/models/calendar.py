# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Academic calendar models: years, terms, holidays and calendar items."""

from datetime import date, datetime

from sqlalchemy import Boolean, Date, DateTime, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from src.infrastructure.database.models.base import (
    Base,
    TimestampMixin,
    UUIDPrimaryKeyMixin,
    uuid_column,
)


class AcademicYear(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "academic_years"

    name: Mapped[str] = mapped_column(String(50), nullable=False)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    is_current: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    school_id: Mapped[str] = uuid_column(ForeignKey("schools.id"), nullable=False, index=True)


class Term(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """A term inside an academic year. Terms of one year never overlap."""

    __tablename__ = "terms"

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    academic_year_id: Mapped[str] = uuid_column(
        ForeignKey("academic_years.id"),
        nullable=False,
        index=True,
    )
    school_id: Mapped[str] = uuid_column(ForeignKey("schools.id"), nullable=False, index=True)


class Holiday(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "holidays"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    holiday_type: Mapped[str] = mapped_column(String(32), nullable=False)
    is_recurring: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    school_id: Mapped[str] = uuid_column(ForeignKey("schools.id"), nullable=False, index=True)


class AcademicCalendar(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """A named calendar grouping calendar items for one academic year."""

    __tablename__ = "academic_calendars"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    academic_year_id: Mapped[str] = uuid_column(ForeignKey("academic_years.id"), nullable=False)
    school_id: Mapped[str] = uuid_column(ForeignKey("schools.id"), nullable=False, index=True)


class CalendarItem(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "calendar_items"

    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    item_type: Mapped[str] = mapped_column(String(32), nullable=False)
    start_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    end_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    is_all_day: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    academic_calendar_id: Mapped[str] = uuid_column(
        ForeignKey("academic_calendars.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    school_id: Mapped[str] = uuid_column(ForeignKey("schools.id"), nullable=False, index=True)
