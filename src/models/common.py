# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Shared enumerations and response envelopes.

Enumerations are StrEnum so their values can be written straight into
String columns and compared with the plain strings read back.
"""

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field

from src.utils.pagination import Pagination


class Role(StrEnum):
    """User roles."""

    SUPER_ADMIN = "SUPER_ADMIN"
    SCHOOL_ADMIN = "SCHOOL_ADMIN"
    PRINCIPAL = "PRINCIPAL"
    TEACHER = "TEACHER"
    PARENT = "PARENT"


# Roles whose profile row carries a school_id
SCHOOL_BOUND_ROLES = frozenset({Role.SCHOOL_ADMIN, Role.PRINCIPAL, Role.TEACHER})

# Roles that go through the registration approval workflow
APPROVAL_ROLES = frozenset({Role.PRINCIPAL, Role.TEACHER})

# Roles allowed to manage school-level academic data
SCHOOL_MANAGER_ROLES = frozenset({Role.SUPER_ADMIN, Role.SCHOOL_ADMIN, Role.PRINCIPAL})


class ApprovalStatus(StrEnum):
    """Registration approval state."""

    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class AssignmentType(StrEnum):
    INDIVIDUAL = "INDIVIDUAL"
    GROUP = "GROUP"
    CLASS_WIDE = "CLASS_WIDE"


class ExamType(StrEnum):
    WRITTEN = "WRITTEN"
    PRACTICAL = "PRACTICAL"
    ORAL = "ORAL"
    PROJECT = "PROJECT"
    CONTINUOUS_ASSESSMENT = "CONTINUOUS_ASSESSMENT"
    FINAL_EXAM = "FINAL_EXAM"
    MID_TERM = "MID_TERM"
    QUIZ = "QUIZ"


class ExamStatus(StrEnum):
    DRAFT = "DRAFT"
    PUBLISHED = "PUBLISHED"
    ONGOING = "ONGOING"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class ExamSessionStatus(StrEnum):
    SCHEDULED = "SCHEDULED"
    ONGOING = "ONGOING"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"
    POSTPONED = "POSTPONED"


class HolidayType(StrEnum):
    PUBLIC = "PUBLIC"
    SCHOOL_SPECIFIC = "SCHOOL_SPECIFIC"
    RELIGIOUS = "RELIGIOUS"
    NATIONAL = "NATIONAL"
    REGIONAL = "REGIONAL"


class CalendarItemType(StrEnum):
    HOLIDAY = "HOLIDAY"
    EXAM_PERIOD = "EXAM_PERIOD"
    TERM_START = "TERM_START"
    TERM_END = "TERM_END"
    SPECIAL_EVENT = "SPECIAL_EVENT"
    SPORTS_DAY = "SPORTS_DAY"
    PARENT_TEACHER_MEETING = "PARENT_TEACHER_MEETING"
    OTHER = "OTHER"


class NotificationType(StrEnum):
    ATTENDANCE = "ATTENDANCE"
    ASSIGNMENT = "ASSIGNMENT"
    EXAM = "EXAM"
    RESULT = "RESULT"
    PAYMENT = "PAYMENT"
    ANNOUNCEMENT = "ANNOUNCEMENT"
    EVENT = "EVENT"
    MESSAGE = "MESSAGE"
    APPROVAL = "APPROVAL"
    REMINDER = "REMINDER"
    GENERAL = "GENERAL"


class DayOfWeek(StrEnum):
    MONDAY = "MONDAY"
    TUESDAY = "TUESDAY"
    WEDNESDAY = "WEDNESDAY"
    THURSDAY = "THURSDAY"
    FRIDAY = "FRIDAY"
    SATURDAY = "SATURDAY"
    SUNDAY = "SUNDAY"


class NotificationPriority(StrEnum):
    LOW = "LOW"
    NORMAL = "NORMAL"
    HIGH = "HIGH"
    URGENT = "URGENT"


class ORMModel(BaseModel):
    """Base for response models built from ORM rows."""

    model_config = ConfigDict(from_attributes=True)


class MessageResponse(BaseModel):
    """Envelope carrying only a human-readable message."""

    message: str = Field(description="Human-readable result message")


class PaginatedResponse(MessageResponse):
    """Envelope for list endpoints."""

    pagination: Pagination


class ErrorDetail(BaseModel):
    """A single field-level validation error."""

    field: str
    message: str


class ErrorResponse(BaseModel):
    """Body returned for every failed request."""

    message: str
    errors: list[ErrorDetail] | None = None
