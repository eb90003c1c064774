# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""SQLAlchemy ORM models.

Importing this package registers every table on Base.metadata.
"""

from src.infrastructure.database.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin
from src.infrastructure.database.models.school import School
from src.infrastructure.database.models.user import (
    Approval,
    DeviceToken,
    Parent,
    Principal,
    SchoolAdmin,
    Teacher,
    User,
)
from src.infrastructure.database.models.academic import (
    Class,
    Grade,
    Lesson,
    Room,
    Student,
    Subject,
    subject_teachers,
)
from src.infrastructure.database.models.calendar import (
    AcademicCalendar,
    AcademicYear,
    CalendarItem,
    Holiday,
    Term,
)
from src.infrastructure.database.models.exam import Exam, ExamSession, exam_session_students
from src.infrastructure.database.models.assignment import Assignment, AssignmentSubmission, Result
from src.infrastructure.database.models.notification import Notification, NotificationPreference
from src.infrastructure.database.models.file import FileRecord

__all__ = [
    "Base",
    "TimestampMixin",
    "UUIDPrimaryKeyMixin",
    # Tenant
    "School",
    # Users
    "User",
    "SchoolAdmin",
    "Principal",
    "Teacher",
    "Parent",
    "Approval",
    "DeviceToken",
    # Academic
    "Grade",
    "Class",
    "Student",
    "Subject",
    "subject_teachers",
    "Lesson",
    "Room",
    # Calendar
    "AcademicYear",
    "Term",
    "Holiday",
    "AcademicCalendar",
    "CalendarItem",
    # Exams
    "Exam",
    "ExamSession",
    "exam_session_students",
    # Assignments
    "Assignment",
    "AssignmentSubmission",
    "Result",
    # Notifications
    "Notification",
    "NotificationPreference",
    # Files
    "FileRecord",
]
