# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""API v1 routes package.

This package contains all v1 API endpoint definitions.
Each module provides a FastAPI router for a specific domain.

Modules:
    auth: Registration, login, token refresh, logout and password reset.
    assignments: Assignments, file uploads and parent submissions.
    subjects: Subjects and their teachers.
    grades: School grade levels.
    classes: Classes and their enrollment.
    students: Students and their parent links.
    rooms: School rooms.
    lessons: Weekly class timetable.
    exams: Exams and exam sessions.
    calendar: Academic years, terms, holidays and calendar items.
    users: User management.
    schools: School management and verification.
    approvals: Principal and teacher registration review.
    dashboard: Per-role dashboards.
    notifications: Notification inbox, broadcast and preferences.
"""

from fastapi import APIRouter

from src.api.v1 import (
    approvals,
    assignments,
    auth,
    calendar,
    classes,
    dashboard,
    exams,
    grades,
    lessons,
    notifications,
    rooms,
    schools,
    students,
    subjects,
    users,
)

# Create the main v1 router
router = APIRouter(prefix="/api/v1")

# Include domain routers
router.include_router(auth.router, prefix="/auth", tags=["Authentication"])
router.include_router(assignments.router, prefix="/assignments", tags=["Assignments"])
router.include_router(subjects.router, prefix="/subjects", tags=["Subjects"])
router.include_router(grades.router, prefix="/grades", tags=["Grades"])
router.include_router(classes.router, prefix="/classes", tags=["Classes"])
router.include_router(students.router, prefix="/students", tags=["Students"])
router.include_router(rooms.router, prefix="/rooms", tags=["Rooms"])
router.include_router(lessons.router, prefix="/lessons", tags=["Lessons"])
router.include_router(exams.router, prefix="/exams", tags=["Exams"])
router.include_router(calendar.router, prefix="/calendar", tags=["Calendar"])
router.include_router(users.router, prefix="/users", tags=["Users"])
router.include_router(schools.router, prefix="/schools", tags=["Schools"])
router.include_router(approvals.router, prefix="/approvals", tags=["Approvals"])
router.include_router(dashboard.router, prefix="/dashboard", tags=["Dashboard"])
router.include_router(notifications.router, prefix="/notifications", tags=["Notifications"])

__all__ = ["router"]
