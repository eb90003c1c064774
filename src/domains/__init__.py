# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Domain services layer for EduTrack.

This package contains domain services that encapsulate business logic.
Each domain module provides a service that works on an async database
session and raises ServiceError subclasses on failure.

Domains:
    auth: Registration, login, tokens and password reset.
    tenancy: Per-caller row visibility and target school resolution.
    school: School management and verification.
    user: User management.
    approval: Principal and teacher registration review.
    subject: Subjects and subject teachers.
    grade: School grade levels.
    school_class: Classes and their enrollment.
    student: Students and their parent links.
    room: School rooms.
    lesson: Weekly class timetable.
    assignment: Assignments, uploads and parent submissions.
    exam: Exams and exam sessions.
    calendar: Academic years, terms, holidays and calendar items.
    notification: In-app notifications and preferences.
    dashboard: Per-role summary views.
"""
