"""EduTrack Backend.

Multi-tenant school management API: schools, users, academic structure,
assignments, exams, calendars and notifications.

Copyright (C) 2025 Global Digital Labs (gdlabs.io)
SPDX-License-Identifier: LGPL-3.0-or-later
"""

__version__ = "0.1.0"
