# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""In-app notification domain."""

from src.domains.notification.service import (
    NoRecipientsError,
    NotificationNotFoundError,
    NotificationService,
    NotificationServiceError,
)

__all__ = [
    "NotificationService",
    "NotificationServiceError",
    "NotificationNotFoundError",
    "NoRecipientsError",
]
