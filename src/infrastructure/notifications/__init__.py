# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Outbound notification delivery.

In-app notifications are database rows written by
src.domains.notification; this package only handles external delivery.
"""

from src.infrastructure.notifications.email import EmailSender

__all__ = ["EmailSender"]
