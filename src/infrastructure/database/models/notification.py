# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""In-app notification models."""

from datetime import datetime
from typing import Any

from sqlalchemy import Boolean, DateTime, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from src.infrastructure.database.models.base import (
    Base,
    TimestampMixin,
    UUIDPrimaryKeyMixin,
    uuid_column,
)


class Notification(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """A notification addressed to exactly one user."""

    __tablename__ = "notifications"

    user_id: Mapped[str] = uuid_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    type: Mapped[str] = mapped_column(String(32), nullable=False, default="GENERAL", index=True)
    priority: Mapped[str] = mapped_column(String(16), nullable=False, default="NORMAL")
    data: Mapped[dict[str, Any] | None] = mapped_column(nullable=True)
    action_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    image_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    sender_id: Mapped[str | None] = uuid_column(ForeignKey("users.id"), nullable=True)
    is_read: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False, index=True)
    read_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)


class NotificationPreference(TimestampMixin, Base):
    """Per-user delivery preferences, keyed 1:1 to the user."""

    __tablename__ = "notification_preferences"

    user_id: Mapped[str] = uuid_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        primary_key=True,
    )
    preferences: Mapped[dict[str, Any]] = mapped_column(default=dict, nullable=False)
