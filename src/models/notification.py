# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Notification request and response models."""

from datetime import date, datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from src.models.common import (
    MessageResponse,
    NotificationPriority,
    NotificationType,
    ORMModel,
    PaginatedResponse,
    Role,
)

# Roles that can be targeted by a broadcast
TARGETABLE_ROLES = frozenset({Role.TEACHER, Role.PARENT, Role.PRINCIPAL, Role.SCHOOL_ADMIN})


class NotificationCreateRequest(BaseModel):
    """Broadcast a notification to explicit users or to roles."""

    title: str = Field(..., min_length=1, max_length=255)
    content: str = Field(..., min_length=1)
    type: NotificationType = NotificationType.GENERAL
    priority: NotificationPriority = NotificationPriority.NORMAL
    target_user_ids: list[UUID] = Field(default_factory=list)
    target_roles: list[Role] = Field(default_factory=list)
    class_id: UUID | None = Field(
        default=None,
        description="Limit PARENT targets to parents of students in this class",
    )
    school_id: UUID | None = Field(
        default=None,
        description="For super admins, limit role targets to one school",
    )
    data: dict[str, Any] | None = None
    action_url: str | None = Field(default=None, max_length=500)
    image_url: str | None = Field(default=None, max_length=500)

    @field_validator("target_roles")
    @classmethod
    def roles_are_targetable(cls, value: list[Role]) -> list[Role]:
        invalid = [role for role in value if role not in TARGETABLE_ROLES]
        if invalid:
            raise ValueError(f"Roles cannot be targeted: {', '.join(invalid)}")
        return value


class NotificationResponse(ORMModel):
    id: UUID
    user_id: UUID
    title: str
    content: str
    type: NotificationType
    priority: NotificationPriority
    data: dict[str, Any] | None = None
    action_url: str | None = None
    image_url: str | None = None
    sender_id: UUID | None = None
    is_read: bool
    read_at: datetime | None = None
    created_at: datetime


class NotificationBroadcastResponse(MessageResponse):
    notification_count: int
    notifications: list[NotificationResponse] = Field(
        description="Preview of the first created notifications",
    )


class NotificationListResponse(PaginatedResponse):
    notifications: list[NotificationResponse]
    unread_count: int


class MarkReadRequest(BaseModel):
    notification_ids: list[UUID] = Field(..., min_length=1)


class MarkReadResponse(MessageResponse):
    updated_count: int


class NotificationOverview(BaseModel):
    total: int
    unread: int
    read: int
    read_rate: float = Field(description="Percentage of notifications read")


class DailyCount(BaseModel):
    date: date
    count: int


class NotificationStatsResponse(MessageResponse):
    overview: NotificationOverview
    by_priority: dict[str, int]
    by_type: dict[str, int]
    recent_activity: list[DailyCount]


class NotificationPreferences(BaseModel):
    """Per-user delivery preferences."""

    in_app_enabled: bool = True
    email_enabled: bool = True
    push_enabled: bool = False
    types: dict[NotificationType, bool] = Field(
        default_factory=lambda: {t: True for t in NotificationType},
    )
    quiet_hours_start: str | None = Field(default=None, pattern=r"^([01]\d|2[0-3]):[0-5]\d$")
    quiet_hours_end: str | None = Field(default=None, pattern=r"^([01]\d|2[0-3]):[0-5]\d$")


class NotificationPreferencesResponse(MessageResponse):
    preferences: NotificationPreferences
