# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Notification API endpoints.

This module provides endpoints for notifications:
- GET / - List the caller's notifications with the unread count
- POST / - Broadcast a notification (school managers)
- GET /stats - Counts by priority and type, plus 7-day activity
- PATCH /read - Mark selected notifications as read
- PATCH /read-all - Mark every notification as read
- GET /preferences - Get delivery preferences
- PUT /preferences - Replace delivery preferences
- DELETE /{notification_id} - Delete one notification

Reading endpoints only require a valid token so that users still pending
approval can see the outcome of their review.
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.dependencies import RequireRole, get_db, require_auth
from src.api.middleware.auth import CurrentUser
from src.domains.notification import NotificationService
from src.domains.notification.service import PREVIEW_SIZE
from src.models.common import (
    SCHOOL_MANAGER_ROLES,
    MessageResponse,
    NotificationPriority,
    NotificationType,
)
from src.models.notification import (
    MarkReadRequest,
    MarkReadResponse,
    NotificationBroadcastResponse,
    NotificationCreateRequest,
    NotificationListResponse,
    NotificationPreferences,
    NotificationPreferencesResponse,
    NotificationResponse,
    NotificationStatsResponse,
)
from src.utils.pagination import MAX_LIMIT, PageParams, Pagination

logger = logging.getLogger(__name__)

router = APIRouter()

DEFAULT_NOTIFICATION_LIMIT = 20

require_sender = RequireRole(*SCHOOL_MANAGER_ROLES)


def get_notification_service(db: AsyncSession = Depends(get_db)) -> NotificationService:
    return NotificationService(db)


@router.get("", response_model=NotificationListResponse, summary="List notifications")
async def list_notifications(
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_NOTIFICATION_LIMIT, ge=1, le=MAX_LIMIT),
    unread_only: bool = Query(False),
    notification_type: NotificationType | None = Query(None, alias="type"),
    priority: NotificationPriority | None = Query(None),
    current_user: CurrentUser = Depends(require_auth),
    service: NotificationService = Depends(get_notification_service),
) -> NotificationListResponse:
    params = PageParams.normalize(page, limit)
    notifications, total, unread = await service.list_notifications(
        current_user.id,
        params,
        unread_only=unread_only,
        type=notification_type,
        priority=priority,
    )
    return NotificationListResponse(
        message="Notifications retrieved successfully",
        notifications=[NotificationResponse.model_validate(n) for n in notifications],
        unread_count=unread,
        pagination=Pagination.build(params, total),
    )


@router.post(
    "",
    response_model=NotificationBroadcastResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Broadcast a notification",
)
async def broadcast_notification(
    body: NotificationCreateRequest,
    current_user: CurrentUser = Depends(require_sender),
    service: NotificationService = Depends(get_notification_service),
) -> NotificationBroadcastResponse:
    notifications = await service.broadcast(current_user.to_actor(), body)
    return NotificationBroadcastResponse(
        message="Notifications sent successfully",
        notification_count=len(notifications),
        notifications=[
            NotificationResponse.model_validate(n) for n in notifications[:PREVIEW_SIZE]
        ],
    )


@router.get("/stats", response_model=NotificationStatsResponse, summary="Notification statistics")
async def get_stats(
    current_user: CurrentUser = Depends(require_auth),
    service: NotificationService = Depends(get_notification_service),
) -> NotificationStatsResponse:
    return await service.get_stats(current_user.id)


@router.patch("/read", response_model=MarkReadResponse, summary="Mark notifications as read")
async def mark_read(
    body: MarkReadRequest,
    current_user: CurrentUser = Depends(require_auth),
    service: NotificationService = Depends(get_notification_service),
) -> MarkReadResponse:
    updated = await service.mark_read(
        current_user.id, [str(notification_id) for notification_id in body.notification_ids]
    )
    return MarkReadResponse(message="Notifications marked as read", updated_count=updated)


@router.patch(
    "/read-all",
    response_model=MarkReadResponse,
    summary="Mark all notifications as read",
)
async def mark_all_read(
    current_user: CurrentUser = Depends(require_auth),
    service: NotificationService = Depends(get_notification_service),
) -> MarkReadResponse:
    updated = await service.mark_all_read(current_user.id)
    return MarkReadResponse(message="All notifications marked as read", updated_count=updated)


@router.get(
    "/preferences",
    response_model=NotificationPreferencesResponse,
    summary="Get notification preferences",
)
async def get_preferences(
    current_user: CurrentUser = Depends(require_auth),
    service: NotificationService = Depends(get_notification_service),
) -> NotificationPreferencesResponse:
    preferences = await service.get_preferences(current_user.id)
    return NotificationPreferencesResponse(
        message="Notification preferences retrieved successfully",
        preferences=preferences,
    )


@router.put(
    "/preferences",
    response_model=NotificationPreferencesResponse,
    summary="Update notification preferences",
)
async def update_preferences(
    body: NotificationPreferences,
    current_user: CurrentUser = Depends(require_auth),
    service: NotificationService = Depends(get_notification_service),
) -> NotificationPreferencesResponse:
    preferences = await service.update_preferences(current_user.id, body)
    return NotificationPreferencesResponse(
        message="Notification preferences updated successfully",
        preferences=preferences,
    )


@router.delete(
    "/{notification_id}",
    response_model=MessageResponse,
    summary="Delete a notification",
)
async def delete_notification(
    notification_id: UUID,
    current_user: CurrentUser = Depends(require_auth),
    service: NotificationService = Depends(get_notification_service),
) -> MessageResponse:
    await service.delete_notification(current_user.id, str(notification_id))
    return MessageResponse(message="Notification deleted successfully")
