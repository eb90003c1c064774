# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Notification service for in-app notifications.

This module provides the NotificationService that handles:
- Fan-out of one notification row per recipient
- Recipient resolution from explicit IDs or role/class selectors
- Listing, read tracking, deletion and statistics of a user's inbox
- Per-user delivery preferences

Other services call notify_users() to queue notifications inside their own
transaction; it adds rows to the session without committing.

Example:
    >>> service = NotificationService(db)
    >>> created = await service.broadcast(actor, request)
    >>> items, total, unread = await service.list_notifications(user_id, params)
"""

import logging
from collections.abc import Iterable
from datetime import timedelta
from typing import Any

from sqlalchemy import Select, delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.exceptions import NotFoundError, ServiceError, ValidationFailedError
from src.domains.tenancy import Actor
from src.infrastructure.database.models import (
    Notification,
    NotificationPreference,
    Principal,
    SchoolAdmin,
    Student,
    Teacher,
    User,
)
from src.models.common import NotificationPriority, NotificationType, Role
from src.models.notification import (
    DailyCount,
    NotificationCreateRequest,
    NotificationOverview,
    NotificationPreferences,
    NotificationStatsResponse,
)
from src.utils.datetime import ensure_utc, utc_now
from src.utils.pagination import PageParams

logger = logging.getLogger(__name__)

PREVIEW_SIZE = 5
STATS_WINDOW_DAYS = 7


class NotificationServiceError(ServiceError):
    """Base exception for notification service errors."""

    pass


class NotificationNotFoundError(NotificationServiceError, NotFoundError):
    """Raised when a notification does not exist in the caller's inbox."""

    pass


class NoRecipientsError(NotificationServiceError, ValidationFailedError):
    """Raised when a broadcast resolves to no users."""

    pass


class NotificationService:
    """Service for creating and reading notifications.

    Attributes:
        _db: Async database session.
    """

    def __init__(self, db: AsyncSession) -> None:
        self._db = db

    def notify_users(
        self,
        user_ids: Iterable[str],
        *,
        title: str,
        content: str,
        type: str = NotificationType.GENERAL,
        priority: str = NotificationPriority.NORMAL,
        data: dict[str, Any] | None = None,
        action_url: str | None = None,
        image_url: str | None = None,
        sender_id: str | None = None,
    ) -> list[Notification]:
        """Queue one notification per user on the session.

        Duplicate user IDs are collapsed. Nothing is flushed or committed;
        the caller owns the transaction.

        Returns:
            The notification rows added to the session.
        """
        notifications = [
            Notification(
                user_id=str(user_id),
                title=title,
                content=content,
                type=type,
                priority=priority,
                data=data,
                action_url=action_url,
                image_url=image_url,
                sender_id=sender_id,
                is_read=False,
            )
            for user_id in dict.fromkeys(str(u) for u in user_ids)
        ]
        self._db.add_all(notifications)
        return notifications

    async def broadcast(
        self,
        actor: Actor,
        request: NotificationCreateRequest,
    ) -> list[Notification]:
        """Create a notification for every resolved recipient.

        Args:
            actor: The sender.
            request: Content and targeting.

        Returns:
            Created notifications.

        Raises:
            NoRecipientsError: If targeting resolves to nobody.
        """
        recipients = await self.resolve_recipients(actor, request)
        if not recipients:
            raise NoRecipientsError("No target users specified")

        notifications = self.notify_users(
            recipients,
            title=request.title,
            content=request.content,
            type=request.type,
            priority=request.priority,
            data=request.data,
            action_url=request.action_url,
            image_url=request.image_url,
            sender_id=actor.id,
        )
        await self._db.commit()

        logger.info(
            "Notification broadcast: sender=%s, recipients=%d, type=%s",
            actor.id,
            len(notifications),
            request.type,
        )
        return notifications

    async def resolve_recipients(
        self,
        actor: Actor,
        request: NotificationCreateRequest,
    ) -> list[str]:
        """Turn explicit IDs and role selectors into active user IDs.

        Non super-admin senders only reach users of their own school:
        staff through their profile and parents through their children.
        """
        if actor.is_super_admin:
            school_id = str(request.school_id) if request.school_id else None
        else:
            if not actor.school_id:
                return []
            school_id = actor.school_id

        candidates: set[str] = {str(user_id) for user_id in request.target_user_ids}
        class_id = str(request.class_id) if request.class_id else None

        for role in dict.fromkeys(request.target_roles):
            stmt = self._role_members(role, school_id, class_id)
            result = await self._db.execute(stmt)
            candidates.update(str(user_id) for user_id in result.scalars().all())

        if not candidates:
            return []

        if school_id is not None and request.target_user_ids:
            allowed = await self._school_member_ids(school_id)
            candidates &= allowed

        result = await self._db.execute(
            select(User.id).where(User.id.in_(sorted(candidates)), User.is_active.is_(True))
        )
        return sorted(str(user_id) for user_id in result.scalars().all())

    def _role_members(self, role: str, school_id: str | None, class_id: str | None) -> Select:
        if role == Role.PARENT:
            stmt = select(Student.parent_id).where(Student.parent_id.is_not(None))
            if school_id:
                stmt = stmt.where(Student.school_id == school_id)
            if class_id:
                stmt = stmt.where(Student.class_id == class_id)
            return stmt.distinct()

        profile = {Role.TEACHER: Teacher, Role.PRINCIPAL: Principal, Role.SCHOOL_ADMIN: SchoolAdmin}[
            Role(role)
        ]
        stmt = select(profile.id)
        if school_id:
            stmt = stmt.where(profile.school_id == school_id)
        return stmt

    async def _school_member_ids(self, school_id: str) -> set[str]:
        members: set[str] = set()
        for profile in (Teacher, Principal, SchoolAdmin):
            result = await self._db.execute(select(profile.id).where(profile.school_id == school_id))
            members.update(str(user_id) for user_id in result.scalars().all())
        result = await self._db.execute(
            select(Student.parent_id).where(
                Student.school_id == school_id,
                Student.parent_id.is_not(None),
            )
        )
        members.update(str(user_id) for user_id in result.scalars().all())
        return members

    async def list_notifications(
        self,
        user_id: str,
        params: PageParams,
        *,
        unread_only: bool = False,
        type: str | None = None,
        priority: str | None = None,
    ) -> tuple[list[Notification], int, int]:
        """List a user's notifications, newest first.

        Returns:
            Tuple of (page of notifications, filtered total, unread count).
        """
        stmt = select(Notification).where(Notification.user_id == user_id)
        if unread_only:
            stmt = stmt.where(Notification.is_read.is_(False))
        if type:
            stmt = stmt.where(Notification.type == type)
        if priority:
            stmt = stmt.where(Notification.priority == priority)

        total = await self._count(stmt)
        unread_count = await self.unread_count(user_id)

        stmt = stmt.order_by(Notification.created_at.desc())
        stmt = stmt.offset(params.offset).limit(params.limit)
        result = await self._db.execute(stmt)

        return list(result.scalars().all()), total, unread_count

    async def unread_count(self, user_id: str) -> int:
        result = await self._db.execute(
            select(func.count(Notification.id)).where(
                Notification.user_id == user_id,
                Notification.is_read.is_(False),
            )
        )
        return result.scalar() or 0

    async def mark_read(self, user_id: str, notification_ids: Iterable[str]) -> int:
        """Mark the given notifications of the user as read.

        Returns:
            Number of notifications updated. IDs of other users are ignored.
        """
        ids = sorted({str(n) for n in notification_ids})
        result = await self._db.execute(
            update(Notification)
            .where(
                Notification.user_id == user_id,
                Notification.id.in_(ids),
                Notification.is_read.is_(False),
            )
            .values(is_read=True, read_at=utc_now())
        )
        await self._db.commit()
        return result.rowcount or 0

    async def mark_all_read(self, user_id: str) -> int:
        result = await self._db.execute(
            update(Notification)
            .where(Notification.user_id == user_id, Notification.is_read.is_(False))
            .values(is_read=True, read_at=utc_now())
        )
        await self._db.commit()
        return result.rowcount or 0

    async def delete_notification(self, user_id: str, notification_id: str) -> None:
        """Delete one of the user's notifications.

        Raises:
            NotificationNotFoundError: If it does not exist or belongs to
                someone else.
        """
        result = await self._db.execute(
            delete(Notification).where(
                Notification.id == notification_id,
                Notification.user_id == user_id,
            )
        )
        if not result.rowcount:
            raise NotificationNotFoundError("Notification not found")
        await self._db.commit()

    async def get_stats(self, user_id: str) -> NotificationStatsResponse:
        """Summarise the user's inbox."""
        own = Notification.user_id == user_id

        total = (
            await self._db.execute(select(func.count(Notification.id)).where(own))
        ).scalar() or 0
        unread = await self.unread_count(user_id)

        by_priority = {
            str(priority): count
            for priority, count in (
                await self._db.execute(
                    select(Notification.priority, func.count(Notification.id))
                    .where(own)
                    .group_by(Notification.priority)
                )
            ).all()
        }
        by_type = {
            str(kind): count
            for kind, count in (
                await self._db.execute(
                    select(Notification.type, func.count(Notification.id))
                    .where(own)
                    .group_by(Notification.type)
                )
            ).all()
        }

        # Bucket by day in Python so the query stays portable across backends
        today = utc_now().date()
        window_start = today - timedelta(days=STATS_WINDOW_DAYS - 1)
        buckets = {window_start + timedelta(days=i): 0 for i in range(STATS_WINDOW_DAYS)}
        created = await self._db.execute(
            select(Notification.created_at).where(
                own,
                Notification.created_at >= utc_now() - timedelta(days=STATS_WINDOW_DAYS),
            )
        )
        for created_at in created.scalars().all():
            day = ensure_utc(created_at).date()
            if day in buckets:
                buckets[day] += 1

        read = total - unread
        return NotificationStatsResponse(
            message="Notification statistics retrieved successfully",
            overview=NotificationOverview(
                total=total,
                unread=unread,
                read=read,
                read_rate=round(read / total * 100, 2) if total else 0.0,
            ),
            by_priority=by_priority,
            by_type=by_type,
            recent_activity=[DailyCount(date=day, count=count) for day, count in buckets.items()],
        )

    async def get_preferences(self, user_id: str) -> NotificationPreferences:
        """Return stored preferences merged over the defaults."""
        row = await self._db.get(NotificationPreference, user_id)
        if row is None:
            return NotificationPreferences()
        return NotificationPreferences.model_validate(
            {**NotificationPreferences().model_dump(mode="json"), **row.preferences}
        )

    async def update_preferences(
        self,
        user_id: str,
        preferences: NotificationPreferences,
    ) -> NotificationPreferences:
        """Replace the user's preferences."""
        payload = preferences.model_dump(mode="json")
        row = await self._db.get(NotificationPreference, user_id)
        if row is None:
            self._db.add(NotificationPreference(user_id=user_id, preferences=payload))
        else:
            row.preferences = payload
        await self._db.commit()

        logger.info("Notification preferences updated: user=%s", user_id)
        return preferences

    async def _count(self, stmt: Select) -> int:
        result = await self._db.execute(select(func.count()).select_from(stmt.subquery()))
        return result.scalar() or 0
