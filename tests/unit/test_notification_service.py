# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for Notification service."""

from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest

from src.domains.notification import NotificationService
from src.domains.notification.service import NoRecipientsError, NotificationNotFoundError
from src.domains.tenancy import Actor
from src.models.common import NotificationPriority, NotificationType, Role
from src.models.notification import NotificationCreateRequest, NotificationPreferences


@pytest.fixture
def mock_db():
    """Create mock database session."""
    db = AsyncMock()
    db.add = MagicMock()
    db.add_all = MagicMock()
    db.commit = AsyncMock()
    db.execute = AsyncMock()
    db.get = AsyncMock()
    return db


@pytest.fixture
def notification_service(mock_db):
    return NotificationService(db=mock_db)


def create_mock_result(*, scalars=None, rowcount=None):
    """Create a mock result for scalars().all() or a DML rowcount."""
    result = MagicMock()
    result.scalars.return_value.all.return_value = scalars or []
    result.rowcount = rowcount
    return result


class TestNotifyUsers:
    """Tests for queuing notifications on the session."""

    def test_one_row_per_distinct_user(self, notification_service, mock_db):
        first, second = str(uuid4()), str(uuid4())

        rows = notification_service.notify_users(
            [first, second, first],
            title="Homework",
            content="New assignment",
            type=NotificationType.ASSIGNMENT,
        )

        assert [row.user_id for row in rows] == [first, second]
        assert all(row.is_read is False for row in rows)
        assert rows[0].type == NotificationType.ASSIGNMENT
        assert rows[0].priority == NotificationPriority.NORMAL
        mock_db.add_all.assert_called_once_with(rows)
        mock_db.commit.assert_not_awaited()

    def test_empty_recipients(self, notification_service, mock_db):
        assert notification_service.notify_users([], title="t", content="c") == []


class TestBroadcast:
    """Tests for broadcasting."""

    @pytest.mark.asyncio
    async def test_staff_without_school_reaches_nobody(self, notification_service, mock_db):
        actor = Actor(id=str(uuid4()), role=Role.PRINCIPAL)
        request = NotificationCreateRequest(
            title="Hi", content="All teachers", target_roles=[Role.TEACHER]
        )

        with pytest.raises(NoRecipientsError, match="No target users specified"):
            await notification_service.broadcast(actor, request)

        mock_db.execute.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_super_admin_explicit_users(self, notification_service, mock_db):
        actor = Actor(id=str(uuid4()), role=Role.SUPER_ADMIN)
        active = str(uuid4())
        mock_db.execute.return_value = create_mock_result(scalars=[active])
        request = NotificationCreateRequest(
            title="Maintenance",
            content="Tonight",
            target_user_ids=[active, str(uuid4())],
        )

        rows = await notification_service.broadcast(actor, request)

        assert [row.user_id for row in rows] == [active]
        assert rows[0].sender_id == actor.id
        mock_db.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_inactive_targets_only(self, notification_service, mock_db):
        actor = Actor(id=str(uuid4()), role=Role.SUPER_ADMIN)
        mock_db.execute.return_value = create_mock_result(scalars=[])
        request = NotificationCreateRequest(
            title="Maintenance", content="Tonight", target_user_ids=[str(uuid4())]
        )

        with pytest.raises(NoRecipientsError):
            await notification_service.broadcast(actor, request)

        mock_db.commit.assert_not_awaited()


class TestInbox:
    """Tests for reading and managing a user's notifications."""

    @pytest.mark.asyncio
    async def test_mark_read_returns_rowcount(self, notification_service, mock_db):
        mock_db.execute.return_value = create_mock_result(rowcount=2)

        updated = await notification_service.mark_read(str(uuid4()), [uuid4(), uuid4()])

        assert updated == 2
        mock_db.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_delete_other_users_notification(self, notification_service, mock_db):
        mock_db.execute.return_value = create_mock_result(rowcount=0)

        with pytest.raises(NotificationNotFoundError):
            await notification_service.delete_notification(str(uuid4()), str(uuid4()))

        mock_db.commit.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_default_preferences(self, notification_service, mock_db):
        mock_db.get.return_value = None

        preferences = await notification_service.get_preferences(str(uuid4()))

        assert preferences == NotificationPreferences()

    @pytest.mark.asyncio
    async def test_update_preferences_creates_row(self, notification_service, mock_db):
        mock_db.get.return_value = None
        user_id = str(uuid4())

        await notification_service.update_preferences(user_id, NotificationPreferences())

        added = mock_db.add.call_args.args[0]
        assert added.user_id == user_id
        mock_db.commit.assert_awaited_once()
