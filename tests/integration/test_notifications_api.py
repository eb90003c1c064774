# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Integration tests for the notifications API."""

import pytest
from sqlalchemy import select

from src.infrastructure.database.models import Notification
from src.models.common import ApprovalStatus, Role

pytestmark = pytest.mark.integration


async def seed(db_session, user, count: int, **fields) -> list[Notification]:
    rows = [
        Notification(user_id=user.id, title=f"Note {i}", content="Body", **fields)
        for i in range(count)
    ]
    db_session.add_all(rows)
    await db_session.commit()
    return rows


class TestBroadcast:
    """Tests for POST /api/v1/notifications."""

    @pytest.mark.asyncio
    async def test_principal_targets_school_parents(self, client, factory, session_factory):
        school = await factory.school()
        other = await factory.school()
        principal = await factory.user(Role.PRINCIPAL, school)
        parent = await factory.user(Role.PARENT)
        stranger = await factory.user(Role.PARENT)
        await factory.student(school, parent)
        await factory.student(school, parent)
        await factory.student(other, stranger)

        response = await client.post(
            "/api/v1/notifications",
            json={"title": "Trip", "content": "Bring lunch", "target_roles": ["PARENT"]},
            headers=factory.headers(principal, school),
        )

        assert response.status_code == 201
        body = response.json()
        assert body["notification_count"] == 1
        assert body["notifications"][0]["user_id"] == parent.id
        assert body["notifications"][0]["sender_id"] == principal.id

        async with session_factory() as session:
            received = (
                await session.execute(
                    select(Notification.user_id).where(Notification.title == "Trip")
                )
            ).scalars().all()
        assert received == [parent.id]

    @pytest.mark.asyncio
    async def test_explicit_users_outside_school_are_dropped(self, client, factory):
        school = await factory.school()
        other = await factory.school()
        admin = await factory.user(Role.SCHOOL_ADMIN, school)
        colleague = await factory.user(Role.TEACHER, school)
        outsider = await factory.user(Role.TEACHER, other)

        response = await client.post(
            "/api/v1/notifications",
            json={
                "title": "Meeting",
                "content": "At noon",
                "target_user_ids": [colleague.id, outsider.id],
            },
            headers=factory.headers(admin, school),
        )

        assert response.json()["notification_count"] == 1
        assert response.json()["notifications"][0]["user_id"] == colleague.id

    @pytest.mark.asyncio
    async def test_no_recipients(self, client, factory):
        school = await factory.school()
        admin = await factory.user(Role.SCHOOL_ADMIN, school)

        response = await client.post(
            "/api/v1/notifications",
            json={"title": "Empty", "content": "Nobody", "target_roles": ["PARENT"]},
            headers=factory.headers(admin, school),
        )

        assert response.status_code == 400
        assert response.json()["message"] == "No target users specified"

    @pytest.mark.asyncio
    async def test_super_admin_is_not_targetable(self, client, factory):
        admin = await factory.user(Role.SUPER_ADMIN)

        response = await client.post(
            "/api/v1/notifications",
            json={"title": "x", "content": "y", "target_roles": ["SUPER_ADMIN"]},
            headers=factory.headers(admin),
        )

        assert response.status_code == 400
        assert response.json()["errors"]

    @pytest.mark.asyncio
    async def test_teacher_cannot_broadcast(self, client, factory):
        school = await factory.school()
        teacher = await factory.user(Role.TEACHER, school)

        response = await client.post(
            "/api/v1/notifications",
            json={"title": "x", "content": "y", "target_roles": ["PARENT"]},
            headers=factory.headers(teacher, school),
        )

        assert response.status_code == 403


class TestInbox:
    """Tests for reading and managing one's own notifications."""

    @pytest.mark.asyncio
    async def test_list_defaults_and_unread_count(self, client, factory, db_session):
        parent = await factory.user(Role.PARENT)
        await seed(db_session, parent, 22)
        await seed(db_session, parent, 3, is_read=True)

        response = await client.get("/api/v1/notifications", headers=factory.headers(parent))

        body = response.json()
        assert len(body["notifications"]) == 20
        assert body["unread_count"] == 22
        assert body["pagination"] == {"page": 1, "limit": 20, "total": 25, "pages": 2}

    @pytest.mark.asyncio
    async def test_unread_only_filter(self, client, factory, db_session):
        parent = await factory.user(Role.PARENT)
        await seed(db_session, parent, 2)
        await seed(db_session, parent, 1, is_read=True)

        response = await client.get(
            "/api/v1/notifications?unread_only=true", headers=factory.headers(parent)
        )

        assert response.json()["pagination"]["total"] == 2

    @pytest.mark.asyncio
    async def test_mark_read_ignores_foreign_ids(self, client, factory, db_session):
        parent = await factory.user(Role.PARENT)
        other = await factory.user(Role.PARENT)
        mine = await seed(db_session, parent, 2)
        theirs = await seed(db_session, other, 1)
        headers = factory.headers(parent)

        response = await client.patch(
            "/api/v1/notifications/read",
            json={"notification_ids": [mine[0].id, theirs[0].id]},
            headers=headers,
        )
        remaining = await client.patch("/api/v1/notifications/read-all", headers=headers)

        assert response.json()["updated_count"] == 1
        assert remaining.json()["updated_count"] == 1

    @pytest.mark.asyncio
    async def test_mark_read_requires_ids(self, client, factory):
        parent = await factory.user(Role.PARENT)

        response = await client.patch(
            "/api/v1/notifications/read",
            json={"notification_ids": []},
            headers=factory.headers(parent),
        )

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_stats(self, client, factory, db_session):
        parent = await factory.user(Role.PARENT)
        await seed(db_session, parent, 3, priority="HIGH")
        await seed(db_session, parent, 1, is_read=True)

        response = await client.get("/api/v1/notifications/stats", headers=factory.headers(parent))

        body = response.json()
        assert body["overview"] == {"total": 4, "unread": 3, "read": 1, "read_rate": 25.0}
        assert body["by_priority"] == {"HIGH": 3, "NORMAL": 1}
        assert body["by_type"] == {"GENERAL": 4}
        assert len(body["recent_activity"]) == 7
        assert sum(day["count"] for day in body["recent_activity"]) == 4

    @pytest.mark.asyncio
    async def test_preferences_roundtrip(self, client, factory):
        parent = await factory.user(Role.PARENT)
        headers = factory.headers(parent)

        defaults = await client.get("/api/v1/notifications/preferences", headers=headers)
        updated = await client.put(
            "/api/v1/notifications/preferences",
            json={"email_enabled": False, "quiet_hours_start": "22:00", "quiet_hours_end": "07:00"},
            headers=headers,
        )
        stored = await client.get("/api/v1/notifications/preferences", headers=headers)

        assert defaults.json()["preferences"]["email_enabled"] is True
        assert updated.status_code == 200
        assert stored.json()["preferences"]["email_enabled"] is False
        assert stored.json()["preferences"]["quiet_hours_start"] == "22:00"

    @pytest.mark.asyncio
    async def test_invalid_quiet_hours(self, client, factory):
        parent = await factory.user(Role.PARENT)

        response = await client.put(
            "/api/v1/notifications/preferences",
            json={"quiet_hours_start": "25:00"},
            headers=factory.headers(parent),
        )

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_delete_own_only(self, client, factory, db_session):
        parent = await factory.user(Role.PARENT)
        other = await factory.user(Role.PARENT)
        mine = await seed(db_session, parent, 1)
        theirs = await seed(db_session, other, 1)
        headers = factory.headers(parent)

        deleted = await client.delete(f"/api/v1/notifications/{mine[0].id}", headers=headers)
        foreign = await client.delete(f"/api/v1/notifications/{theirs[0].id}", headers=headers)

        assert deleted.json()["message"] == "Notification deleted successfully"
        assert foreign.status_code == 404

    @pytest.mark.asyncio
    async def test_pending_teacher_can_read(self, client, factory, db_session):
        school = await factory.school()
        teacher = await factory.user(Role.TEACHER, school, approval_status=ApprovalStatus.PENDING)
        await seed(db_session, teacher, 1)

        response = await client.get(
            "/api/v1/notifications",
            headers=factory.headers(teacher, school, approval_status=ApprovalStatus.PENDING),
        )

        assert response.status_code == 200
        assert response.json()["unread_count"] == 1
