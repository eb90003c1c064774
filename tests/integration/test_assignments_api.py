# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Integration tests for the assignments API."""

from datetime import timedelta

import pytest
from sqlalchemy import select

from src.infrastructure.database.models import AssignmentSubmission, Notification
from src.models.common import NotificationType, Role
from src.utils.datetime import utc_now

pytestmark = pytest.mark.integration


def assignment_payload(subject_id: str, class_id: str | None = None, **overrides) -> dict:
    now = utc_now()
    payload = {
        "title": "Fractions worksheet",
        "description": "Pages 10-12",
        "start_date": (now - timedelta(days=1)).isoformat(),
        "due_date": (now + timedelta(days=7)).isoformat(),
        "subject_id": subject_id,
    }
    if class_id:
        payload["class_id"] = class_id
    payload.update(overrides)
    return payload


@pytest.fixture
async def classroom(factory):
    """A school with a teacher, a subject, a class and two families."""
    school = await factory.school()
    teacher = await factory.user(Role.TEACHER, school)
    subject = await factory.subject(school, teacher, name="Mathematics")
    klass = await factory.class_(school)
    parent_a = await factory.user(Role.PARENT)
    parent_b = await factory.user(Role.PARENT)
    twins = [
        await factory.student(school, parent_a, klass),
        await factory.student(school, parent_a, klass),
    ]
    only_child = await factory.student(school, parent_b, klass)
    return {
        "school": school,
        "teacher": teacher,
        "subject": subject,
        "class": klass,
        "parent_a": parent_a,
        "parent_b": parent_b,
        "twins": twins,
        "only_child": only_child,
    }


async def create_assignment(client, factory, classroom, **overrides) -> dict:
    response = await client.post(
        "/api/v1/assignments",
        json=assignment_payload(classroom["subject"].id, classroom["class"].id, **overrides),
        headers=factory.headers(classroom["teacher"], classroom["school"]),
    )
    assert response.status_code == 201, response.text
    return response.json()


class TestCreateAssignment:
    """Tests for POST /api/v1/assignments."""

    @pytest.mark.asyncio
    async def test_one_notification_per_enrolled_student(
        self, client, factory, classroom, session_factory
    ):
        body = await create_assignment(client, factory, classroom)

        assert body["message"] == "Assignment created successfully"
        assert body["notifications_sent"] == 3
        assert body["assignment"]["teacher_id"] == classroom["teacher"].id
        assert body["assignment"]["school_id"] == classroom["school"].id

        async with session_factory() as session:
            rows = (
                await session.execute(
                    select(Notification).where(Notification.type == NotificationType.ASSIGNMENT)
                )
            ).scalars().all()

        assert len(rows) == 3
        twins_notes = [row for row in rows if row.user_id == classroom["parent_a"].id]
        only_child_notes = [row for row in rows if row.user_id == classroom["parent_b"].id]
        assert sorted(row.data["student_id"] for row in twins_notes) == sorted(
            s.id for s in classroom["twins"]
        )
        assert [row.data["student_id"] for row in only_child_notes] == [
            classroom["only_child"].id
        ]
        assert all("Mathematics" in row.content for row in rows)

    @pytest.mark.asyncio
    async def test_teacher_must_teach_subject(self, client, factory, classroom):
        other_teacher = await factory.user(Role.TEACHER, classroom["school"])

        response = await client.post(
            "/api/v1/assignments",
            json=assignment_payload(classroom["subject"].id),
            headers=factory.headers(other_teacher, classroom["school"]),
        )

        assert response.status_code == 404
        assert response.json()["message"] == "Subject not found or access denied"

    @pytest.mark.asyncio
    async def test_manager_must_name_teacher(self, client, factory, classroom):
        principal = await factory.user(Role.PRINCIPAL, classroom["school"])
        headers = factory.headers(principal, classroom["school"])

        missing = await client.post(
            "/api/v1/assignments",
            json=assignment_payload(classroom["subject"].id),
            headers=headers,
        )
        named = await client.post(
            "/api/v1/assignments",
            json=assignment_payload(
                classroom["subject"].id, teacher_id=classroom["teacher"].id
            ),
            headers=headers,
        )

        assert missing.status_code == 400
        assert named.status_code == 201
        assert named.json()["assignment"]["teacher_id"] == classroom["teacher"].id
        assert named.json()["notifications_sent"] == 0

    @pytest.mark.asyncio
    async def test_due_date_must_follow_start(self, client, factory, classroom):
        now = utc_now()

        response = await client.post(
            "/api/v1/assignments",
            json=assignment_payload(
                classroom["subject"].id,
                start_date=now.isoformat(),
                due_date=(now - timedelta(days=1)).isoformat(),
            ),
            headers=factory.headers(classroom["teacher"], classroom["school"]),
        )

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_mixed_naive_and_aware_dates(self, client, factory, classroom):
        headers = factory.headers(classroom["teacher"], classroom["school"])

        created = await client.post(
            "/api/v1/assignments",
            json=assignment_payload(
                classroom["subject"].id,
                start_date="2030-01-01T00:00:00",
                due_date="2030-01-02T00:00:00Z",
            ),
            headers=headers,
        )
        inverted = await client.post(
            "/api/v1/assignments",
            json=assignment_payload(
                classroom["subject"].id,
                start_date="2030-01-02T00:00:00Z",
                due_date="2030-01-01T00:00:00",
            ),
            headers=headers,
        )

        assert created.status_code == 201
        assert created.json()["assignment"]["start_date"].startswith("2030-01-01T00:00:00")
        assert inverted.status_code == 400

    @pytest.mark.asyncio
    async def test_parent_cannot_create(self, client, factory, classroom):
        response = await client.post(
            "/api/v1/assignments",
            json=assignment_payload(classroom["subject"].id),
            headers=factory.headers(classroom["parent_a"]),
        )

        assert response.status_code == 403


class TestAssignmentVisibility:
    """Tests for listing and reading assignments."""

    @pytest.mark.asyncio
    async def test_teacher_sees_only_own(self, client, factory, classroom):
        await create_assignment(client, factory, classroom)
        colleague = await factory.user(Role.TEACHER, classroom["school"])

        own = await client.get(
            "/api/v1/assignments",
            headers=factory.headers(classroom["teacher"], classroom["school"]),
        )
        other = await client.get(
            "/api/v1/assignments", headers=factory.headers(colleague, classroom["school"])
        )

        assert own.json()["pagination"]["total"] == 1
        assert other.json()["pagination"]["total"] == 0

    @pytest.mark.asyncio
    async def test_parent_sees_child_class(self, client, factory, classroom):
        created = await create_assignment(client, factory, classroom)
        stranger = await factory.user(Role.PARENT)

        mine = await client.get(
            "/api/v1/assignments", headers=factory.headers(classroom["parent_a"])
        )
        theirs = await client.get("/api/v1/assignments", headers=factory.headers(stranger))
        detail = await client.get(
            f"/api/v1/assignments/{created['assignment']['id']}",
            headers=factory.headers(stranger),
        )

        assert [a["id"] for a in mine.json()["assignments"]] == [created["assignment"]["id"]]
        assert theirs.json()["assignments"] == []
        assert detail.status_code == 404

    @pytest.mark.asyncio
    async def test_other_school_is_invisible(self, client, factory, classroom):
        created = await create_assignment(client, factory, classroom)
        other_school = await factory.school()
        admin = await factory.user(Role.SCHOOL_ADMIN, other_school)

        response = await client.get(
            f"/api/v1/assignments/{created['assignment']['id']}",
            headers=factory.headers(admin, other_school),
        )

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_pagination(self, client, factory, classroom):
        for n in range(3):
            await create_assignment(client, factory, classroom, title=f"Task {n}")

        response = await client.get(
            "/api/v1/assignments?page=2&limit=2",
            headers=factory.headers(classroom["teacher"], classroom["school"]),
        )

        assert response.json()["pagination"] == {"page": 2, "limit": 2, "total": 3, "pages": 2}
        assert len(response.json()["assignments"]) == 1


class TestAssignmentChanges:
    """Tests for update, delete and uploads."""

    @pytest.mark.asyncio
    async def test_only_owner_teacher_updates(self, client, factory, classroom):
        created = await create_assignment(client, factory, classroom)
        url = f"/api/v1/assignments/{created['assignment']['id']}"
        colleague = await factory.user(Role.TEACHER, classroom["school"])

        denied = await client.put(
            url,
            json={"title": "Hijacked"},
            headers=factory.headers(colleague, classroom["school"]),
        )
        allowed = await client.put(
            url,
            json={"title": "Renamed"},
            headers=factory.headers(classroom["teacher"], classroom["school"]),
        )

        assert denied.status_code == 404
        assert allowed.status_code == 200
        assert allowed.json()["assignment"]["title"] == "Renamed"

    @pytest.mark.asyncio
    async def test_delete(self, client, factory, classroom):
        created = await create_assignment(client, factory, classroom)
        url = f"/api/v1/assignments/{created['assignment']['id']}"
        headers = factory.headers(classroom["teacher"], classroom["school"])

        deleted = await client.delete(url, headers=headers)
        missing = await client.get(url, headers=headers)

        assert deleted.json()["message"] == "Assignment deleted successfully"
        assert missing.status_code == 404

    @pytest.mark.asyncio
    async def test_upload_documents(self, client, factory, classroom):
        created = await create_assignment(client, factory, classroom)

        response = await client.post(
            f"/api/v1/assignments/{created['assignment']['id']}/upload",
            files=[("files", ("sheet.pdf", b"%PDF-1.4 test", "application/pdf"))],
            headers=factory.headers(classroom["teacher"], classroom["school"]),
        )

        assert response.status_code == 200
        body = response.json()
        assert len(body["document_urls"]) == 1
        assert body["assignment"]["document_urls"] == body["document_urls"]
        assert body["files"][0]["original_name"] == "sheet.pdf"

    @pytest.mark.asyncio
    async def test_upload_rejects_disallowed_type(self, client, factory, classroom):
        created = await create_assignment(client, factory, classroom)

        response = await client.post(
            f"/api/v1/assignments/{created['assignment']['id']}/upload",
            files=[("files", ("virus.exe", b"MZ", "application/octet-stream"))],
            headers=factory.headers(classroom["teacher"], classroom["school"]),
        )

        assert response.status_code == 400


class TestSubmissions:
    """Tests for parent submissions and per-student status."""

    @pytest.mark.asyncio
    async def test_parent_submits_for_child(
        self, client, factory, classroom, session_factory
    ):
        created = await create_assignment(client, factory, classroom)
        assignment_id = created["assignment"]["id"]
        child = classroom["only_child"]

        response = await client.post(
            f"/api/v1/assignments/{assignment_id}/submit",
            data={"student_id": child.id, "content": "Done!"},
            files=[("files", ("answers.txt", b"42", "text/plain"))],
            headers=factory.headers(classroom["parent_b"]),
        )

        assert response.status_code == 201
        submission = response.json()["submission"]
        assert submission["student_id"] == child.id
        assert len(submission["submission_urls"]) == 1

        status = await client.get(
            f"/api/v1/assignments/students/{child.id}",
            headers=factory.headers(classroom["parent_b"]),
        )
        assert status.json()["assignments"][0]["status"] == "submitted"

        async with session_factory() as session:
            teacher_notes = (
                await session.execute(
                    select(Notification).where(Notification.user_id == classroom["teacher"].id)
                )
            ).scalars().all()
        assert [n.title for n in teacher_notes] == ["Assignment Submitted"]

    @pytest.mark.asyncio
    async def test_resubmission_keeps_files_unless_replaced(
        self, client, factory, classroom, session_factory
    ):
        created = await create_assignment(client, factory, classroom)
        url = f"/api/v1/assignments/{created['assignment']['id']}/submit"
        child = classroom["only_child"]
        headers = factory.headers(classroom["parent_b"])

        first = await client.post(
            url,
            data={"student_id": child.id, "content": "v1"},
            files=[("files", ("draft.txt", b"draft", "text/plain"))],
            headers=headers,
        )
        await client.post(url, data={"student_id": child.id, "content": "v2"}, headers=headers)

        async with session_factory() as session:
            rows = (await session.execute(select(AssignmentSubmission))).scalars().all()
        assert [row.content for row in rows] == ["v2"]
        assert rows[0].submission_urls == first.json()["submission"]["submission_urls"]

        third = await client.post(
            url,
            data={"student_id": child.id, "content": "v3"},
            files=[("files", ("final.txt", b"final", "text/plain"))],
            headers=headers,
        )
        assert len(third.json()["submission"]["submission_urls"]) == 1
        assert third.json()["submission"]["submission_urls"] != rows[0].submission_urls

    @pytest.mark.asyncio
    async def test_cannot_submit_for_other_child(self, client, factory, classroom):
        created = await create_assignment(client, factory, classroom)

        response = await client.post(
            f"/api/v1/assignments/{created['assignment']['id']}/submit",
            data={"student_id": classroom["only_child"].id},
            headers=factory.headers(classroom["parent_a"]),
        )

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_teacher_cannot_submit(self, client, factory, classroom):
        created = await create_assignment(client, factory, classroom)

        response = await client.post(
            f"/api/v1/assignments/{created['assignment']['id']}/submit",
            data={"student_id": classroom["only_child"].id},
            headers=factory.headers(classroom["teacher"], classroom["school"]),
        )

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_deadline_passed(self, client, factory, classroom):
        now = utc_now()
        created = await create_assignment(
            client,
            factory,
            classroom,
            start_date=(now - timedelta(days=5)).isoformat(),
            due_date=(now - timedelta(days=1)).isoformat(),
        )

        response = await client.post(
            f"/api/v1/assignments/{created['assignment']['id']}/submit",
            data={"student_id": classroom["only_child"].id},
            headers=factory.headers(classroom["parent_b"]),
        )
        status = await client.get(
            f"/api/v1/assignments/students/{classroom['only_child'].id}?status=overdue",
            headers=factory.headers(classroom["parent_b"]),
        )

        assert response.status_code == 400
        assert response.json()["message"] == "Assignment submission deadline has passed"
        assert len(status.json()["assignments"]) == 1
