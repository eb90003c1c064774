# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Integration tests for the role dashboards."""

from datetime import timedelta

import pytest

from src.infrastructure.database.models import Assignment, Notification, Result
from src.models.common import ApprovalStatus, Role
from src.utils.datetime import utc_now

pytestmark = pytest.mark.integration


class TestDashboardAccess:
    """Each dashboard is reserved for its role."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("path", "role"),
        [
            ("super-admin", Role.PARENT),
            ("school-admin", Role.PRINCIPAL),
            ("principal", Role.SCHOOL_ADMIN),
            ("teacher", Role.PRINCIPAL),
            ("parent", Role.TEACHER),
        ],
    )
    async def test_wrong_role_is_forbidden(self, client, factory, path, role):
        school = await factory.school()
        user = await factory.user(role, None if role == Role.PARENT else school)

        response = await client.get(
            f"/api/v1/dashboard/{path}", headers=factory.headers(user, school)
        )

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_requires_token(self, client):
        response = await client.get("/api/v1/dashboard/parent")

        assert response.status_code == 401


class TestSuperAdminDashboard:
    @pytest.mark.asyncio
    async def test_overview(self, client, factory):
        admin = await factory.user(Role.SUPER_ADMIN)
        verified = await factory.school()
        await factory.school(is_verified=False)
        await factory.student(verified)
        await factory.user(Role.TEACHER, verified)

        response = await client.get(
            "/api/v1/dashboard/super-admin", headers=factory.headers(admin)
        )

        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "Dashboard data retrieved successfully"
        overview = body["dashboard"]["overview"]
        assert overview["total_schools"] == 2
        assert overview["verified_schools"] == 1
        assert overview["pending_schools"] == 1
        assert overview["total_users"] == 2
        assert overview["total_students"] == 1
        assert body["dashboard"]["users_by_role"] == {"SUPER_ADMIN": 1, "TEACHER": 1}
        assert len(body["dashboard"]["recent_schools"]) == 2


class TestSchoolDashboard:
    @pytest.mark.asyncio
    async def test_principal_overview(self, client, factory):
        school = await factory.school()
        other = await factory.school()
        principal = await factory.user(Role.PRINCIPAL, school)
        await factory.user(Role.TEACHER, school)
        await factory.user(Role.TEACHER, school, approval_status=ApprovalStatus.PENDING)
        await factory.user(Role.TEACHER, other, approval_status=ApprovalStatus.PENDING)
        await factory.class_(school)
        await factory.student(school)
        await factory.subject(school)

        response = await client.get(
            "/api/v1/dashboard/principal", headers=factory.headers(principal, school)
        )

        overview = response.json()["dashboard"]["overview"]
        assert overview == {
            "total_students": 1,
            "total_teachers": 2,
            "total_classes": 1,
            "total_subjects": 1,
            "pending_approvals": 1,
        }

    @pytest.mark.asyncio
    async def test_recent_assignments_and_upcoming_exams(self, client, factory, db_session):
        school = await factory.school()
        admin = await factory.user(Role.SCHOOL_ADMIN, school)
        teacher = await factory.user(Role.TEACHER, school)
        subject = await factory.subject(school, teacher)
        headers = factory.headers(admin, school)
        now = utc_now()
        db_session.add(
            Assignment(
                title="Essay",
                start_date=now,
                due_date=now + timedelta(days=3),
                subject_id=subject.id,
                teacher_id=teacher.id,
                school_id=school.id,
            )
        )
        await db_session.commit()

        start = now + timedelta(days=10)
        exam_body = {
            "title": "Finals",
            "exam_type": "FINAL_EXAM",
            "total_marks": 100,
            "passing_marks": 40,
            "duration_minutes": 60,
            "start_date": start.isoformat(),
            "end_date": (start + timedelta(hours=1)).isoformat(),
            "subject_id": subject.id,
        }
        published = await client.post("/api/v1/exams", json=exam_body, headers=headers)
        await client.put(
            f"/api/v1/exams/{published.json()['exam']['id']}",
            json={"status": "PUBLISHED"},
            headers=headers,
        )
        await client.post(
            "/api/v1/exams", json={**exam_body, "title": "Draft"}, headers=headers
        )

        response = await client.get("/api/v1/dashboard/school-admin", headers=headers)

        dashboard = response.json()["dashboard"]
        assert [a["title"] for a in dashboard["recent_assignments"]] == ["Essay"]
        assert [e["title"] for e in dashboard["upcoming_exams"]] == ["Finals"]


class TestTeacherDashboard:
    @pytest.mark.asyncio
    async def test_classes_subjects_and_pending(self, client, factory, db_session):
        school = await factory.school()
        teacher = await factory.user(Role.TEACHER, school)
        klass = await factory.class_(school, supervisor=teacher)
        await factory.class_(school)
        await factory.student(school, klass=klass)
        await factory.student(school, klass=klass)
        subject = await factory.subject(school, teacher, name="Biology")
        now = utc_now()
        db_session.add_all(
            [
                Assignment(
                    title="Open",
                    start_date=now - timedelta(days=1),
                    due_date=now + timedelta(days=1),
                    subject_id=subject.id,
                    class_id=klass.id,
                    teacher_id=teacher.id,
                    school_id=school.id,
                ),
                Assignment(
                    title="Upcoming",
                    start_date=now + timedelta(days=1),
                    due_date=now + timedelta(days=5),
                    subject_id=subject.id,
                    class_id=klass.id,
                    teacher_id=teacher.id,
                    school_id=school.id,
                ),
            ]
        )
        await db_session.commit()

        response = await client.get(
            "/api/v1/dashboard/teacher", headers=factory.headers(teacher, school)
        )

        dashboard = response.json()["dashboard"]
        assert dashboard["overview"] == {
            "total_classes": 1,
            "total_subjects": 1,
            "total_assignments": 2,
            "pending_submissions": 1,
        }
        assert dashboard["my_classes"][0]["id"] == klass.id
        assert dashboard["my_classes"][0]["student_count"] == 2
        assert [s["name"] for s in dashboard["my_subjects"]] == ["Biology"]

    @pytest.mark.asyncio
    async def test_pending_teacher_is_refused(self, client, factory):
        school = await factory.school()
        teacher = await factory.user(Role.TEACHER, school, approval_status=ApprovalStatus.PENDING)

        response = await client.get(
            "/api/v1/dashboard/teacher",
            headers=factory.headers(teacher, school, approval_status=ApprovalStatus.PENDING),
        )

        assert response.status_code == 403
        assert response.json()["message"] == "Account pending approval"


class TestParentDashboard:
    @pytest.mark.asyncio
    async def test_children_results_and_notifications(self, client, factory, db_session):
        school = await factory.school()
        other = await factory.school()
        parent = await factory.user(Role.PARENT)
        klass = await factory.class_(school)
        first = await factory.student(school, parent, klass)
        await factory.student(other, parent)
        await factory.student(school)
        db_session.add_all(
            [
                Result(student_id=first.id, score=88, max_score=100, school_id=school.id),
                Notification(user_id=parent.id, title="Hello", content="Welcome"),
                Notification(user_id=parent.id, title="Read", content="Old", is_read=True),
            ]
        )
        await db_session.commit()

        response = await client.get("/api/v1/dashboard/parent", headers=factory.headers(parent))

        dashboard = response.json()["dashboard"]
        assert dashboard["overview"] == {
            "total_children": 2,
            "schools_count": 2,
            "unread_notifications": 1,
        }
        class_names = {c["id"]: c["class_name"] for c in dashboard["children"]}
        assert class_names[first.id] == klass.name
        assert [r["score"] for r in dashboard["recent_results"]] == [88.0]
        assert len(dashboard["recent_notifications"]) == 2

    @pytest.mark.asyncio
    async def test_parent_without_children(self, client, factory):
        parent = await factory.user(Role.PARENT)

        response = await client.get("/api/v1/dashboard/parent", headers=factory.headers(parent))

        assert response.status_code == 200
        assert response.json()["dashboard"]["children"] == []
        assert response.json()["dashboard"]["recent_results"] == []
