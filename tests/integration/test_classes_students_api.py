# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Integration tests for the classes and students APIs."""

import pytest

from src.infrastructure.database.models import Grade, Result
from src.models.common import Role

pytestmark = pytest.mark.integration


@pytest.fixture
async def school_staff(factory):
    school = await factory.school()
    principal = await factory.user(Role.PRINCIPAL, school)
    teacher = await factory.user(Role.TEACHER, school)
    return school, principal, teacher


async def add_grade(db_session, school, level: int = 5) -> Grade:
    grade = Grade(name=f"Grade {level}", level=level, school_id=school.id)
    db_session.add(grade)
    await db_session.commit()
    return grade


class TestClasses:
    """Tests for /api/v1/classes."""

    @pytest.mark.asyncio
    async def test_create_with_grade_and_supervisor(
        self, client, factory, db_session, school_staff
    ):
        school, principal, teacher = school_staff
        grade = await add_grade(db_session, school)

        response = await client.post(
            "/api/v1/classes",
            json={
                "name": "5-A",
                "capacity": 25,
                "grade_id": grade.id,
                "supervisor_id": teacher.id,
            },
            headers=factory.headers(principal, school),
        )

        assert response.status_code == 201
        klass = response.json()["class"]
        assert klass["school_id"] == school.id
        assert klass["grade_id"] == grade.id
        assert klass["supervisor_id"] == teacher.id
        assert klass["capacity"] == 25
        assert klass["student_count"] == 0

    @pytest.mark.asyncio
    async def test_duplicate_name_in_school(self, client, factory, school_staff):
        school, principal, _ = school_staff
        headers = factory.headers(principal, school)

        await client.post("/api/v1/classes", json={"name": "5-A"}, headers=headers)
        duplicate = await client.post("/api/v1/classes", json={"name": "5-A"}, headers=headers)

        assert duplicate.status_code == 409
        assert duplicate.json()["message"] == "Class with this name already exists in the school"

    @pytest.mark.asyncio
    async def test_references_must_share_the_school(
        self, client, factory, db_session, school_staff
    ):
        school, principal, _ = school_staff
        other = await factory.school()
        foreign_grade = await add_grade(db_session, other)
        foreign_teacher = await factory.user(Role.TEACHER, other)
        headers = factory.headers(principal, school)

        grade = await client.post(
            "/api/v1/classes", json={"name": "5-A", "grade_id": foreign_grade.id}, headers=headers
        )
        supervisor = await client.post(
            "/api/v1/classes",
            json={"name": "5-B", "supervisor_id": foreign_teacher.id},
            headers=headers,
        )

        assert grade.status_code == 404
        assert grade.json()["message"] == "Grade not found"
        assert supervisor.status_code == 404
        assert supervisor.json()["message"] == "Teacher not found or access denied"

    @pytest.mark.asyncio
    async def test_list_is_scoped_with_enrollment(self, client, factory, school_staff):
        school, _, teacher = school_staff
        other = await factory.school()
        klass = await factory.class_(school)
        await factory.class_(other)
        await factory.student(school, klass=klass)
        await factory.student(school, klass=klass)

        response = await client.get("/api/v1/classes", headers=factory.headers(teacher, school))

        classes = response.json()["classes"]
        assert [c["id"] for c in classes] == [klass.id]
        assert classes[0]["student_count"] == 2

    @pytest.mark.asyncio
    async def test_teacher_reads_but_cannot_write(self, client, factory, school_staff):
        school, _, teacher = school_staff
        klass = await factory.class_(school)
        headers = factory.headers(teacher, school)

        detail = await client.get(f"/api/v1/classes/{klass.id}", headers=headers)
        created = await client.post("/api/v1/classes", json={"name": "X"}, headers=headers)

        assert detail.status_code == 200
        assert created.status_code == 403

    @pytest.mark.asyncio
    async def test_parent_cannot_read_classes(self, client, factory):
        parent = await factory.user(Role.PARENT)

        response = await client.get("/api/v1/classes", headers=factory.headers(parent))

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_capacity_cannot_drop_below_enrollment(self, client, factory, school_staff):
        school, principal, _ = school_staff
        klass = await factory.class_(school)
        await factory.student(school, klass=klass)
        await factory.student(school, klass=klass)
        headers = factory.headers(principal, school)

        shrunk = await client.put(
            f"/api/v1/classes/{klass.id}", json={"capacity": 1}, headers=headers
        )
        fitted = await client.put(
            f"/api/v1/classes/{klass.id}", json={"capacity": 2}, headers=headers
        )

        assert shrunk.status_code == 400
        assert shrunk.json()["message"] == (
            "Capacity cannot be less than the number of enrolled students"
        )
        assert fitted.status_code == 200
        assert fitted.json()["class"]["capacity"] == 2

    @pytest.mark.asyncio
    async def test_delete_with_students_is_refused(self, client, factory, school_staff):
        school, principal, _ = school_staff
        busy = await factory.class_(school)
        empty = await factory.class_(school)
        await factory.student(school, klass=busy)
        headers = factory.headers(principal, school)

        refused = await client.delete(f"/api/v1/classes/{busy.id}", headers=headers)
        deleted = await client.delete(f"/api/v1/classes/{empty.id}", headers=headers)
        gone = await client.get(f"/api/v1/classes/{empty.id}", headers=headers)

        assert refused.status_code == 400
        assert refused.json()["message"] == (
            "Cannot delete class with existing students, lessons, assignments, or exams"
        )
        assert deleted.json()["message"] == "Class deleted successfully"
        assert gone.status_code == 404


class TestStudents:
    """Tests for /api/v1/students."""

    @pytest.mark.asyncio
    async def test_enroll_and_link_parent(self, client, factory, school_staff):
        school, principal, _ = school_staff
        parent = await factory.user(Role.PARENT)
        klass = await factory.class_(school)

        response = await client.post(
            "/api/v1/students",
            json={
                "name": "Ada",
                "surname": "Lovelace",
                "registration_number": "S-001",
                "birth_date": "2016-03-01",
                "class_id": klass.id,
                "parent_id": parent.id,
            },
            headers=factory.headers(principal, school),
        )
        children = await client.get("/api/v1/students", headers=factory.headers(parent))

        assert response.status_code == 201
        student = response.json()["student"]
        assert student["school_id"] == school.id
        assert student["class_id"] == klass.id
        assert student["parent_id"] == parent.id
        assert [s["id"] for s in children.json()["students"]] == [student["id"]]

    @pytest.mark.asyncio
    async def test_parent_sees_only_own_children(self, client, factory, school_staff):
        school, _, _ = school_staff
        parent = await factory.user(Role.PARENT)
        mine = await factory.student(school, parent)
        classmate = await factory.student(school)
        headers = factory.headers(parent)

        listed = await client.get("/api/v1/students", headers=headers)
        own = await client.get(f"/api/v1/students/{mine.id}", headers=headers)
        foreign = await client.get(f"/api/v1/students/{classmate.id}", headers=headers)

        assert [s["id"] for s in listed.json()["students"]] == [mine.id]
        assert own.status_code == 200
        assert foreign.status_code == 404

    @pytest.mark.asyncio
    async def test_parent_cannot_edit_children(self, client, factory, school_staff):
        school, _, _ = school_staff
        parent = await factory.user(Role.PARENT)
        child = await factory.student(school, parent)

        response = await client.put(
            f"/api/v1/students/{child.id}", json={"name": "New"}, headers=factory.headers(parent)
        )

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_unknown_parent(self, client, factory, school_staff):
        school, principal, teacher = school_staff

        response = await client.post(
            "/api/v1/students",
            json={"name": "Ada", "surname": "L", "parent_id": teacher.id},
            headers=factory.headers(principal, school),
        )

        assert response.status_code == 404
        assert response.json()["message"] == "Parent not found"

    @pytest.mark.asyncio
    async def test_class_from_other_school(self, client, factory, school_staff):
        school, principal, _ = school_staff
        foreign = await factory.class_(await factory.school())

        response = await client.post(
            "/api/v1/students",
            json={"name": "Ada", "surname": "L", "class_id": foreign.id},
            headers=factory.headers(principal, school),
        )

        assert response.status_code == 404
        assert response.json()["message"] == "Class not found"

    @pytest.mark.asyncio
    async def test_full_class_is_refused(self, client, factory, db_session, school_staff):
        school, principal, _ = school_staff
        klass = await factory.class_(school)
        klass.capacity = 1
        await db_session.commit()
        await factory.student(school, klass=klass)

        response = await client.post(
            "/api/v1/students",
            json={"name": "Ada", "surname": "L", "class_id": klass.id},
            headers=factory.headers(principal, school),
        )

        assert response.status_code == 400
        assert response.json()["message"] == "Class is full"

    @pytest.mark.asyncio
    async def test_duplicate_registration_number(self, client, factory, school_staff):
        school, principal, _ = school_staff
        existing = await factory.student(school)

        response = await client.post(
            "/api/v1/students",
            json={
                "name": "Ada",
                "surname": "L",
                "registration_number": existing.registration_number,
            },
            headers=factory.headers(principal, school),
        )

        assert response.status_code == 409

    @pytest.mark.asyncio
    async def test_relink_parent_and_leave_class(self, client, factory, school_staff):
        school, principal, _ = school_staff
        first_parent = await factory.user(Role.PARENT)
        second_parent = await factory.user(Role.PARENT)
        klass = await factory.class_(school)
        student = await factory.student(school, first_parent, klass)

        response = await client.put(
            f"/api/v1/students/{student.id}",
            json={"parent_id": second_parent.id, "class_id": None},
            headers=factory.headers(principal, school),
        )
        old_view = await client.get(
            f"/api/v1/students/{student.id}", headers=factory.headers(first_parent)
        )

        assert response.status_code == 200
        updated = response.json()["student"]
        assert updated["parent_id"] == second_parent.id
        assert updated["class_id"] is None
        assert updated["name"] == student.name
        assert old_view.status_code == 404

    @pytest.mark.asyncio
    async def test_filter_by_class(self, client, factory, school_staff):
        school, _, teacher = school_staff
        klass = await factory.class_(school)
        enrolled = await factory.student(school, klass=klass)
        await factory.student(school)

        response = await client.get(
            f"/api/v1/students?class_id={klass.id}", headers=factory.headers(teacher, school)
        )

        assert [s["id"] for s in response.json()["students"]] == [enrolled.id]

    @pytest.mark.asyncio
    async def test_delete_with_results_is_refused(
        self, client, factory, db_session, school_staff
    ):
        school, principal, _ = school_staff
        graded = await factory.student(school)
        fresh = await factory.student(school)
        db_session.add(Result(student_id=graded.id, score=50, max_score=100, school_id=school.id))
        await db_session.commit()
        headers = factory.headers(principal, school)

        refused = await client.delete(f"/api/v1/students/{graded.id}", headers=headers)
        deleted = await client.delete(f"/api/v1/students/{fresh.id}", headers=headers)

        assert refused.status_code == 400
        assert refused.json()["message"] == (
            "Cannot delete student with existing submissions or results"
        )
        assert deleted.status_code == 200

    @pytest.mark.asyncio
    async def test_other_school_student_is_hidden(self, client, factory, school_staff):
        school, principal, _ = school_staff
        foreign = await factory.student(await factory.school())

        response = await client.delete(
            f"/api/v1/students/{foreign.id}", headers=factory.headers(principal, school)
        )

        assert response.status_code == 404
