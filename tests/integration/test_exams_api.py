# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Integration tests for the exams API."""

from datetime import date, timedelta

import pytest

from src.infrastructure.database.models import Result
from src.models.common import ExamSessionStatus, ExamStatus, Role
from src.utils.datetime import utc_now

pytestmark = pytest.mark.integration

SESSION_DAY = date(2031, 3, 10)


def exam_payload(subject_id: str, **overrides) -> dict:
    start = utc_now() + timedelta(days=30)
    payload = {
        "title": "Algebra midterm",
        "exam_type": "MID_TERM",
        "total_marks": 100,
        "passing_marks": 50,
        "duration_minutes": 90,
        "start_date": start.isoformat(),
        "end_date": (start + timedelta(days=2)).isoformat(),
        "subject_id": subject_id,
    }
    payload.update(overrides)
    return payload


def session_payload(room_id: str, invigilator_id: str, student_ids: list[str], /, **overrides):
    payload = {
        "session_date": SESSION_DAY.isoformat(),
        "start_time": "09:00",
        "end_time": "11:00",
        "room_id": room_id,
        "invigilator_id": invigilator_id,
        "student_ids": student_ids,
    }
    payload.update(overrides)
    return payload


@pytest.fixture
async def exam_setup(factory):
    school = await factory.school()
    principal = await factory.user(Role.PRINCIPAL, school)
    teacher = await factory.user(Role.TEACHER, school)
    subject = await factory.subject(school, teacher, name="Mathematics")
    room = await factory.room(school, capacity=2)
    students = [await factory.student(school) for _ in range(2)]
    return {
        "school": school,
        "principal": principal,
        "teacher": teacher,
        "subject": subject,
        "room": room,
        "students": students,
        "headers": factory.headers(principal, school),
    }


async def create_exam(client, setup, **overrides) -> dict:
    response = await client.post(
        "/api/v1/exams",
        json=exam_payload(setup["subject"].id, **overrides),
        headers=setup["headers"],
    )
    assert response.status_code == 201, response.text
    return response.json()["exam"]


async def create_session(client, setup, exam_id: str, **overrides):
    return await client.post(
        f"/api/v1/exams/{exam_id}/sessions",
        json=session_payload(
            setup["room"].id,
            setup["teacher"].id,
            [s.id for s in setup["students"]],
            **overrides,
        ),
        headers=setup["headers"],
    )


class TestExams:
    """Tests for exam CRUD."""

    @pytest.mark.asyncio
    async def test_create_starts_as_draft(self, client, exam_setup):
        exam = await create_exam(client, exam_setup)

        assert exam["status"] == ExamStatus.DRAFT
        assert exam["school_id"] == exam_setup["school"].id
        assert exam["created_by_id"] == exam_setup["principal"].id
        assert exam["published_at"] is None

    @pytest.mark.asyncio
    async def test_passing_marks_above_total(self, client, exam_setup):
        response = await client.post(
            "/api/v1/exams",
            json=exam_payload(exam_setup["subject"].id, passing_marks=120),
            headers=exam_setup["headers"],
        )

        assert response.status_code == 400
        assert response.json()["message"] == "Passing marks cannot exceed total marks"

    @pytest.mark.asyncio
    async def test_end_before_start(self, client, exam_setup):
        start = utc_now() + timedelta(days=5)

        response = await client.post(
            "/api/v1/exams",
            json=exam_payload(
                exam_setup["subject"].id,
                start_date=start.isoformat(),
                end_date=(start - timedelta(hours=1)).isoformat(),
            ),
            headers=exam_setup["headers"],
        )

        assert response.status_code == 400
        assert response.json()["message"] == "End date must be after start date"

    @pytest.mark.asyncio
    async def test_subject_of_other_school(self, client, factory, exam_setup):
        other = await factory.school()
        foreign_subject = await factory.subject(other)

        response = await client.post(
            "/api/v1/exams",
            json=exam_payload(foreign_subject.id),
            headers=exam_setup["headers"],
        )

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_publish_stamps_published_at(self, client, exam_setup):
        exam = await create_exam(client, exam_setup)

        response = await client.put(
            f"/api/v1/exams/{exam['id']}",
            json={"status": "PUBLISHED"},
            headers=exam_setup["headers"],
        )

        assert response.status_code == 200
        assert response.json()["exam"]["status"] == ExamStatus.PUBLISHED
        assert response.json()["exam"]["published_at"] is not None

    @pytest.mark.asyncio
    async def test_update_checks_marks_against_stored_total(self, client, exam_setup):
        exam = await create_exam(client, exam_setup)

        response = await client.put(
            f"/api/v1/exams/{exam['id']}",
            json={"passing_marks": 150},
            headers=exam_setup["headers"],
        )

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_parents_never_see_drafts(self, client, factory, exam_setup):
        parent = await factory.user(Role.PARENT)
        await factory.student(exam_setup["school"], parent)
        draft = await create_exam(client, exam_setup, title="Draft")
        published = await create_exam(client, exam_setup, title="Published")
        await client.put(
            f"/api/v1/exams/{published['id']}",
            json={"status": "PUBLISHED"},
            headers=exam_setup["headers"],
        )
        headers = factory.headers(parent)

        listed = await client.get("/api/v1/exams", headers=headers)
        hidden = await client.get(f"/api/v1/exams/{draft['id']}", headers=headers)

        assert [e["title"] for e in listed.json()["exams"]] == ["Published"]
        assert hidden.status_code == 404

    @pytest.mark.asyncio
    async def test_list_filters_and_counts(self, client, exam_setup):
        exam = await create_exam(client, exam_setup)
        await create_exam(client, exam_setup, title="Oral", exam_type="ORAL")
        await create_session(client, exam_setup, exam["id"])

        response = await client.get(
            "/api/v1/exams?exam_type=MID_TERM", headers=exam_setup["headers"]
        )

        exams = response.json()["exams"]
        assert [e["id"] for e in exams] == [exam["id"]]
        assert exams[0]["session_count"] == 1
        assert exams[0]["result_count"] == 0

    @pytest.mark.asyncio
    async def test_parent_cannot_create(self, client, factory, exam_setup):
        parent = await factory.user(Role.PARENT)

        response = await client.post(
            "/api/v1/exams",
            json=exam_payload(exam_setup["subject"].id),
            headers=factory.headers(parent),
        )

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_delete_with_sessions_is_refused(self, client, exam_setup):
        exam = await create_exam(client, exam_setup)
        await create_session(client, exam_setup, exam["id"])

        response = await client.delete(
            f"/api/v1/exams/{exam['id']}", headers=exam_setup["headers"]
        )

        assert response.status_code == 400
        assert response.json()["message"] == "Cannot delete exam with existing sessions or results"

    @pytest.mark.asyncio
    async def test_delete_with_results_is_refused(self, client, db_session, exam_setup):
        exam = await create_exam(client, exam_setup)
        db_session.add(
            Result(
                student_id=exam_setup["students"][0].id,
                exam_id=exam["id"],
                score=72,
                max_score=100,
                school_id=exam_setup["school"].id,
            )
        )
        await db_session.commit()

        response = await client.delete(
            f"/api/v1/exams/{exam['id']}", headers=exam_setup["headers"]
        )

        assert response.status_code == 400
        assert response.json()["message"] == "Cannot delete exam with existing sessions or results"

    @pytest.mark.asyncio
    async def test_delete(self, client, exam_setup):
        exam = await create_exam(client, exam_setup)

        response = await client.delete(
            f"/api/v1/exams/{exam['id']}", headers=exam_setup["headers"]
        )
        missing = await client.get(f"/api/v1/exams/{exam['id']}", headers=exam_setup["headers"])

        assert response.status_code == 200
        assert missing.status_code == 404


class TestExamSessions:
    """Tests for exam session scheduling."""

    @pytest.mark.asyncio
    async def test_create_session(self, client, exam_setup):
        exam = await create_exam(client, exam_setup)

        response = await create_session(client, exam_setup, exam["id"], start_time="9:00")

        assert response.status_code == 201
        session = response.json()["session"]
        assert session["start_time"] == "09:00"
        assert session["status"] == ExamSessionStatus.SCHEDULED
        assert sorted(s["id"] for s in session["students"]) == sorted(
            s.id for s in exam_setup["students"]
        )

    @pytest.mark.asyncio
    async def test_room_capacity(self, client, factory, exam_setup):
        exam = await create_exam(client, exam_setup)
        extra = await factory.student(exam_setup["school"])

        response = await create_session(
            client,
            exam_setup,
            exam["id"],
            student_ids=[s.id for s in exam_setup["students"]] + [extra.id],
        )

        assert response.status_code == 400
        assert response.json()["message"] == "Room capacity exceeded"

    @pytest.mark.asyncio
    async def test_inverted_times(self, client, exam_setup):
        exam = await create_exam(client, exam_setup)

        response = await create_session(
            client, exam_setup, exam["id"], start_time="11:00", end_time="10:00"
        )

        assert response.status_code == 400
        assert response.json()["message"] == "End time must be after start time"

    @pytest.mark.asyncio
    async def test_room_double_booking(self, client, factory, exam_setup):
        exam = await create_exam(client, exam_setup)
        other_teacher = await factory.user(Role.TEACHER, exam_setup["school"])
        first = await create_session(client, exam_setup, exam["id"])

        clash = await create_session(
            client,
            exam_setup,
            exam["id"],
            start_time="10:00",
            end_time="12:00",
            invigilator_id=other_teacher.id,
        )
        back_to_back = await create_session(
            client,
            exam_setup,
            exam["id"],
            start_time="11:00",
            end_time="12:00",
        )

        assert first.status_code == 201
        assert clash.status_code == 409
        assert clash.json()["message"] == "Room is not available at this time"
        assert back_to_back.status_code == 201

    @pytest.mark.asyncio
    async def test_invigilator_double_booking(self, client, factory, exam_setup):
        exam = await create_exam(client, exam_setup)
        other_room = await factory.room(exam_setup["school"])
        await create_session(client, exam_setup, exam["id"])

        clash = await create_session(
            client, exam_setup, exam["id"], start_time="10:30", room_id=other_room.id
        )

        assert clash.status_code == 409
        assert clash.json()["message"] == "Invigilator is not available at this time"

    @pytest.mark.asyncio
    async def test_cancelled_session_frees_room(self, client, exam_setup):
        exam = await create_exam(client, exam_setup)
        first = (await create_session(client, exam_setup, exam["id"])).json()["session"]

        cancelled = await client.put(
            f"/api/v1/exams/sessions/{first['id']}",
            json={"status": "CANCELLED"},
            headers=exam_setup["headers"],
        )
        rebooked = await create_session(client, exam_setup, exam["id"])

        assert cancelled.status_code == 200
        assert rebooked.status_code == 201

    @pytest.mark.asyncio
    async def test_teacher_updates_only_own_sessions(self, client, factory, exam_setup):
        exam = await create_exam(client, exam_setup)
        session = (await create_session(client, exam_setup, exam["id"])).json()["session"]
        colleague = await factory.user(Role.TEACHER, exam_setup["school"])
        url = f"/api/v1/exams/sessions/{session['id']}"

        denied = await client.put(
            url,
            json={"notes": "moved"},
            headers=factory.headers(colleague, exam_setup["school"]),
        )
        allowed = await client.put(
            url,
            json={"notes": "bring calculators"},
            headers=factory.headers(exam_setup["teacher"], exam_setup["school"]),
        )

        assert denied.status_code == 404
        assert allowed.status_code == 200
        assert allowed.json()["session"]["notes"] == "bring calculators"

    @pytest.mark.asyncio
    async def test_list_and_delete_sessions(self, client, exam_setup):
        exam = await create_exam(client, exam_setup)
        session = (await create_session(client, exam_setup, exam["id"])).json()["session"]

        listed = await client.get(
            f"/api/v1/exams/{exam['id']}/sessions", headers=exam_setup["headers"]
        )
        deleted = await client.delete(
            f"/api/v1/exams/sessions/{session['id']}", headers=exam_setup["headers"]
        )
        after = await client.get(
            f"/api/v1/exams/{exam['id']}/sessions", headers=exam_setup["headers"]
        )

        assert [s["id"] for s in listed.json()["sessions"]] == [session["id"]]
        assert deleted.status_code == 200
        assert after.json()["sessions"] == []

    @pytest.mark.asyncio
    async def test_completed_session_cannot_be_deleted(self, client, exam_setup):
        exam = await create_exam(client, exam_setup)
        session = (await create_session(client, exam_setup, exam["id"])).json()["session"]
        url = f"/api/v1/exams/sessions/{session['id']}"
        await client.put(url, json={"status": "COMPLETED"}, headers=exam_setup["headers"])

        response = await client.delete(url, headers=exam_setup["headers"])

        assert response.status_code == 400
        assert response.json()["message"] == "Cannot delete ongoing or completed exam session"
