# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Integration tests for the academic calendar API."""

import pytest

from src.models.common import Role

pytestmark = pytest.mark.integration


@pytest.fixture
async def calendar_setup(factory):
    school = await factory.school()
    admin = await factory.user(Role.SCHOOL_ADMIN, school)
    return {"school": school, "admin": admin, "headers": factory.headers(admin, school)}


async def create_year(client, headers, **overrides) -> dict:
    payload = {
        "name": "2030-2031",
        "start_date": "2030-09-01",
        "end_date": "2031-06-30",
        "is_current": True,
    }
    payload.update(overrides)
    response = await client.post("/api/v1/calendar/academic-years", json=payload, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()["academic_year"]


async def create_term(client, headers, year_id: str, start: str, end: str, name="Fall"):
    return await client.post(
        "/api/v1/calendar/terms",
        json={"name": name, "start_date": start, "end_date": end, "academic_year_id": year_id},
        headers=headers,
    )


class TestAcademicYears:
    """Tests for academic years and calendars."""

    @pytest.mark.asyncio
    async def test_only_one_current_year(self, client, calendar_setup):
        headers = calendar_setup["headers"]
        await create_year(
            client, headers, name="2029-2030", start_date="2029-09-01", end_date="2030-06-30"
        )
        await create_year(client, headers)

        response = await client.get("/api/v1/calendar/academic-years", headers=headers)

        current = [y["name"] for y in response.json()["academic_years"] if y["is_current"]]
        assert current == ["2030-2031"]

    @pytest.mark.asyncio
    async def test_inverted_year(self, client, calendar_setup):
        response = await client.post(
            "/api/v1/calendar/academic-years",
            json={"name": "Bad", "start_date": "2031-01-01", "end_date": "2030-01-01"},
            headers=calendar_setup["headers"],
        )

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_calendar_items(self, client, calendar_setup):
        headers = calendar_setup["headers"]
        year = await create_year(client, headers)
        calendar = await client.post(
            "/api/v1/calendar/academic-calendars",
            json={"name": "Main", "academic_year_id": year["id"]},
            headers=headers,
        )
        calendar_id = calendar.json()["calendar"]["id"]

        item = await client.post(
            f"/api/v1/calendar/academic-calendars/{calendar_id}/items",
            json={
                "title": "Sports day",
                "item_type": "SPORTS_DAY",
                "start_date": "2031-05-10T08:00:00Z",
                "end_date": "2031-05-10T16:00:00Z",
            },
            headers=headers,
        )
        listed = await client.get(
            f"/api/v1/calendar/academic-calendars/{calendar_id}/items", headers=headers
        )
        item_id = item.json()["calendar_item"]["id"]
        deleted = await client.delete(f"/api/v1/calendar/items/{item_id}", headers=headers)

        assert item.status_code == 201
        assert item.json()["calendar_item"]["school_id"] == calendar_setup["school"].id
        assert [i["id"] for i in listed.json()["calendar_items"]] == [item_id]
        assert deleted.status_code == 200


class TestTerms:
    """Tests for /api/v1/calendar/terms."""

    @pytest.mark.asyncio
    async def test_term_within_year(self, client, calendar_setup):
        headers = calendar_setup["headers"]
        year = await create_year(client, headers)

        inside = await create_term(client, headers, year["id"], "2030-09-01", "2031-01-31")
        outside = await create_term(
            client, headers, year["id"], "2031-02-01", "2031-07-31", name="Spring"
        )

        assert inside.status_code == 201
        assert inside.json()["term"]["school_id"] == calendar_setup["school"].id
        assert outside.status_code == 400
        assert outside.json()["message"] == "Term dates must be within the academic year"

    @pytest.mark.asyncio
    async def test_overlapping_terms(self, client, calendar_setup):
        headers = calendar_setup["headers"]
        year = await create_year(client, headers)
        await create_term(client, headers, year["id"], "2030-09-01", "2031-01-31")

        overlapping = await create_term(
            client, headers, year["id"], "2031-01-31", "2031-05-31", name="Spring"
        )
        adjacent = await create_term(
            client, headers, year["id"], "2031-02-01", "2031-05-31", name="Spring"
        )

        assert overlapping.status_code == 409
        assert overlapping.json()["message"] == "Term dates overlap with existing term"
        assert adjacent.status_code == 201

    @pytest.mark.asyncio
    async def test_update_term_ignores_itself(self, client, calendar_setup):
        headers = calendar_setup["headers"]
        year = await create_year(client, headers)
        term = (await create_term(client, headers, year["id"], "2030-09-01", "2031-01-31")).json()

        response = await client.put(
            f"/api/v1/calendar/terms/{term['term']['id']}",
            json={"end_date": "2031-01-15"},
            headers=headers,
        )

        assert response.status_code == 200
        assert response.json()["term"]["end_date"] == "2031-01-15"

    @pytest.mark.asyncio
    async def test_delete_term_with_exams_is_refused(self, client, factory, calendar_setup):
        headers = calendar_setup["headers"]
        year = await create_year(client, headers)
        term = (await create_term(client, headers, year["id"], "2030-09-01", "2031-01-31")).json()
        subject = await factory.subject(calendar_setup["school"])
        exam = await client.post(
            "/api/v1/exams",
            json={
                "title": "Final",
                "exam_type": "FINAL_EXAM",
                "total_marks": 100,
                "passing_marks": 40,
                "duration_minutes": 60,
                "start_date": "2031-01-10T09:00:00Z",
                "end_date": "2031-01-10T10:00:00Z",
                "subject_id": subject.id,
                "term_id": term["term"]["id"],
            },
            headers=headers,
        )
        assert exam.status_code == 201

        response = await client.delete(
            f"/api/v1/calendar/terms/{term['term']['id']}", headers=headers
        )

        assert response.status_code == 400
        assert response.json()["message"] == "Cannot delete term with existing exams"

    @pytest.mark.asyncio
    async def test_year_of_other_school(self, client, factory, calendar_setup):
        other = await factory.school()
        other_admin = await factory.user(Role.SCHOOL_ADMIN, other)
        year = await create_year(client, calendar_setup["headers"])

        response = await create_term(
            client,
            factory.headers(other_admin, other),
            year["id"],
            "2030-09-01",
            "2031-01-31",
        )

        assert response.status_code == 404


class TestHolidaysAndOverview:
    """Tests for holidays and the calendar overview."""

    @pytest.mark.asyncio
    async def test_holiday_crud_and_type_filter(self, client, calendar_setup):
        headers = calendar_setup["headers"]
        created = await client.post(
            "/api/v1/calendar/holidays",
            json={
                "name": "Republic Day",
                "start_date": "2030-10-29",
                "end_date": "2030-10-29",
                "holiday_type": "NATIONAL",
            },
            headers=headers,
        )
        holiday_id = created.json()["holiday"]["id"]

        national = await client.get("/api/v1/calendar/holidays?type=NATIONAL", headers=headers)
        religious = await client.get("/api/v1/calendar/holidays?type=RELIGIOUS", headers=headers)
        updated = await client.put(
            f"/api/v1/calendar/holidays/{holiday_id}",
            json={"end_date": "2030-10-30"},
            headers=headers,
        )
        inverted = await client.put(
            f"/api/v1/calendar/holidays/{holiday_id}",
            json={"end_date": "2030-10-01"},
            headers=headers,
        )
        deleted = await client.delete(f"/api/v1/calendar/holidays/{holiday_id}", headers=headers)

        assert created.status_code == 201
        assert len(national.json()["holidays"]) == 1
        assert religious.json()["holidays"] == []
        assert updated.json()["holiday"]["end_date"] == "2030-10-30"
        assert inverted.status_code == 400
        assert deleted.status_code == 200

    @pytest.mark.asyncio
    async def test_overview_requires_dates(self, client, calendar_setup):
        response = await client.get(
            "/api/v1/calendar/overview?start_date=2030-09-01", headers=calendar_setup["headers"]
        )

        assert response.status_code == 400
        assert response.json()["message"] == "Start date and end date are required"

    @pytest.mark.asyncio
    async def test_overview_collects_range(self, client, calendar_setup):
        headers = calendar_setup["headers"]
        year = await create_year(client, headers)
        await create_term(client, headers, year["id"], "2030-09-01", "2031-01-31")
        await client.post(
            "/api/v1/calendar/holidays",
            json={
                "name": "New Year",
                "start_date": "2031-01-01",
                "end_date": "2031-01-01",
                "holiday_type": "PUBLIC",
            },
            headers=headers,
        )
        await client.post(
            "/api/v1/calendar/holidays",
            json={
                "name": "Summer",
                "start_date": "2031-07-01",
                "end_date": "2031-08-31",
                "holiday_type": "SCHOOL_SPECIFIC",
            },
            headers=headers,
        )

        response = await client.get(
            "/api/v1/calendar/overview?start_date=2030-12-01&end_date=2031-01-31",
            headers=headers,
        )

        assert response.status_code == 200
        body = response.json()
        assert body["period"] == {"start_date": "2030-12-01", "end_date": "2031-01-31"}
        assert [t["name"] for t in body["calendar"]["terms"]] == ["Fall"]
        assert [h["name"] for h in body["calendar"]["holidays"]] == ["New Year"]

    @pytest.mark.asyncio
    async def test_parent_cannot_manage_holidays(self, client, factory):
        parent = await factory.user(Role.PARENT)

        response = await client.post(
            "/api/v1/calendar/holidays",
            json={
                "name": "Mine",
                "start_date": "2030-10-29",
                "end_date": "2030-10-29",
                "holiday_type": "PUBLIC",
            },
            headers=factory.headers(parent),
        )

        assert response.status_code == 403
