# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Integration tests for application wiring: health, errors and routing."""

import pytest

from src.models.common import Role

pytestmark = pytest.mark.integration


class TestHealth:
    @pytest.mark.asyncio
    async def test_health_always_answers(self, client):
        response = await client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] in {"healthy", "degraded"}
        assert body["environment"] == "test"
        assert "database" in body["components"]

    @pytest.mark.asyncio
    async def test_health_needs_no_token(self, client):
        response = await client.get("/health", headers={"Authorization": "Bearer garbage"})

        assert response.status_code == 200


class TestErrorShapes:
    @pytest.mark.asyncio
    async def test_unknown_route(self, client):
        response = await client.get("/api/v1/does-not-exist")

        assert response.status_code == 404
        assert response.json() == {"message": "Route not found"}

    @pytest.mark.asyncio
    async def test_invalid_input_lists_fields(self, client):
        response = await client.post("/api/v1/auth/login", json={"email": "not-an-email"})

        assert response.status_code == 400
        body = response.json()
        assert body["message"] == "Invalid input"
        fields = {error["field"] for error in body["errors"]}
        assert {"email", "password"} <= fields

    @pytest.mark.asyncio
    async def test_malformed_token_is_unauthenticated(self, client):
        response = await client.get(
            "/api/v1/subjects", headers={"Authorization": "Bearer not.a.jwt"}
        )

        assert response.status_code == 401
        assert response.json()["message"] == "Authentication required"


class TestRequestId:
    @pytest.mark.asyncio
    async def test_request_id_is_echoed(self, client):
        response = await client.get("/health", headers={"X-Request-ID": "abc123"})

        assert response.headers["X-Request-ID"] == "abc123"

    @pytest.mark.asyncio
    async def test_request_id_is_generated(self, client):
        response = await client.get("/health")

        assert response.headers["X-Request-ID"]


class TestRouting:
    def test_v1_routes_are_registered(self, app):
        paths = {route.path for route in app.routes}

        for path in (
            "/health",
            "/api/v1/auth/login",
            "/api/v1/auth/register",
            "/api/v1/assignments",
            "/api/v1/assignments/{assignment_id}/submit",
            "/api/v1/subjects",
            "/api/v1/grades",
            "/api/v1/classes",
            "/api/v1/students/{student_id}",
            "/api/v1/rooms",
            "/api/v1/lessons",
            "/api/v1/exams",
            "/api/v1/calendar/overview",
            "/api/v1/users",
            "/api/v1/schools",
            "/api/v1/approvals",
            "/api/v1/dashboard/parent",
            "/api/v1/notifications",
        ):
            assert path in paths

    @pytest.mark.asyncio
    async def test_unknown_role_sees_no_schools(self, client, factory, jwt_manager):
        await factory.school()
        token = jwt_manager.create_access_token(
            user_id="00000000-0000-0000-0000-000000000001",
            role="JANITOR",
            school_id=None,
            tenant_id=None,
            approval_status=None,
        )

        response = await client.get(
            "/api/v1/schools", headers={"Authorization": f"Bearer {token}"}
        )

        assert response.status_code == 200
        assert response.json()["schools"] == []

    @pytest.mark.asyncio
    async def test_parent_token_without_school(self, client, factory):
        parent = await factory.user(Role.PARENT)

        response = await client.get("/api/v1/schools", headers=factory.headers(parent))

        assert response.status_code == 200
        assert response.json()["schools"] == []
