# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for School service."""

from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock
from uuid import UUID, uuid4

import pytest
from sqlalchemy.exc import IntegrityError

from src.domains.school.service import (
    SchoolNameExistsError,
    SchoolNotFoundError,
    SchoolPermissionError,
    SchoolService,
)
from src.domains.tenancy import Actor
from src.models.common import Role
from src.models.school import SchoolCreateRequest


@pytest.fixture
def mock_db():
    """Create mock database session."""
    db = AsyncMock()
    db.add = MagicMock()
    db.commit = AsyncMock()
    db.rollback = AsyncMock()
    db.refresh = AsyncMock()
    db.execute = AsyncMock()
    db.get = AsyncMock()
    return db


@pytest.fixture
def school_service(mock_db):
    """Create school service with mock database."""
    return SchoolService(db=mock_db)


@pytest.fixture
def super_admin() -> Actor:
    return Actor(id=str(uuid4()), role=Role.SUPER_ADMIN)


def create_mock_result(value):
    """Create a mock result with scalar_one_or_none."""
    result = MagicMock()
    result.scalar_one_or_none.return_value = value
    return result


@pytest.fixture
def sample_school():
    """Create a sample school model with proper field values."""
    school = MagicMock()
    school.id = str(uuid4())
    school.name = "Test School"
    school.is_verified = False
    school.verified_at = None
    school.created_at = datetime.now(timezone.utc)
    return school


class TestSchoolServiceCreate:
    """Tests for school creation."""

    @pytest.mark.asyncio
    async def test_create_school_success(self, school_service, mock_db, super_admin):
        """Test successful school creation."""
        mock_db.execute.return_value = create_mock_result(None)
        request = SchoolCreateRequest(name="New School", city="Ankara")

        school = await school_service.create_school(super_admin, request)

        assert school.name == "New School"
        assert school.tenant_id == school.id
        assert school.is_verified is False
        mock_db.add.assert_called_once()
        mock_db.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_create_school_keeps_explicit_tenant(self, school_service, mock_db, super_admin):
        mock_db.execute.return_value = create_mock_result(None)
        tenant_id = uuid4()
        request = SchoolCreateRequest(name="Branch", tenant_id=tenant_id, is_verified=True)

        school = await school_service.create_school(super_admin, request)

        assert UUID(school.tenant_id) == tenant_id
        assert school.verified_at is not None

    @pytest.mark.asyncio
    async def test_create_school_duplicate_name(self, school_service, mock_db, super_admin):
        """Test creating a school with an existing name."""
        mock_db.execute.return_value = create_mock_result(str(uuid4()))

        with pytest.raises(SchoolNameExistsError):
            await school_service.create_school(super_admin, SchoolCreateRequest(name="Taken"))

        mock_db.add.assert_not_called()

    @pytest.mark.asyncio
    async def test_create_school_race_on_commit(self, school_service, mock_db, super_admin):
        """A unique violation at commit is reported as a conflict."""
        mock_db.execute.return_value = create_mock_result(None)
        mock_db.commit.side_effect = IntegrityError("insert", {}, Exception("unique"))

        with pytest.raises(SchoolNameExistsError):
            await school_service.create_school(super_admin, SchoolCreateRequest(name="Racy"))

        mock_db.rollback.assert_awaited_once()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("role", [Role.SCHOOL_ADMIN, Role.PRINCIPAL, Role.TEACHER, Role.PARENT])
    async def test_only_super_admin_creates(self, school_service, mock_db, role):
        actor = Actor(id=str(uuid4()), role=role, school_id=str(uuid4()))

        with pytest.raises(SchoolPermissionError):
            await school_service.create_school(actor, SchoolCreateRequest(name="Nope"))

        mock_db.execute.assert_not_awaited()


class TestSchoolServiceVerify:
    """Tests for school verification."""

    @pytest.mark.asyncio
    async def test_verify_school(self, school_service, mock_db, super_admin, sample_school):
        mock_db.get.return_value = sample_school

        school = await school_service.verify_school(super_admin, sample_school.id)

        assert school.is_verified is True
        assert school.verified_at is not None
        mock_db.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_verify_twice_keeps_timestamp(
        self, school_service, mock_db, super_admin, sample_school
    ):
        verified_at = datetime(2025, 1, 1, tzinfo=timezone.utc)
        sample_school.is_verified = True
        sample_school.verified_at = verified_at
        mock_db.get.return_value = sample_school

        school = await school_service.verify_school(super_admin, sample_school.id)

        assert school.verified_at == verified_at
        mock_db.commit.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_verify_missing_school(self, school_service, mock_db, super_admin):
        mock_db.get.return_value = None

        with pytest.raises(SchoolNotFoundError):
            await school_service.verify_school(super_admin, str(uuid4()))


class TestSchoolServiceGet:
    """Tests for reading a school."""

    @pytest.mark.asyncio
    async def test_staff_reads_own_school(self, school_service, mock_db, sample_school):
        mock_db.get.return_value = sample_school
        actor = Actor(id=str(uuid4()), role=Role.PRINCIPAL, school_id=sample_school.id)

        assert await school_service.get_school(actor, sample_school.id) is sample_school

    @pytest.mark.asyncio
    async def test_staff_cannot_read_other_school(self, school_service, mock_db, sample_school):
        mock_db.get.return_value = sample_school
        actor = Actor(id=str(uuid4()), role=Role.PRINCIPAL, school_id=str(uuid4()))

        with pytest.raises(SchoolNotFoundError):
            await school_service.get_school(actor, sample_school.id)

        mock_db.get.assert_not_awaited()
