# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Pytest configuration and shared fixtures.

This module provides fixtures used across all test types:
- An in-memory SQLite database with the full schema
- The FastAPI application wired to that database
- An httpx client and a data factory for schools, users and students
"""

import os

# Settings are read at import time by the rate limiter and the app factory.
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("LOG_LEVEL", "WARNING")
os.environ.setdefault("DB_URL", "sqlite+aiosqlite://")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("AUTH_BCRYPT_ROUNDS", "4")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key-for-testing-only")

from collections.abc import AsyncGenerator
from datetime import date
from typing import Any

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from src.api.app import create_app
from src.api.dependencies import get_db, get_storage
from src.core.config import get_settings
from src.core.config.settings import StorageSettings
from src.domains.auth.jwt import JWTManager
from src.domains.auth.password import PasswordHasher
from src.infrastructure.database.connection import (
    create_all_tables,
    create_engine_for_url,
    create_sessionmaker,
)
from src.infrastructure.database.models import (
    Approval,
    Class,
    Parent,
    Principal,
    Room,
    School,
    SchoolAdmin,
    Student,
    Subject,
    Teacher,
    User,
    subject_teachers,
)
from src.infrastructure.database.models.base import new_uuid
from src.infrastructure.storage import LocalStorageBackend
from src.models.common import ApprovalStatus, Role

TEST_PASSWORD = "Password123!"


# =============================================================================
# Database Fixtures
# =============================================================================


@pytest_asyncio.fixture
async def db_engine() -> AsyncGenerator[AsyncEngine, None]:
    """Create a fresh in-memory database with every table."""
    engine = create_engine_for_url("sqlite+aiosqlite://")
    await create_all_tables(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return create_sessionmaker(db_engine)


@pytest_asyncio.fixture
async def db_session(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    """Session for arranging data and asserting on it."""
    async with session_factory() as session:
        yield session


# =============================================================================
# Application Fixtures
# =============================================================================


@pytest.fixture
def app(session_factory: async_sessionmaker[AsyncSession], tmp_path):
    """Create the application bound to the test database."""
    application = create_app()

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            try:
                yield session
            except Exception:
                await session.rollback()
                raise

    storage = LocalStorageBackend(
        StorageSettings(root=str(tmp_path / "uploads"), base_url="/uploads")
    )

    application.dependency_overrides[get_db] = override_get_db
    application.dependency_overrides[get_storage] = lambda: storage
    return application


@pytest_asyncio.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client talking to the app in-process."""
    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://testserver") as http:
        yield http


@pytest.fixture
def jwt_manager() -> JWTManager:
    return JWTManager(get_settings().jwt)


# =============================================================================
# Data Factory
# =============================================================================


class DataFactory:
    """Creates committed rows for tests and issues tokens for users."""

    def __init__(self, session: AsyncSession, jwt_manager: JWTManager) -> None:
        self._db = session
        self._jwt = jwt_manager
        self._hasher = PasswordHasher(rounds=4)
        self._counter = 0

    def _next(self) -> int:
        self._counter += 1
        return self._counter

    async def _save(self, *rows: Any) -> None:
        self._db.add_all(rows)
        await self._db.commit()

    async def school(self, name: str | None = None, *, is_verified: bool = True) -> School:
        school_id = new_uuid()
        school = School(
            id=school_id,
            name=name or f"School {self._next()}",
            city="Istanbul",
            tenant_id=school_id,
            is_verified=is_verified,
        )
        await self._save(school)
        return school

    async def user(
        self,
        role: Role,
        school: School | None = None,
        *,
        email: str | None = None,
        is_active: bool = True,
        approval_status: ApprovalStatus | None = ApprovalStatus.APPROVED,
    ) -> User:
        """Create a user with its role profile (and approval for staff)."""
        n = self._next()
        user = User(
            id=new_uuid(),
            email=email or f"{role.lower()}{n}@example.com",
            username=f"{role.lower()}{n}",
            password_hash=self._hasher.hash(TEST_PASSWORD),
            name=f"{role.title()}",
            surname=f"User{n}",
            role=role,
            is_active=is_active,
        )
        rows: list[Any] = [user]
        if role == Role.SCHOOL_ADMIN:
            rows.append(SchoolAdmin(id=user.id, school_id=school.id))
        elif role == Role.PRINCIPAL:
            rows.append(Principal(id=user.id, school_id=school.id))
        elif role == Role.TEACHER:
            rows.append(Teacher(id=user.id, school_id=school.id))
        elif role == Role.PARENT:
            rows.append(Parent(id=user.id))

        if role in (Role.PRINCIPAL, Role.TEACHER) and approval_status is not None:
            rows.append(
                Approval(
                    user_id=user.id,
                    role=role,
                    school_id=school.id,
                    status=approval_status,
                )
            )
        await self._save(*rows)
        return user

    async def class_(self, school: School, supervisor: User | None = None) -> Class:
        klass = Class(
            name=f"Class {self._next()}",
            school_id=school.id,
            supervisor_id=supervisor.id if supervisor else None,
        )
        await self._save(klass)
        return klass

    async def student(
        self,
        school: School,
        parent: User | None = None,
        klass: Class | None = None,
    ) -> Student:
        n = self._next()
        student = Student(
            name="Student",
            surname=f"No{n}",
            registration_number=f"REG-{n}",
            birth_date=date(2015, 1, 1),
            school_id=school.id,
            class_id=klass.id if klass else None,
            parent_id=parent.id if parent else None,
        )
        await self._save(student)
        return student

    async def subject(self, school: School, *teachers: User, name: str | None = None) -> Subject:
        subject = Subject(name=name or f"Subject {self._next()}", school_id=school.id)
        await self._save(subject)
        for teacher in teachers:
            await self._db.execute(
                subject_teachers.insert().values(subject_id=subject.id, teacher_id=teacher.id)
            )
        await self._db.commit()
        return subject

    async def room(self, school: School, capacity: int = 30) -> Room:
        room = Room(name=f"Room {self._next()}", capacity=capacity, school_id=school.id)
        await self._save(room)
        return room

    def token(
        self,
        user: User,
        school: School | None = None,
        *,
        approval_status: str | None = None,
    ) -> str:
        """Issue an access token with the claims login would produce."""
        if approval_status is None and user.role in (Role.PRINCIPAL, Role.TEACHER):
            approval_status = ApprovalStatus.APPROVED
        return self._jwt.create_access_token(
            user_id=user.id,
            role=user.role,
            school_id=school.id if school else None,
            tenant_id=school.tenant_id if school else None,
            approval_status=approval_status,
        )

    def headers(self, user: User, school: School | None = None, **kwargs: Any) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.token(user, school, **kwargs)}"}


@pytest_asyncio.fixture
async def factory(db_session: AsyncSession, jwt_manager: JWTManager) -> DataFactory:
    return DataFactory(db_session, jwt_manager)


# =============================================================================
# Marker Configuration
# =============================================================================


def pytest_configure(config: pytest.Config) -> None:
    """Configure custom pytest markers."""
    config.addinivalue_line("markers", "unit: mark test as a unit test")
    config.addinivalue_line("markers", "integration: mark test as an integration test")
