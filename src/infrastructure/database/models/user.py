# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""User, role profile, approval and device token models.

Each role except SUPER_ADMIN has a profile row keyed 1:1 to the user by
sharing its primary key. Staff profiles carry the school_id tenant key;
parents are tenant-independent and reach schools through their children.
"""

from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.infrastructure.database.models.base import (
    Base,
    TimestampMixin,
    UUIDPrimaryKeyMixin,
    uuid_column,
)


class User(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """Login identity with credentials and role."""

    __tablename__ = "users"

    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    username: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    surname: Mapped[str] = mapped_column(String(100), nullable=False)
    role: Mapped[str] = mapped_column(String(32), nullable=False, index=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    last_login: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    @property
    def full_name(self) -> str:
        return f"{self.name} {self.surname}"


class SchoolAdmin(TimestampMixin, Base):
    __tablename__ = "school_admins"

    id: Mapped[str] = uuid_column(ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    school_id: Mapped[str] = uuid_column(ForeignKey("schools.id"), nullable=False, index=True)


class Principal(TimestampMixin, Base):
    __tablename__ = "principals"

    id: Mapped[str] = uuid_column(ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    school_id: Mapped[str] = uuid_column(ForeignKey("schools.id"), nullable=False, index=True)
    image_url: Mapped[str | None] = mapped_column(String(500), nullable=True)


class Teacher(TimestampMixin, Base):
    __tablename__ = "teachers"

    id: Mapped[str] = uuid_column(ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    school_id: Mapped[str] = uuid_column(ForeignKey("schools.id"), nullable=False, index=True)
    qualifications: Mapped[str | None] = mapped_column(Text, nullable=True)
    bio: Mapped[str | None] = mapped_column(Text, nullable=True)
    image_url: Mapped[str | None] = mapped_column(String(500), nullable=True)


class Parent(TimestampMixin, Base):
    __tablename__ = "parents"

    id: Mapped[str] = uuid_column(ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    phone: Mapped[str | None] = mapped_column(String(50), nullable=True)
    address: Mapped[str | None] = mapped_column(Text, nullable=True)


class Approval(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """Onboarding review for a PRINCIPAL or TEACHER account.

    Exactly one row exists per principal/teacher user.
    """

    __tablename__ = "approvals"

    user_id: Mapped[str] = uuid_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
    )
    role: Mapped[str] = mapped_column(String(32), nullable=False)
    school_id: Mapped[str] = uuid_column(ForeignKey("schools.id"), nullable=False, index=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="PENDING", index=True)
    reviewed_by_id: Mapped[str | None] = uuid_column(ForeignKey("users.id"), nullable=True)
    reviewed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    comments: Mapped[str | None] = mapped_column(Text, nullable=True)

    user: Mapped[User] = relationship(foreign_keys=[user_id], lazy="raise")


class DeviceToken(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """Persisted refresh token.

    Only the sha256 hash of the token is stored. Revocation flips
    is_active off; rows are never deleted on logout or password reset.
    """

    __tablename__ = "device_tokens"

    user_id: Mapped[str] = uuid_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    token_hash: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    device_type: Mapped[str] = mapped_column(String(20), nullable=False, default="WEB")
    user_agent: Mapped[str | None] = mapped_column(String(500), nullable=True)
    ip_address: Mapped[str | None] = mapped_column(String(45), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    last_used_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    revoked_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
