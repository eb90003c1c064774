# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Uploaded file metadata."""

from sqlalchemy import ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from src.infrastructure.database.models.base import (
    Base,
    TimestampMixin,
    UUIDPrimaryKeyMixin,
    uuid_column,
)


class FileRecord(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """Metadata for a file written to the storage backend."""

    __tablename__ = "file_records"

    file_name: Mapped[str] = mapped_column(String(255), nullable=False)
    original_name: Mapped[str] = mapped_column(String(255), nullable=False)
    content_type: Mapped[str | None] = mapped_column(String(100), nullable=True)
    size: Mapped[int] = mapped_column(Integer, nullable=False)
    url: Mapped[str] = mapped_column(String(500), nullable=False)
    folder: Mapped[str] = mapped_column(String(100), nullable=False)
    # Owning record, e.g. ("assignment", <id>)
    entity_type: Mapped[str] = mapped_column(String(50), nullable=False)
    entity_id: Mapped[str] = uuid_column(nullable=False, index=True)
    uploaded_by_id: Mapped[str] = uuid_column(ForeignKey("users.id"), nullable=False)
    school_id: Mapped[str | None] = uuid_column(ForeignKey("schools.id"), nullable=True)
