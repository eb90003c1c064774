# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for the local file storage backend."""

from pathlib import Path

import pytest

from src.core.config.settings import StorageSettings
from src.infrastructure.storage import (
    FileTooLargeError,
    FileTypeNotAllowedError,
    LocalStorageBackend,
    StorageError,
)


@pytest.fixture
def storage(tmp_path: Path) -> LocalStorageBackend:
    settings = StorageSettings(
        root=str(tmp_path),
        base_url="/uploads",
        max_file_size_mb=1,
        allowed_extensions="pdf,txt",
    )
    return LocalStorageBackend(settings)


class TestLocalStorageBackend:
    """Tests for LocalStorageBackend."""

    @pytest.mark.asyncio
    async def test_save_writes_file_under_folder(
        self, storage: LocalStorageBackend, tmp_path: Path
    ) -> None:
        stored = await storage.save("assignments", "Homework.PDF", b"%PDF-1.4", "application/pdf")

        assert stored.file_name.endswith(".pdf")
        assert stored.original_name == "Homework.PDF"
        assert stored.size == 8
        assert stored.url == f"/uploads/assignments/{stored.file_name}"
        assert (tmp_path / "assignments" / stored.file_name).read_bytes() == b"%PDF-1.4"

    @pytest.mark.asyncio
    async def test_rejects_large_file(self, storage: LocalStorageBackend) -> None:
        with pytest.raises(FileTooLargeError, match="Maximum size is 1MB"):
            await storage.save("assignments", "big.pdf", b"x" * (1024 * 1024 + 1))

    @pytest.mark.asyncio
    async def test_rejects_disallowed_extension(self, storage: LocalStorageBackend) -> None:
        with pytest.raises(FileTypeNotAllowedError):
            await storage.save("assignments", "script.exe", b"MZ")

    @pytest.mark.asyncio
    async def test_rejects_folder_outside_root(self, storage: LocalStorageBackend) -> None:
        with pytest.raises(StorageError):
            await storage.save("../escape", "notes.txt", b"hi")

    @pytest.mark.asyncio
    async def test_delete(self, storage: LocalStorageBackend) -> None:
        stored = await storage.save("submissions", "notes.txt", b"hello")

        assert await storage.delete("submissions", stored.file_name) is True
        assert await storage.delete("submissions", stored.file_name) is False
