# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Storage backend interface for uploaded files."""

from dataclasses import dataclass
from typing import Protocol


@dataclass(frozen=True)
class StoredFile:
    """Result of writing one file to storage.

    Attributes:
        file_name: Generated name the file is stored under.
        original_name: Client supplied name.
        content_type: MIME type reported by the client.
        size: Size in bytes.
        url: Public URL of the stored file.
        folder: Logical folder the file was written to.
    """

    file_name: str
    original_name: str
    content_type: str | None
    size: int
    url: str
    folder: str


class StorageError(Exception):
    """Raised when a file cannot be written or removed."""


class FileTooLargeError(StorageError):
    """Raised when an upload exceeds the configured size limit."""


class FileTypeNotAllowedError(StorageError):
    """Raised when an upload has an extension outside the allow-list."""


class StorageBackend(Protocol):
    """Interface implemented by file storage backends."""

    async def save(
        self,
        folder: str,
        original_name: str,
        content: bytes,
        content_type: str | None = None,
    ) -> StoredFile:
        ...

    async def delete(self, folder: str, file_name: str) -> bool:
        ...


@dataclass(frozen=True)
class FileUpload:
    """An upload read into memory, ready to be stored."""

    original_name: str
    content: bytes
    content_type: str | None = None
