# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Local filesystem storage backend.

Files are written with aiofiles under ``<root>/<folder>/<uuid>.<ext>``
and served from ``<base_url>/<folder>/<uuid>.<ext>``.
"""

import logging
import uuid
from pathlib import Path, PurePath

import aiofiles
import aiofiles.os

from src.core.config.settings import StorageSettings
from src.infrastructure.storage.base import (
    FileTooLargeError,
    FileTypeNotAllowedError,
    StorageError,
    StoredFile,
)

logger = logging.getLogger(__name__)


class LocalStorageBackend:
    """Stores uploads on the local disk.

    Attributes:
        _settings: Storage configuration.
        _root: Resolved root directory.
    """

    def __init__(self, settings: StorageSettings) -> None:
        self._settings = settings
        self._root = Path(settings.root).resolve()

    def validate(self, original_name: str, size: int) -> str:
        """Check size and extension of an upload.

        Args:
            original_name: Client supplied file name.
            size: Size in bytes.

        Returns:
            The lowercase extension without the dot.

        Raises:
            FileTooLargeError: If the file exceeds the size limit.
            FileTypeNotAllowedError: If the extension is not allowed.
        """
        if size > self._settings.max_file_size_bytes:
            raise FileTooLargeError(
                f"File too large. Maximum size is {self._settings.max_file_size_mb}MB"
            )

        extension = PurePath(original_name).suffix.lower().lstrip(".")
        if extension not in self._settings.allowed_extensions_set:
            raise FileTypeNotAllowedError(f"File type not allowed: {original_name}")
        return extension

    def _folder_path(self, folder: str) -> Path:
        path = (self._root / folder).resolve()
        if self._root not in path.parents and path != self._root:
            raise StorageError(f"Invalid storage folder: {folder}")
        return path

    async def save(
        self,
        folder: str,
        original_name: str,
        content: bytes,
        content_type: str | None = None,
    ) -> StoredFile:
        """Write a file and return its metadata.

        Raises:
            FileTooLargeError: If the file exceeds the size limit.
            FileTypeNotAllowedError: If the extension is not allowed.
            StorageError: If the file cannot be written.
        """
        extension = self.validate(original_name, len(content))
        file_name = f"{uuid.uuid4().hex}.{extension}"
        folder_path = self._folder_path(folder)

        try:
            await aiofiles.os.makedirs(folder_path, exist_ok=True)
            async with aiofiles.open(folder_path / file_name, "wb") as f:
                await f.write(content)
        except OSError as e:
            raise StorageError(f"Failed to store {original_name}: {e}") from e

        url = f"{self._settings.base_url.rstrip('/')}/{folder}/{file_name}"
        logger.debug("Stored file %s as %s (%d bytes)", original_name, url, len(content))

        return StoredFile(
            file_name=file_name,
            original_name=original_name,
            content_type=content_type,
            size=len(content),
            url=url,
            folder=folder,
        )

    async def delete(self, folder: str, file_name: str) -> bool:
        """Remove a stored file.

        Returns:
            True if a file was removed, False if it did not exist.
        """
        path = self._folder_path(folder) / file_name
        try:
            await aiofiles.os.remove(path)
        except FileNotFoundError:
            return False
        except OSError as e:
            raise StorageError(f"Failed to delete {file_name}: {e}") from e
        return True
