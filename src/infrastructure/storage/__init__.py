# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""File storage for uploaded assignment documents and submissions."""

from src.infrastructure.storage.base import (
    FileUpload,
    FileTooLargeError,
    FileTypeNotAllowedError,
    StorageBackend,
    StorageError,
    StoredFile,
)
from src.infrastructure.storage.local import LocalStorageBackend

__all__ = [
    "StorageBackend",
    "StoredFile",
    "FileUpload",
    "StorageError",
    "FileTooLargeError",
    "FileTypeNotAllowedError",
    "LocalStorageBackend",
]
