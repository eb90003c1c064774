# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Room domain package."""

from src.domains.room.service import (
    RoomCapacityError,
    RoomInUseError,
    RoomNameExistsError,
    RoomNotFoundError,
    RoomService,
    RoomServiceError,
)

__all__ = [
    "RoomService",
    "RoomServiceError",
    "RoomNotFoundError",
    "RoomNameExistsError",
    "RoomCapacityError",
    "RoomInUseError",
]
