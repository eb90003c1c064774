# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Room service.

Rooms are the physical spaces exam sessions are booked into. Their
capacity bounds the number of students a session may seat.
"""

import logging

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.exceptions import (
    ConflictError,
    DependentRecordsError,
    NotFoundError,
    ServiceError,
    ValidationFailedError,
)
from src.domains.tenancy import Actor, resolve_target_school, resolve_tenant_scope
from src.infrastructure.database.models import ExamSession, Room, exam_session_students
from src.infrastructure.database.queries import fetch_page
from src.models.academic import RoomCreateRequest, RoomUpdateRequest
from src.models.common import ExamSessionStatus
from src.utils.pagination import PageParams

logger = logging.getLogger(__name__)


class RoomServiceError(ServiceError):
    """Base exception for room service errors."""

    pass


class RoomNotFoundError(RoomServiceError, NotFoundError):
    pass


class RoomNameExistsError(RoomServiceError, ConflictError):
    pass


class RoomCapacityError(RoomServiceError, ValidationFailedError):
    """Raised when a capacity would not seat an already booked session."""

    pass


class RoomInUseError(RoomServiceError, DependentRecordsError):
    pass


class RoomService:
    """CRUD for school rooms."""

    def __init__(self, db: AsyncSession) -> None:
        self._db = db

    async def list_rooms(
        self,
        actor: Actor,
        params: PageParams,
        school_id: str | None = None,
        min_capacity: int | None = None,
    ) -> tuple[list[Room], int]:
        scope = await resolve_tenant_scope(self._db, actor, school_id)
        stmt = scope.apply(select(Room), Room)
        if min_capacity is not None:
            stmt = stmt.where(Room.capacity >= min_capacity)

        rooms, total = await fetch_page(self._db, stmt, params, Room.name.asc())

        logger.info("Rooms retrieved: user=%s, page=%d, total=%d", actor.id, params.page, total)
        return rooms, total

    async def get_room(self, actor: Actor, room_id: str) -> Room:
        scope = await resolve_tenant_scope(self._db, actor)
        result = await self._db.execute(
            scope.apply(select(Room).where(Room.id == str(room_id)), Room)
        )
        room = result.scalar_one_or_none()
        if room is None:
            raise RoomNotFoundError("Room not found")
        return room

    async def create_room(self, actor: Actor, request: RoomCreateRequest) -> Room:
        school_id = await resolve_target_school(self._db, actor, request.school_id)
        await self._ensure_name_free(school_id, request.name)

        room = Room(name=request.name, capacity=request.capacity, school_id=school_id)
        self._db.add(room)
        await self._db.commit()
        await self._db.refresh(room)

        logger.info("Room created: %s (capacity=%d, school=%s)", room.id, room.capacity, school_id)
        return room

    async def update_room(self, actor: Actor, room_id: str, request: RoomUpdateRequest) -> Room:
        """Rename or resize a room.

        Raises:
            RoomNotFoundError: If missing or out of scope.
            RoomNameExistsError: If the new name is taken in the school.
            RoomCapacityError: If an active session booked in the room
                seats more students than the new capacity.
        """
        room = await self.get_room(actor, room_id)

        if request.name is not None and request.name != room.name:
            await self._ensure_name_free(room.school_id, request.name, exclude_id=room.id)
            room.name = request.name
        if request.capacity is not None and request.capacity < room.capacity:
            if await self._largest_booking(room.id) > request.capacity:
                raise RoomCapacityError("Capacity is below the size of a booked exam session")
        if request.capacity is not None:
            room.capacity = request.capacity

        await self._db.commit()
        await self._db.refresh(room)

        logger.info("Room updated: %s", room.id)
        return room

    async def delete_room(self, actor: Actor, room_id: str) -> None:
        """Delete a room no exam session is booked into.

        Raises:
            RoomNotFoundError: If missing or out of scope.
            RoomInUseError: If exam sessions reference the room.
        """
        room = await self.get_room(actor, room_id)

        result = await self._db.execute(
            select(func.count(ExamSession.id)).where(ExamSession.room_id == room.id)
        )
        if result.scalar():
            raise RoomInUseError("Cannot delete room with existing exam sessions")

        await self._db.delete(room)
        await self._db.commit()

        logger.info("Room deleted: %s", room_id)

    async def _ensure_name_free(
        self,
        school_id: str,
        name: str,
        exclude_id: str | None = None,
    ) -> None:
        stmt = select(Room.id).where(Room.school_id == school_id, Room.name == name)
        if exclude_id:
            stmt = stmt.where(Room.id != exclude_id)
        if (await self._db.execute(stmt)).first() is not None:
            raise RoomNameExistsError("Room with this name already exists in the school")

    async def _largest_booking(self, room_id: str) -> int:
        """Most students seated by one non-cancelled session in the room."""
        seated = (
            select(func.count(exam_session_students.c.student_id).label("seated"))
            .join(ExamSession, ExamSession.id == exam_session_students.c.session_id)
            .where(
                ExamSession.room_id == room_id,
                ExamSession.status != ExamSessionStatus.CANCELLED,
            )
            .group_by(ExamSession.id)
            .subquery()
        )
        result = await self._db.execute(select(func.max(seated.c.seated)))
        return result.scalar() or 0
