# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Room API endpoints."""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.dependencies import RequireRole, get_db, get_page_params
from src.api.middleware.auth import CurrentUser
from src.domains.room import RoomService
from src.models.academic import (
    RoomCreateRequest,
    RoomDetailResponse,
    RoomListResponse,
    RoomResponse,
    RoomUpdateRequest,
)
from src.models.common import SCHOOL_MANAGER_ROLES, MessageResponse, Role
from src.utils.pagination import PageParams, Pagination

logger = logging.getLogger(__name__)

router = APIRouter()

require_room_reader = RequireRole(*SCHOOL_MANAGER_ROLES, Role.TEACHER)
require_room_manager = RequireRole(*SCHOOL_MANAGER_ROLES)


def get_room_service(db: AsyncSession = Depends(get_db)) -> RoomService:
    return RoomService(db)


@router.get("", response_model=RoomListResponse, summary="List rooms")
async def list_rooms(
    school_id: UUID | None = Query(None, description="Super admin school filter"),
    min_capacity: int | None = Query(None, ge=1, description="Rooms seating at least this many"),
    params: PageParams = Depends(get_page_params),
    current_user: CurrentUser = Depends(require_room_reader),
    service: RoomService = Depends(get_room_service),
) -> RoomListResponse:
    rooms, total = await service.list_rooms(
        current_user.to_actor(),
        params,
        school_id=str(school_id) if school_id else None,
        min_capacity=min_capacity,
    )
    return RoomListResponse(
        message="Rooms retrieved successfully",
        rooms=[RoomResponse.model_validate(room) for room in rooms],
        pagination=Pagination.build(params, total),
    )


@router.post(
    "",
    response_model=RoomDetailResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a room",
)
async def create_room(
    body: RoomCreateRequest,
    current_user: CurrentUser = Depends(require_room_manager),
    service: RoomService = Depends(get_room_service),
) -> RoomDetailResponse:
    room = await service.create_room(current_user.to_actor(), body)
    return RoomDetailResponse(
        message="Room created successfully",
        room=RoomResponse.model_validate(room),
    )


@router.get("/{room_id}", response_model=RoomDetailResponse, summary="Get a room")
async def get_room(
    room_id: UUID,
    current_user: CurrentUser = Depends(require_room_reader),
    service: RoomService = Depends(get_room_service),
) -> RoomDetailResponse:
    room = await service.get_room(current_user.to_actor(), str(room_id))
    return RoomDetailResponse(
        message="Room retrieved successfully",
        room=RoomResponse.model_validate(room),
    )


@router.put("/{room_id}", response_model=RoomDetailResponse, summary="Update a room")
async def update_room(
    room_id: UUID,
    body: RoomUpdateRequest,
    current_user: CurrentUser = Depends(require_room_manager),
    service: RoomService = Depends(get_room_service),
) -> RoomDetailResponse:
    room = await service.update_room(current_user.to_actor(), str(room_id), body)
    return RoomDetailResponse(
        message="Room updated successfully",
        room=RoomResponse.model_validate(room),
    )


@router.delete("/{room_id}", response_model=MessageResponse, summary="Delete a room")
async def delete_room(
    room_id: UUID,
    current_user: CurrentUser = Depends(require_room_manager),
    service: RoomService = Depends(get_room_service),
) -> MessageResponse:
    await service.delete_room(current_user.to_actor(), str(room_id))
    return MessageResponse(message="Room deleted successfully")
