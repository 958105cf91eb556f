from __future__ import annotations

import logging
from typing import List, Optional

from fastapi import APIRouter, HTTPException, Path, Query, status

from errors import ConflictError, DomainError, NotFoundError
from models import (
    BookingOut,
    CreateBookingIn,
    CreateRoomIn,
    RoomOut,
    RoomStatusOut,
    RoomWithStatusOut,
    UpdateBookingIn,
    UpdateRoomIn,
)
from services import BookingService, RoomService

logger = logging.getLogger(__name__)


def _http_error(exc: DomainError) -> HTTPException:
    if isinstance(exc, NotFoundError):
        code = status.HTTP_404_NOT_FOUND
    elif isinstance(exc, ConflictError):
        code = status.HTTP_409_CONFLICT
    else:
        # ValidationError and anything else the caller can fix
        code = status.HTTP_400_BAD_REQUEST
    logger.warning("Request rejected (%s): %s", type(exc).__name__, exc.message)
    return HTTPException(status_code=code, detail=exc.message)


def create_router(bookings: BookingService, rooms: RoomService) -> APIRouter:
    router = APIRouter()

    # -----------------------------
    # Bookings
    # -----------------------------
    @router.post("/bookings", response_model=BookingOut, status_code=status.HTTP_201_CREATED)
    def create_booking(payload: CreateBookingIn) -> BookingOut:
        try:
            booking = bookings.create_booking(payload)
        except DomainError as exc:
            raise _http_error(exc)
        logger.info("Created booking %s for room %s", booking.booking_id, booking.room_id)
        return booking

    @router.get("/bookings", response_model=List[BookingOut])
    def list_bookings(room_id: Optional[str] = Query(default=None)) -> List[BookingOut]:
        return bookings.list_bookings(room_id)

    @router.get("/bookings/{booking_id}", response_model=BookingOut)
    def get_booking(booking_id: str = Path(..., min_length=1)) -> BookingOut:
        try:
            return bookings.get_booking(booking_id)
        except DomainError as exc:
            raise _http_error(exc)

    @router.patch("/bookings/{booking_id}", response_model=BookingOut)
    def update_booking(payload: UpdateBookingIn, booking_id: str = Path(..., min_length=1)) -> BookingOut:
        try:
            booking = bookings.update_booking(booking_id, payload)
        except DomainError as exc:
            raise _http_error(exc)
        logger.info("Updated booking %s", booking_id)
        return booking

    @router.post("/bookings/{booking_id}/approve", response_model=BookingOut)
    def approve_booking(booking_id: str = Path(..., min_length=1)) -> BookingOut:
        try:
            booking = bookings.approve_booking(booking_id)
        except DomainError as exc:
            raise _http_error(exc)
        logger.info("Approved booking %s", booking_id)
        return booking

    @router.post("/bookings/{booking_id}/decline", response_model=BookingOut)
    def decline_booking(booking_id: str = Path(..., min_length=1)) -> BookingOut:
        try:
            booking = bookings.decline_booking(booking_id)
        except DomainError as exc:
            raise _http_error(exc)
        logger.info("Declined booking %s", booking_id)
        return booking

    @router.delete("/bookings/{booking_id}", status_code=status.HTTP_204_NO_CONTENT)
    def delete_booking(booking_id: str = Path(..., min_length=1)) -> None:
        try:
            bookings.delete_booking(booking_id)
        except DomainError as exc:
            raise _http_error(exc)
        logger.info("Deleted booking %s", booking_id)
        return None

    # -----------------------------
    # Rooms
    # -----------------------------
    @router.get("/rooms", response_model=List[RoomWithStatusOut])
    def list_rooms() -> List[RoomWithStatusOut]:
        return rooms.list_rooms()

    @router.post("/rooms", response_model=RoomOut, status_code=status.HTTP_201_CREATED)
    def create_room(payload: CreateRoomIn) -> RoomOut:
        try:
            room = rooms.create_room(payload)
        except DomainError as exc:
            raise _http_error(exc)
        logger.info("Created room %s (%s)", room.room_id, room.name)
        return room

    @router.get("/rooms/{room_id}", response_model=RoomWithStatusOut)
    def get_room(room_id: str = Path(..., min_length=1)) -> RoomWithStatusOut:
        try:
            return rooms.get_room(room_id)
        except DomainError as exc:
            raise _http_error(exc)

    @router.patch("/rooms/{room_id}", response_model=RoomOut)
    def update_room(payload: UpdateRoomIn, room_id: str = Path(..., min_length=1)) -> RoomOut:
        try:
            room = rooms.update_room(room_id, payload)
        except DomainError as exc:
            raise _http_error(exc)
        logger.info("Updated room %s", room_id)
        return room

    @router.delete("/rooms/{room_id}", status_code=status.HTTP_204_NO_CONTENT)
    def delete_room(room_id: str = Path(..., min_length=1)) -> None:
        try:
            rooms.delete_room(room_id)
        except DomainError as exc:
            raise _http_error(exc)
        logger.info("Deleted room %s", room_id)
        return None

    @router.get("/rooms/{room_id}/bookings", response_model=List[BookingOut])
    def list_bookings_for_room(room_id: str = Path(..., min_length=1)) -> List[BookingOut]:
        try:
            return bookings.list_bookings_for_room(room_id)
        except DomainError as exc:
            raise _http_error(exc)

    @router.get("/rooms/{room_id}/status", response_model=RoomStatusOut)
    def get_room_status(room_id: str = Path(..., min_length=1)) -> RoomStatusOut:
        try:
            return rooms.get_room_status(room_id)
        except DomainError as exc:
            raise _http_error(exc)

    return router
