from __future__ import annotations

from datetime import datetime, tzinfo
from typing import Any, Callable, Dict, List, Optional

from approval import next_status
from conflicts import find_conflicts, is_blocking
from errors import ConflictError, NotFoundError, ValidationError
from models import (
    Booking,
    BookingData,
    BookingOut,
    BookingStatus,
    CreateBookingIn,
    CreateRoomIn,
    Room,
    RoomData,
    RoomOut,
    RoomStatusOut,
    RoomWithStatusOut,
    UpdateBookingIn,
    UpdateRoomIn,
    WorkHours,
    WorkHoursModel,
    parse_iso8601_tz,
    to_utc,
    utc_iso_z,
    utc_now,
)
from repository import BookingRepository, RoomRepository
from room_status import RoomStatusInfo, resolve_status
from timewindows import validate_work_hours


def _parse_timestamp(value: str, field: str) -> datetime:
    try:
        return to_utc(parse_iso8601_tz(value))
    except ValueError as exc:
        raise ValidationError(f"Invalid {field} timestamp: {exc}") from exc


def booking_out(b: Booking) -> BookingOut:
    return BookingOut(
        booking_id=b.booking_id,
        room_id=b.room_id,
        title=b.title,
        organizer=b.organizer,
        start=utc_iso_z(b.start_utc),
        end=utc_iso_z(b.end_utc),
        status=b.status,
        created_at=utc_iso_z(to_utc(b.created_at)),
    )


def _require_active_room(rooms: RoomRepository, room_id: str) -> Room:
    room = rooms.find_by_id(room_id)
    if room is None:
        raise NotFoundError("Room", room_id)
    if not room.is_active:
        raise ValidationError("Room is not active")
    return room


class BookingService:
    """
    Booking lifecycle: create, update, approval transitions.

    With ``track_status`` off, bookings are stored without a status and all
    of them block their slot.
    """

    def __init__(
        self,
        bookings: BookingRepository,
        rooms: RoomRepository,
        track_status: bool = True,
    ) -> None:
        self._bookings = bookings
        self._rooms = rooms
        self._track_status = track_status

    def create_booking(self, payload: CreateBookingIn) -> BookingOut:
        if not (payload.room_id and payload.title and payload.start and payload.end):
            raise ValidationError("Room ID, title, start, and end are required")

        start = _parse_timestamp(payload.start, "start")
        end = _parse_timestamp(payload.end, "end")

        # Rule: start must be before end
        if not (start < end):
            raise ValidationError("End time must be after start time")

        _require_active_room(self._rooms, payload.room_id)

        # Rule: no overlap with blocking bookings in the same room
        existing = self._bookings.find_by_room_id(payload.room_id)
        if find_conflicts(payload.room_id, start, end, existing):
            raise ConflictError("Time slot is already booked")

        booking = self._bookings.create(
            BookingData(
                room_id=payload.room_id,
                title=payload.title,
                organizer=payload.organizer or None,
                start_utc=start,
                end_utc=end,
                status=BookingStatus.PENDING if self._track_status else None,
            )
        )
        return booking_out(booking)

    def update_booking(self, booking_id: str, payload: UpdateBookingIn) -> BookingOut:
        current = self._get(booking_id)

        # Missing or empty fields fall back to the stored values; organizer
        # is replaced whenever it was sent, and an empty value clears it.
        title = payload.title or current.title
        start = _parse_timestamp(payload.start, "start") if payload.start else current.start_utc
        end = _parse_timestamp(payload.end, "end") if payload.end else current.end_utc
        if "organizer" in payload.model_fields_set:
            organizer = payload.organizer or None
        else:
            organizer = current.organizer

        if not (start < end):
            raise ValidationError("End time must be after start time")

        _require_active_room(self._rooms, current.room_id)

        existing = self._bookings.find_by_room_id(current.room_id)
        if find_conflicts(current.room_id, start, end, existing, exclude_booking_id=booking_id):
            raise ConflictError("Time slot is already booked")

        updated = self._bookings.update(
            booking_id,
            {"title": title, "organizer": organizer, "start_utc": start, "end_utc": end},
        )
        return booking_out(updated)

    def approve_booking(self, booking_id: str) -> BookingOut:
        # Conflicts are not re-checked on approval.
        return self._transition(booking_id, BookingStatus.APPROVED)

    def decline_booking(self, booking_id: str) -> BookingOut:
        return self._transition(booking_id, BookingStatus.DECLINED)

    def _transition(self, booking_id: str, target: BookingStatus) -> BookingOut:
        current = self._get(booking_id)
        status = next_status(current.status, target)
        if status == current.status:
            return booking_out(current)
        return booking_out(self._bookings.update(booking_id, {"status": status}))

    def get_booking(self, booking_id: str) -> BookingOut:
        return booking_out(self._get(booking_id))

    def list_bookings(self, room_id: Optional[str] = None) -> List[BookingOut]:
        if room_id:
            items = self._bookings.find_by_room_id(room_id)
        else:
            items = self._bookings.find_all()
        return [booking_out(b) for b in items]

    def list_bookings_for_room(self, room_id: str) -> List[BookingOut]:
        if self._rooms.find_by_id(room_id) is None:
            raise NotFoundError("Room", room_id)
        items = self._bookings.find_by_room_id(room_id)
        items.sort(key=lambda b: b.start_utc)
        return [booking_out(b) for b in items]

    def delete_booking(self, booking_id: str) -> None:
        # Cancellation is a hard delete.
        deleted = self._bookings.delete(booking_id)
        if not deleted:
            raise NotFoundError("Booking", booking_id)

    def _get(self, booking_id: str) -> Booking:
        booking = self._bookings.find_by_id(booking_id)
        if booking is None:
            raise NotFoundError("Booking", booking_id)
        return booking


def room_out(room: Room) -> RoomOut:
    return RoomOut(
        room_id=room.room_id,
        name=room.name,
        location=room.location,
        capacity=room.capacity,
        is_active=room.is_active,
        work_hours=WorkHoursModel(start=room.work_hours.start, end=room.work_hours.end),
        amenities=list(room.amenities),
    )


def _status_fields(info: RoomStatusInfo) -> Dict[str, Any]:
    return {
        "status": info.status.value,
        "status_message": info.status_message,
        "next_change": utc_iso_z(to_utc(info.next_change)) if info.next_change else None,
    }


class RoomService:
    """Room administration and live room status."""

    def __init__(
        self,
        rooms: RoomRepository,
        bookings: BookingRepository,
        tz: Optional[tzinfo] = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._rooms = rooms
        self._bookings = bookings
        self._tz = tz
        self._clock = clock

    def create_room(self, payload: CreateRoomIn) -> RoomOut:
        if not payload.name or not payload.location or payload.capacity is None:
            raise ValidationError("Name, location, and capacity are required")
        if payload.capacity < 1:
            raise ValidationError("Capacity must be at least 1")
        if payload.work_hours is None:
            raise ValidationError("Work hours are required")
        validate_work_hours(payload.work_hours.start, payload.work_hours.end)

        room = self._rooms.create(
            RoomData(
                name=payload.name,
                location=payload.location,
                capacity=payload.capacity,
                is_active=True if payload.is_active is None else payload.is_active,
                work_hours=WorkHours(payload.work_hours.start, payload.work_hours.end),
                amenities=tuple(payload.amenities or ()),
            )
        )
        return room_out(room)

    def update_room(self, room_id: str, payload: UpdateRoomIn) -> RoomOut:
        room = self._get(room_id)

        changes: Dict[str, Any] = {}
        if payload.name:
            changes["name"] = payload.name
        if payload.location:
            changes["location"] = payload.location
        if payload.capacity is not None:
            if payload.capacity < 1:
                raise ValidationError("Capacity must be at least 1")
            changes["capacity"] = payload.capacity
        if payload.is_active is not None:
            changes["is_active"] = payload.is_active
        if payload.work_hours is not None:
            validate_work_hours(payload.work_hours.start, payload.work_hours.end)
            changes["work_hours"] = WorkHours(payload.work_hours.start, payload.work_hours.end)
        if payload.amenities is not None:
            changes["amenities"] = tuple(payload.amenities)

        if not changes:
            return room_out(room)
        return room_out(self._rooms.update(room_id, changes))

    def delete_room(self, room_id: str) -> None:
        self._get(room_id)
        for booking in self._bookings.find_by_room_id(room_id):
            self._bookings.delete(booking.booking_id)
        self._rooms.delete(room_id)

    def get_room(self, room_id: str) -> RoomWithStatusOut:
        room = self._get(room_id)
        info = self._status(room, self._bookings.find_by_room_id(room_id))
        return RoomWithStatusOut(**room_out(room).model_dump(), **_status_fields(info))

    def get_room_status(self, room_id: str) -> RoomStatusOut:
        room = self._get(room_id)
        info = self._status(room, self._bookings.find_by_room_id(room_id))
        return RoomStatusOut(**_status_fields(info))

    def list_rooms(self) -> List[RoomWithStatusOut]:
        rooms = self._rooms.find_all()
        all_bookings = self._bookings.find_all()

        result = []
        for room in rooms:
            room_bookings = [b for b in all_bookings if b.room_id == room.room_id]
            info = self._status(room, room_bookings)
            result.append(RoomWithStatusOut(**room_out(room).model_dump(), **_status_fields(info)))
        return result

    def _status(self, room: Room, bookings: List[Booking]) -> RoomStatusInfo:
        # Declined requests do not make a room look busy.
        return resolve_status(room, [b for b in bookings if is_blocking(b)], self._clock(), self._tz)

    def _get(self, room_id: str) -> Room:
        room = self._rooms.find_by_id(room_id)
        if room is None:
            raise NotFoundError("Room", room_id)
        return room
