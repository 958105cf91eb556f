from __future__ import annotations

from dataclasses import replace
from datetime import datetime
from threading import Lock
from typing import Any, Dict, List, Mapping, Optional, Protocol
from uuid import uuid4

from conflicts import find_conflicts, is_blocking
from errors import ConflictError
from models import Booking, BookingData, Room, RoomData, utc_now


class RoomRepository(Protocol):
    def create(self, data: RoomData) -> Room: ...

    def find_by_id(self, room_id: str) -> Optional[Room]: ...

    def find_all(self) -> List[Room]: ...

    def update(self, room_id: str, changes: Mapping[str, Any]) -> Room: ...

    def delete(self, room_id: str) -> bool: ...


class BookingRepository(Protocol):
    def create(self, data: BookingData) -> Booking: ...

    def find_by_id(self, booking_id: str) -> Optional[Booking]: ...

    def find_by_room_id(self, room_id: str) -> List[Booking]: ...

    def find_all(self) -> List[Booking]: ...

    def find_overlapping(
        self,
        room_id: str,
        start: datetime,
        end: datetime,
        exclude_id: Optional[str] = None,
    ) -> List[Booking]: ...

    def update(self, booking_id: str, changes: Mapping[str, Any]) -> Booking: ...

    def delete(self, booking_id: str) -> bool: ...


def _by_start(bookings: List[Booking]) -> List[Booking]:
    return sorted(bookings, key=lambda b: (b.start_utc, b.booking_id))


class InMemoryRoomRepository:
    def __init__(self) -> None:
        self._items: Dict[str, Room] = {}
        self._lock = Lock()

    def create(self, data: RoomData) -> Room:
        now = utc_now()
        room = Room(
            room_id=f"room_{uuid4().hex}",
            name=data.name,
            location=data.location,
            capacity=data.capacity,
            is_active=data.is_active,
            work_hours=data.work_hours,
            amenities=tuple(data.amenities),
            created_at=now,
            updated_at=now,
        )
        with self._lock:
            self._items[room.room_id] = room
        return room

    def find_by_id(self, room_id: str) -> Optional[Room]:
        with self._lock:
            return self._items.get(room_id)

    def find_all(self) -> List[Room]:
        with self._lock:
            return sorted(self._items.values(), key=lambda r: (r.name, r.room_id))

    def update(self, room_id: str, changes: Mapping[str, Any]) -> Room:
        with self._lock:
            room = replace(self._items[room_id], **changes, updated_at=utc_now())
            self._items[room_id] = room
            return room

    def delete(self, room_id: str) -> bool:
        with self._lock:
            if room_id not in self._items:
                return False
            del self._items[room_id]
            return True

    def reset(self) -> None:
        """Clear all rooms. For testing only."""
        with self._lock:
            self._items.clear()


class InMemoryBookingRepository:
    """
    Bookings kept in a dict behind a lock.

    ``create`` and ``update`` re-check blocking overlaps while holding the
    lock, so two concurrent writers cannot both take the same slot even if
    both passed the service-level check.
    """

    def __init__(self) -> None:
        self._items: Dict[str, Booking] = {}
        self._lock = Lock()

    def create(self, data: BookingData) -> Booking:
        booking = Booking(
            booking_id=f"bkg_{uuid4().hex}",
            room_id=data.room_id,
            title=data.title,
            organizer=data.organizer,
            start_utc=data.start_utc,
            end_utc=data.end_utc,
            status=data.status,
            created_at=utc_now(),
        )
        with self._lock:
            if is_blocking(booking) and find_conflicts(
                booking.room_id, booking.start_utc, booking.end_utc, self._items.values()
            ):
                raise ConflictError("Time slot is already booked")
            self._items[booking.booking_id] = booking
        return booking

    def find_by_id(self, booking_id: str) -> Optional[Booking]:
        with self._lock:
            return self._items.get(booking_id)

    def find_by_room_id(self, room_id: str) -> List[Booking]:
        with self._lock:
            return _by_start([b for b in self._items.values() if b.room_id == room_id])

    def find_all(self) -> List[Booking]:
        with self._lock:
            return _by_start(list(self._items.values()))

    def find_overlapping(
        self,
        room_id: str,
        start: datetime,
        end: datetime,
        exclude_id: Optional[str] = None,
    ) -> List[Booking]:
        with self._lock:
            return _by_start(find_conflicts(room_id, start, end, self._items.values(), exclude_id))

    def update(self, booking_id: str, changes: Mapping[str, Any]) -> Booking:
        with self._lock:
            booking = replace(self._items[booking_id], **changes)
            moved = "start_utc" in changes or "end_utc" in changes
            if moved and is_blocking(booking) and find_conflicts(
                booking.room_id,
                booking.start_utc,
                booking.end_utc,
                self._items.values(),
                booking.booking_id,
            ):
                raise ConflictError("Time slot is already booked")
            self._items[booking_id] = booking
            return booking

    def delete(self, booking_id: str) -> bool:
        with self._lock:
            if booking_id not in self._items:
                return False
            del self._items[booking_id]
            return True

    def reset(self) -> None:
        """Clear all bookings. For testing only."""
        with self._lock:
            self._items.clear()
