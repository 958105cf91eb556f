from __future__ import annotations

from datetime import datetime
from typing import Iterable, List, Optional

from models import Booking, BookingStatus
from timewindows import intervals_overlap

# Declined bookings never block a slot.
BLOCKING_STATUSES = frozenset({BookingStatus.PENDING, BookingStatus.APPROVED})


def is_blocking(booking: Booking) -> bool:
    # Bookings without status tracking count as approved.
    return booking.status is None or booking.status in BLOCKING_STATUSES


def find_conflicts(
    room_id: str,
    start: datetime,
    end: datetime,
    existing: Iterable[Booking],
    exclude_booking_id: Optional[str] = None,
) -> List[Booking]:
    """
    Return the blocking bookings of ``room_id`` whose [start, end) overlaps
    the candidate interval. An empty list means the slot is free.
    """
    return [
        b
        for b in existing
        if b.room_id == room_id
        and is_blocking(b)
        and b.booking_id != exclude_booking_id
        and intervals_overlap(start, end, b.start_utc, b.end_utc)
    ]
