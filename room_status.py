"""Live room status derived from a room's work hours and bookings."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, tzinfo
from enum import Enum
from typing import Iterable, Optional

from models import Booking, Room
from timewindows import minutes_of_day, parse_hhmm


class RoomStatus(str, Enum):
    AVAILABLE = "available"
    BUSY = "busy"
    UNAVAILABLE = "unavailable"


@dataclass(frozen=True)
class RoomStatusInfo:
    status: RoomStatus
    status_message: str
    next_change: Optional[datetime] = None


def format_clock_time(dt: datetime) -> str:
    """12-hour clock without a leading zero, e.g. ``9:05 AM``."""
    hour = dt.hour % 12 or 12
    suffix = "AM" if dt.hour < 12 else "PM"
    return f"{hour}:{dt.minute:02d} {suffix}"


def resolve_status(
    room: Room,
    bookings: Iterable[Booking],
    now: datetime,
    tz: Optional[tzinfo] = None,
) -> RoomStatusInfo:
    """
    Compute the room's status at ``now``.

    ``bookings`` must already be filtered to the ones that should count;
    this function does not look at booking status. ``tz`` is the zone in
    which work hours are interpreted and times are rendered (defaults to
    the zone of ``now``).
    """
    if not room.is_active:
        return RoomStatusInfo(RoomStatus.UNAVAILABLE, "Room is inactive")

    local_now = now.astimezone(tz) if tz is not None else now

    current = minutes_of_day(local_now)
    if current < parse_hhmm(room.work_hours.start) or current > parse_hhmm(room.work_hours.end):
        return RoomStatusInfo(RoomStatus.UNAVAILABLE, "Outside work hours")

    def _local(dt: datetime) -> datetime:
        return dt.astimezone(tz) if tz is not None else dt

    bookings = list(bookings)

    for booking in bookings:
        if booking.start_utc <= now < booking.end_utc:
            return RoomStatusInfo(
                RoomStatus.BUSY,
                f"Busy until {format_clock_time(_local(booking.end_utc))}",
                booking.end_utc,
            )

    upcoming = sorted(
        (b for b in bookings if b.start_utc > now),
        key=lambda b: (b.start_utc, b.booking_id),
    )
    if upcoming:
        nxt = upcoming[0]
        return RoomStatusInfo(
            RoomStatus.AVAILABLE,
            f"Available until {format_clock_time(_local(nxt.start_utc))}",
            nxt.start_utc,
        )

    return RoomStatusInfo(RoomStatus.AVAILABLE, "Available")
