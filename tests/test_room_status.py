from datetime import datetime, timedelta, timezone

from models import Booking, BookingStatus, Room, WorkHours
from room_status import RoomStatus, format_clock_time, resolve_status

NOW = datetime(2024, 1, 1, 10, 0, tzinfo=timezone.utc)


def make_room(is_active=True, start="08:00", end="18:00") -> Room:
    return Room(
        room_id="room_1",
        name="Fjord",
        location="2nd floor",
        capacity=6,
        is_active=is_active,
        work_hours=WorkHours(start, end),
    )


def make_booking(booking_id, start, end) -> Booking:
    return Booking(
        booking_id=booking_id,
        room_id="room_1",
        title="Meeting",
        organizer=None,
        start_utc=start,
        end_utc=end,
        status=BookingStatus.APPROVED,
        created_at=NOW - timedelta(days=1),
    )


def at(hour, minute=0):
    return NOW.replace(hour=hour, minute=minute)


def test_no_bookings_is_available():
    info = resolve_status(make_room(), [], NOW)
    assert info.status == RoomStatus.AVAILABLE
    assert info.status_message == "Available"
    assert info.next_change is None


def test_current_booking_is_busy():
    info = resolve_status(make_room(), [make_booking("b1", at(9, 30), at(10, 30))], NOW)
    assert info.status == RoomStatus.BUSY
    assert info.status_message == "Busy until 10:30 AM"
    assert info.next_change == at(10, 30)


def test_future_booking_is_available_until_start():
    info = resolve_status(make_room(), [make_booking("b1", at(11), at(12))], NOW)
    assert info.status == RoomStatus.AVAILABLE
    assert info.status_message == "Available until 11:00 AM"
    assert info.next_change == at(11)


def test_outside_work_hours():
    info = resolve_status(make_room(), [], at(19))
    assert info.status == RoomStatus.UNAVAILABLE
    assert info.status_message == "Outside work hours"

    info = resolve_status(make_room(), [], at(7, 59))
    assert info.status == RoomStatus.UNAVAILABLE


def test_closing_minute_still_inside_work_hours():
    assert resolve_status(make_room(), [], at(18)).status == RoomStatus.AVAILABLE


def test_inactive_room_wins_over_bookings():
    info = resolve_status(make_room(is_active=False), [make_booking("b1", at(9), at(11))], NOW)
    assert info.status == RoomStatus.UNAVAILABLE
    assert info.status_message == "Room is inactive"
    assert info.next_change is None


def test_booking_ending_now_is_not_current():
    bookings = [make_booking("b1", at(9), at(10)), make_booking("b2", at(10), at(11))]
    info = resolve_status(make_room(), bookings, NOW)
    assert info.status == RoomStatus.BUSY
    assert info.next_change == at(11)


def test_earliest_future_booking_wins_ties_by_id():
    bookings = [
        make_booking("b3", at(14), at(15)),
        make_booking("b2", at(11), at(12)),
        make_booking("b1", at(11), at(11, 30)),
    ]
    info = resolve_status(make_room(), bookings, NOW)
    assert info.next_change == at(11)
    assert info.status_message == "Available until 11:00 AM"


def test_display_zone_shifts_work_hours_and_messages():
    oslo = timezone(timedelta(hours=1))
    # 07:30 UTC is 08:30 in UTC+1, inside work hours there.
    now = at(7, 30)
    info = resolve_status(make_room(), [make_booking("b1", at(7), at(13))], now, tz=oslo)
    assert info.status == RoomStatus.BUSY
    assert info.status_message == "Busy until 2:00 PM"


def test_format_clock_time():
    assert format_clock_time(at(0, 5)) == "12:05 AM"
    assert format_clock_time(at(12)) == "12:00 PM"
    assert format_clock_time(at(21, 45)) == "9:45 PM"
