from datetime import datetime, timezone

import pytest

from approval import next_status
from conflicts import find_conflicts, is_blocking
from errors import ValidationError
from models import Booking, BookingStatus


def at(hour, minute=0):
    return datetime(2030, 1, 1, hour, minute, tzinfo=timezone.utc)


def make_booking(booking_id, start, end, status=BookingStatus.APPROVED, room_id="room_1"):
    return Booking(
        booking_id=booking_id,
        room_id=room_id,
        title="Meeting",
        organizer=None,
        start_utc=start,
        end_utc=end,
        status=status,
        created_at=at(0),
    )


def test_overlapping_blocking_booking_conflicts():
    existing = [make_booking("a", at(10, 30), at(11, 30))]
    assert [b.booking_id for b in find_conflicts("room_1", at(10), at(11), existing)] == ["a"]


def test_back_to_back_is_free():
    existing = [make_booking("a", at(10, 30), at(11, 30))]
    assert find_conflicts("room_1", at(11, 30), at(12, 30), existing) == []


def test_other_rooms_are_ignored():
    existing = [make_booking("a", at(10), at(11), room_id="room_2")]
    assert find_conflicts("room_1", at(10), at(11), existing) == []


def test_declined_bookings_never_conflict():
    existing = [make_booking("a", at(10), at(11), status=BookingStatus.DECLINED)]
    assert find_conflicts("room_1", at(10), at(11), existing) == []


def test_pending_and_untracked_bookings_block():
    existing = [
        make_booking("a", at(9), at(10), status=BookingStatus.PENDING),
        make_booking("b", at(10), at(11), status=None),
    ]
    assert len(find_conflicts("room_1", at(9, 30), at(10, 30), existing)) == 2
    assert all(is_blocking(b) for b in existing)


def test_excluded_booking_is_skipped():
    existing = [make_booking("a", at(10), at(11)), make_booking("b", at(11), at(12))]
    conflicts = find_conflicts("room_1", at(10), at(11, 30), existing, exclude_booking_id="a")
    assert [b.booking_id for b in conflicts] == ["b"]


def test_pending_can_be_approved_or_declined():
    assert next_status(BookingStatus.PENDING, BookingStatus.APPROVED) == BookingStatus.APPROVED
    assert next_status(BookingStatus.PENDING, BookingStatus.DECLINED) == BookingStatus.DECLINED


def test_terminal_states_are_idempotent():
    assert next_status(BookingStatus.DECLINED, BookingStatus.DECLINED) == BookingStatus.DECLINED
    assert next_status(BookingStatus.APPROVED, BookingStatus.APPROVED) == BookingStatus.APPROVED


@pytest.mark.parametrize(
    "current, target",
    [
        (BookingStatus.APPROVED, BookingStatus.DECLINED),
        (BookingStatus.DECLINED, BookingStatus.APPROVED),
        (BookingStatus.APPROVED, BookingStatus.PENDING),
        (None, BookingStatus.APPROVED),
    ],
)
def test_invalid_transitions(current, target):
    with pytest.raises(ValidationError):
        next_status(current, target)
