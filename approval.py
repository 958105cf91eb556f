"""Booking approval state machine."""

from __future__ import annotations

from typing import Optional

from errors import ValidationError
from models import BookingStatus

# Approved and declined are terminal; re-applying them is a no-op.
BOOKING_TRANSITIONS = {
    BookingStatus.PENDING: {BookingStatus.APPROVED, BookingStatus.DECLINED},
    BookingStatus.APPROVED: {BookingStatus.APPROVED},
    BookingStatus.DECLINED: {BookingStatus.DECLINED},
}


def next_status(current: Optional[BookingStatus], target: BookingStatus) -> BookingStatus:
    if current is None:
        raise ValidationError("Booking does not track approval status")

    allowed = BOOKING_TRANSITIONS.get(current, set())
    if target not in allowed:
        raise ValidationError(
            f"Invalid booking transition: {current.value} -> {target.value}"
        )
    return target
