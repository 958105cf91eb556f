from __future__ import annotations

import re
from datetime import datetime

from errors import ValidationError

_HHMM = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")


def parse_hhmm(value: str) -> int:
    """Return minutes since midnight for a zero-padded 24-hour "HH:MM" string."""
    match = _HHMM.match(value) if isinstance(value, str) else None
    if match is None:
        raise ValidationError(f"Invalid time of day: {value!r} (expected HH:MM)")
    return int(match.group(1)) * 60 + int(match.group(2))


def validate_work_hours(start: str, end: str) -> None:
    if parse_hhmm(end) <= parse_hhmm(start):
        raise ValidationError("Work hours end must be after start")


def minutes_of_day(dt: datetime) -> int:
    return dt.hour * 60 + dt.minute


def intervals_overlap(a_start: datetime, a_end: datetime, b_start: datetime, b_end: datetime) -> bool:
    """
    Half-open interval overlap: [start, end)
    Overlap iff a_start < b_end AND b_start < a_end.
    Back-to-back is allowed (end == other.start is NOT overlap).
    """
    return a_start < b_end and b_start < a_end


def work_minutes_per_day(window_start: str, window_end: str) -> int:
    return parse_hhmm(window_end) - parse_hhmm(window_start)


def clip_to_window(start: datetime, end: datetime, window_start: str, window_end: str) -> int:
    """
    Minutes of [start, end) that fall inside [window_start, window_end)
    on the calendar day of ``start``. Returns 0 for an empty or inverted clip.
    """
    ws = parse_hhmm(window_start)
    we = parse_hhmm(window_end)

    day = start.replace(hour=0, minute=0, second=0, microsecond=0)
    win_start = day.replace(hour=ws // 60, minute=ws % 60)
    win_end = day.replace(hour=we // 60, minute=we % 60)

    clipped_start = max(start, win_start)
    clipped_end = min(end, win_end)
    if clipped_end <= clipped_start:
        return 0
    return int((clipped_end - clipped_start).total_seconds() // 60)
