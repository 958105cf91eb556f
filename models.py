from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional, Tuple

from pydantic import BaseModel, Field, field_validator


# -----------------------------
# Shared time helpers
# -----------------------------
def parse_iso8601_tz(ts: str) -> datetime:
    """
    Parse ISO-8601 timestamp with timezone into an aware datetime.
    Accepts 'Z' suffix by converting it to '+00:00'.
    """
    if not isinstance(ts, str) or not ts.strip():
        raise ValueError("timestamp must be a non-empty string")

    s = ts.strip()
    if s.endswith("Z"):
        s = s[:-1] + "+00:00"

    dt = datetime.fromisoformat(s)  # expects offset like +02:00 or +00:00
    if dt.tzinfo is None or dt.utcoffset() is None:
        raise ValueError("timestamp must include a timezone offset")
    return dt


def to_utc(dt: datetime) -> datetime:
    # dt is aware
    return dt.astimezone(timezone.utc)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def utc_iso_z(dt: datetime) -> str:
    # dt is aware, UTC
    return dt.isoformat().replace("+00:00", "Z")


# -----------------------------
# Domain model
# -----------------------------
class BookingStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    DECLINED = "declined"


@dataclass(frozen=True)
class WorkHours:
    start: str  # "HH:MM"
    end: str


@dataclass(frozen=True)
class RoomData:
    name: str
    location: str
    capacity: int
    is_active: bool
    work_hours: WorkHours
    amenities: Tuple[str, ...] = ()


@dataclass(frozen=True)
class Room:
    room_id: str
    name: str
    location: str
    capacity: int
    is_active: bool
    work_hours: WorkHours
    amenities: Tuple[str, ...] = ()
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass(frozen=True)
class BookingData:
    room_id: str
    title: str
    organizer: Optional[str]
    start_utc: datetime
    end_utc: datetime
    status: Optional[BookingStatus] = None  # None: status is not tracked


@dataclass(frozen=True)
class Booking:
    booking_id: str
    room_id: str
    title: str
    organizer: Optional[str]
    start_utc: datetime  # aware, UTC
    end_utc: datetime    # aware, UTC
    status: Optional[BookingStatus]
    created_at: datetime


# -----------------------------
# API models (transport layer)
# -----------------------------
def _check_timestamp(v: Optional[str]) -> Optional[str]:
    # Empty values are left to the service, which reports missing fields.
    if v:
        parse_iso8601_tz(v)
    return v


class CreateBookingIn(BaseModel):
    room_id: Optional[str] = None
    title: Optional[str] = None
    organizer: Optional[str] = None
    start: Optional[str] = None
    end: Optional[str] = None

    @field_validator("start", "end")
    @classmethod
    def must_be_iso8601_with_tz(cls, v: Optional[str]) -> Optional[str]:
        return _check_timestamp(v)


class UpdateBookingIn(BaseModel):
    title: Optional[str] = None
    organizer: Optional[str] = None
    start: Optional[str] = None
    end: Optional[str] = None

    @field_validator("start", "end")
    @classmethod
    def must_be_iso8601_with_tz(cls, v: Optional[str]) -> Optional[str]:
        return _check_timestamp(v)


class BookingOut(BaseModel):
    booking_id: str
    room_id: str
    title: str
    organizer: Optional[str] = None
    start: str  # ISO-8601 with timezone (we return UTC with Z)
    end: str
    status: Optional[BookingStatus] = None
    created_at: str


class WorkHoursModel(BaseModel):
    start: str = Field(..., pattern=r"^([01]\d|2[0-3]):[0-5]\d$")
    end: str = Field(..., pattern=r"^([01]\d|2[0-3]):[0-5]\d$")


class CreateRoomIn(BaseModel):
    name: Optional[str] = None
    location: Optional[str] = None
    capacity: Optional[int] = None
    is_active: Optional[bool] = None
    work_hours: Optional[WorkHoursModel] = None
    amenities: Optional[List[str]] = None


class UpdateRoomIn(BaseModel):
    name: Optional[str] = None
    location: Optional[str] = None
    capacity: Optional[int] = None
    is_active: Optional[bool] = None
    work_hours: Optional[WorkHoursModel] = None
    amenities: Optional[List[str]] = None


class RoomOut(BaseModel):
    room_id: str
    name: str
    location: str
    capacity: int
    is_active: bool
    work_hours: WorkHoursModel
    amenities: List[str] = []


class RoomStatusOut(BaseModel):
    status: str
    status_message: str
    next_change: Optional[str] = None


class RoomWithStatusOut(RoomOut):
    status: str
    status_message: str
    next_change: Optional[str] = None
