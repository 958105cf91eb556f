"""SQLAlchemy-backed repositories.

Datetimes are stored as naive UTC so the schema behaves the same on SQLite
and server databases; they are made aware again when rows are mapped back
to domain objects.

There is no storage-level exclusion constraint on (room_id, time range):
the overlap check runs in the service before the write, so two concurrent
writers for the same slot can both succeed. Deployments on PostgreSQL can
add an ``EXCLUDE USING gist`` constraint on top of this schema.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional
from uuid import uuid4

from sqlalchemy import JSON, Boolean, DateTime, Index, Integer, String, create_engine, or_, select
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, sessionmaker
from sqlalchemy.pool import StaticPool

from conflicts import BLOCKING_STATUSES
from models import Booking, BookingData, BookingStatus, Room, RoomData, WorkHours, utc_now


class Base(DeclarativeBase):
    pass


class RoomRow(Base):
    __tablename__ = "rooms"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    location: Mapped[str] = mapped_column(String(255), nullable=False)
    capacity: Mapped[int] = mapped_column(Integer, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    work_hours_start: Mapped[str] = mapped_column(String(5), nullable=False)
    work_hours_end: Mapped[str] = mapped_column(String(5), nullable=False)
    amenities: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)


class BookingRow(Base):
    __tablename__ = "bookings"
    __table_args__ = (Index("ix_bookings_room_start", "room_id", "start_utc"),)

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    room_id: Mapped[str] = mapped_column(String(64), nullable=False)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    organizer: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    start_utc: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    end_utc: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    status: Mapped[Optional[str]] = mapped_column(String(16), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)


def _to_db(dt: datetime) -> datetime:
    return dt.astimezone(timezone.utc).replace(tzinfo=None)


def _from_db(dt: datetime) -> datetime:
    return dt.replace(tzinfo=timezone.utc)


def _room_from_row(row: RoomRow) -> Room:
    return Room(
        room_id=row.id,
        name=row.name,
        location=row.location,
        capacity=row.capacity,
        is_active=row.is_active,
        work_hours=WorkHours(row.work_hours_start, row.work_hours_end),
        amenities=tuple(row.amenities or ()),
        created_at=_from_db(row.created_at),
        updated_at=_from_db(row.updated_at),
    )


def _booking_from_row(row: BookingRow) -> Booking:
    return Booking(
        booking_id=row.id,
        room_id=row.room_id,
        title=row.title,
        organizer=row.organizer,
        start_utc=_from_db(row.start_utc),
        end_utc=_from_db(row.end_utc),
        status=BookingStatus(row.status) if row.status is not None else None,
        created_at=_from_db(row.created_at),
    )


def create_session_factory(database_url: str) -> sessionmaker:
    url = make_url(database_url)
    if url.get_backend_name() == "sqlite" and url.database in (None, "", ":memory:"):
        # One shared connection, otherwise every thread sees its own empty database.
        engine: Engine = create_engine(
            url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    else:
        engine = create_engine(url)
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine, expire_on_commit=False)


class SqlRoomRepository:
    def __init__(self, session_factory: sessionmaker) -> None:
        self._session_factory = session_factory

    def create(self, data: RoomData) -> Room:
        now = _to_db(utc_now())
        row = RoomRow(
            id=f"room_{uuid4().hex}",
            name=data.name,
            location=data.location,
            capacity=data.capacity,
            is_active=data.is_active,
            work_hours_start=data.work_hours.start,
            work_hours_end=data.work_hours.end,
            amenities=list(data.amenities),
            created_at=now,
            updated_at=now,
        )
        with self._session_factory.begin() as session:
            session.add(row)
        return _room_from_row(row)

    def find_by_id(self, room_id: str) -> Optional[Room]:
        with self._session_factory() as session:
            row = session.get(RoomRow, room_id)
            return _room_from_row(row) if row is not None else None

    def find_all(self) -> List[Room]:
        with self._session_factory() as session:
            rows = session.scalars(select(RoomRow).order_by(RoomRow.name, RoomRow.id))
            return [_room_from_row(r) for r in rows]

    def update(self, room_id: str, changes: Mapping[str, Any]) -> Room:
        values: Dict[str, Any] = dict(changes)
        if "work_hours" in values:
            work_hours = values.pop("work_hours")
            values["work_hours_start"] = work_hours.start
            values["work_hours_end"] = work_hours.end
        if "amenities" in values:
            values["amenities"] = list(values["amenities"])

        with self._session_factory.begin() as session:
            row = session.get(RoomRow, room_id)
            if row is None:
                raise KeyError(room_id)
            for column, value in values.items():
                setattr(row, column, value)
            row.updated_at = _to_db(utc_now())
        return _room_from_row(row)

    def delete(self, room_id: str) -> bool:
        with self._session_factory.begin() as session:
            row = session.get(RoomRow, room_id)
            if row is None:
                return False
            session.delete(row)
            return True


class SqlBookingRepository:
    def __init__(self, session_factory: sessionmaker) -> None:
        self._session_factory = session_factory

    def create(self, data: BookingData) -> Booking:
        row = BookingRow(
            id=f"bkg_{uuid4().hex}",
            room_id=data.room_id,
            title=data.title,
            organizer=data.organizer,
            start_utc=_to_db(data.start_utc),
            end_utc=_to_db(data.end_utc),
            status=data.status.value if data.status is not None else None,
            created_at=_to_db(utc_now()),
        )
        with self._session_factory.begin() as session:
            session.add(row)
        return _booking_from_row(row)

    def find_by_id(self, booking_id: str) -> Optional[Booking]:
        with self._session_factory() as session:
            row = session.get(BookingRow, booking_id)
            return _booking_from_row(row) if row is not None else None

    def find_by_room_id(self, room_id: str) -> List[Booking]:
        stmt = (
            select(BookingRow)
            .where(BookingRow.room_id == room_id)
            .order_by(BookingRow.start_utc, BookingRow.id)
        )
        with self._session_factory() as session:
            return [_booking_from_row(r) for r in session.scalars(stmt)]

    def find_all(self) -> List[Booking]:
        stmt = select(BookingRow).order_by(BookingRow.start_utc, BookingRow.id)
        with self._session_factory() as session:
            return [_booking_from_row(r) for r in session.scalars(stmt)]

    def find_overlapping(
        self,
        room_id: str,
        start: datetime,
        end: datetime,
        exclude_id: Optional[str] = None,
    ) -> List[Booking]:
        blocking = [s.value for s in BLOCKING_STATUSES]
        stmt = select(BookingRow).where(
            BookingRow.room_id == room_id,
            BookingRow.start_utc < _to_db(end),
            BookingRow.end_utc > _to_db(start),
            or_(BookingRow.status.is_(None), BookingRow.status.in_(blocking)),
        )
        if exclude_id is not None:
            stmt = stmt.where(BookingRow.id != exclude_id)
        stmt = stmt.order_by(BookingRow.start_utc, BookingRow.id)

        with self._session_factory() as session:
            return [_booking_from_row(r) for r in session.scalars(stmt)]

    def update(self, booking_id: str, changes: Mapping[str, Any]) -> Booking:
        with self._session_factory.begin() as session:
            row = session.get(BookingRow, booking_id)
            if row is None:
                raise KeyError(booking_id)
            for field, value in changes.items():
                if field in ("start_utc", "end_utc"):
                    value = _to_db(value)
                elif field == "status" and value is not None:
                    value = BookingStatus(value).value
                setattr(row, field, value)
        return _booking_from_row(row)

    def delete(self, booking_id: str) -> bool:
        with self._session_factory.begin() as session:
            row = session.get(BookingRow, booking_id)
            if row is None:
                return False
            session.delete(row)
            return True
