"""Application entry point for the meeting room booking service.

``create_app`` wires repositories and services from ``Settings`` and mounts
the API router. ``app`` is the instance served by ``uvicorn main:app``.
"""

from __future__ import annotations

import logging
from datetime import timezone, tzinfo
from typing import Optional, Tuple
from zoneinfo import ZoneInfo

from fastapi import FastAPI

from api import create_router
from config import Settings, settings
from repository import (
    BookingRepository,
    InMemoryBookingRepository,
    InMemoryRoomRepository,
    RoomRepository,
)
from services import BookingService, RoomService
from sql_repository import SqlBookingRepository, SqlRoomRepository, create_session_factory

logger = logging.getLogger("room_booking")


def _display_zone(name: str) -> tzinfo:
    if name.upper() == "UTC":
        return timezone.utc
    return ZoneInfo(name)


def build_repositories(cfg: Settings) -> Tuple[RoomRepository, BookingRepository]:
    if not cfg.database_url:
        logger.info("No DATABASE_URL configured, using in-memory storage")
        return InMemoryRoomRepository(), InMemoryBookingRepository()

    session_factory = create_session_factory(cfg.database_url)
    logger.info("Using SQL storage")
    return SqlRoomRepository(session_factory), SqlBookingRepository(session_factory)


def create_app(
    cfg: Optional[Settings] = None,
    rooms: Optional[RoomRepository] = None,
    bookings: Optional[BookingRepository] = None,
) -> FastAPI:
    cfg = cfg or settings
    if rooms is None or bookings is None:
        rooms, bookings = build_repositories(cfg)

    booking_service = BookingService(bookings, rooms, track_status=cfg.booking_approval_required)
    room_service = RoomService(rooms, bookings, tz=_display_zone(cfg.display_timezone))

    app = FastAPI(title="Meeting Room Booking API", version="1.0.0")
    app.include_router(create_router(booking_service, room_service), prefix=cfg.api_prefix)

    @app.get("/healthz")
    def healthz() -> dict:
        return {"status": "ok"}

    return app


logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)

app = create_app(settings)
