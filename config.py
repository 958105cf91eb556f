"""Application configuration settings.

Values are read from environment variables (and an optional ``.env`` file)
with ``pydantic-settings``. Every field has a default, so the service starts
with in-memory storage when nothing is configured.
"""

from __future__ import annotations

from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore", populate_by_name=True)

    database_url: Optional[str] = Field(
        default=None,
        alias="DATABASE_URL",
        description="SQLAlchemy URL. When unset, rooms and bookings are kept in memory.",
    )
    api_prefix: str = Field(default="", alias="API_PREFIX")
    display_timezone: str = Field(
        default="UTC",
        alias="DISPLAY_TIMEZONE",
        description="IANA zone used for work hours and the times shown in status messages.",
    )
    booking_approval_required: bool = Field(
        default=True,
        alias="BOOKING_APPROVAL_REQUIRED",
        description="Create bookings as 'pending' and enable approve/decline.",
    )
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")


settings = Settings()
