"""User model: display fields and the last-known location cache."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone

from sqlalchemy import Boolean, DateTime, Float, String
from sqlalchemy.orm import Mapped, mapped_column

from shared.models.base import Base


class User(Base):
    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    display_name: Mapped[str | None] = mapped_column(String, default=None)
    avatar_url: Mapped[str | None] = mapped_column(String, default=None)
    permission_level: Mapped[str] = mapped_column(String, default="user")  # user, admin

    # NULL means the user never chose; treated as enabled.
    location_tracking: Mapped[bool | None] = mapped_column(Boolean, default=None)

    # Last-known location cache, refreshed on every accepted sample
    last_latitude: Mapped[float | None] = mapped_column(Float, default=None)
    last_longitude: Mapped[float | None] = mapped_column(Float, default=None)
    last_location_update: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), default=None
    )
    device_info: Mapped[str | None] = mapped_column(String, default=None)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )
