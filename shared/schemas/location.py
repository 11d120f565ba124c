"""Location report and view schemas."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


class LocationReport(BaseModel):
    """One position report from a device.

    ``sampled_at`` also accepts ``timestamp`` (epoch seconds or
    milliseconds) since that is what device positioning APIs hand back.
    """

    user_id: uuid.UUID | None = None  # target; may come from the path instead
    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)
    accuracy: float | None = Field(default=None, gt=0)
    sampled_at: datetime = Field(
        validation_alias=AliasChoices("sampled_at", "timestamp")
    )
    device_info: str | None = None

    @field_validator("sampled_at")
    @classmethod
    def _assume_utc(cls, v: datetime) -> datetime:
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v


class LocationSampleOut(BaseModel):
    """A persisted location sample."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    user_id: uuid.UUID
    latitude: float
    longitude: float
    accuracy: float | None = None
    sampled_at: datetime
    received_at: datetime


class LocationUpdateResponse(BaseModel):
    message: str = "Location updated"
    location: LocationSampleOut


class GroupMemberLocation(BaseModel):
    """Latest known position of one group member, joined with display fields."""

    user_id: uuid.UUID
    latitude: float
    longitude: float
    accuracy: float | None = None
    sampled_at: datetime
    received_at: datetime
    display_name: str | None = None
    avatar_url: str | None = None


class TrackingPreference(BaseModel):
    enabled: bool


class TrackingPreferenceResponse(BaseModel):
    success: bool = True
    location_tracking: bool


class TrackedUser(BaseModel):
    """A user with tracking enabled and their most recent sample, if any."""

    user_id: uuid.UUID
    display_name: str | None = None
    device_info: str | None = None
    last_latitude: float | None = None
    last_longitude: float | None = None
    last_location_update: datetime | None = None
