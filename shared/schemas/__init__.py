"""Pydantic schemas for the location service."""

from shared.schemas.common import HealthResponse
from shared.schemas.location import (
    GroupMemberLocation,
    LocationReport,
    LocationSampleOut,
    LocationUpdateResponse,
    TrackedUser,
    TrackingPreference,
    TrackingPreferenceResponse,
)

__all__ = [
    "GroupMemberLocation",
    "HealthResponse",
    "LocationReport",
    "LocationSampleOut",
    "LocationUpdateResponse",
    "TrackedUser",
    "TrackingPreference",
    "TrackingPreferenceResponse",
]
