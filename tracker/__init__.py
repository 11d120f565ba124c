"""Client-side location tracker."""

from tracker.client import LocationClient
from tracker.errors import (
    MissingCredentialsError,
    NetworkFailure,
    PermissionDeniedError,
    PositionUnavailableError,
    TrackerError,
)
from tracker.positioning import (
    AccuracyTier,
    PermissionStatus,
    PositionFix,
    PositioningService,
)
from tracker.tracker import LocationTracker

__all__ = [
    "AccuracyTier",
    "LocationClient",
    "LocationTracker",
    "MissingCredentialsError",
    "NetworkFailure",
    "PermissionDeniedError",
    "PermissionStatus",
    "PositionFix",
    "PositionUnavailableError",
    "PositioningService",
    "TrackerError",
]
