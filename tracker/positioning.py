"""Device positioning service interface.

Platform glue (a phone's location API, a GPS daemon, a test fake)
implements ``PositioningService`` so the tracker stays device-agnostic.
"""

from __future__ import annotations

import enum
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime


class PermissionStatus(str, enum.Enum):
    GRANTED = "granted"
    DENIED = "denied"
    UNDETERMINED = "undetermined"


class AccuracyTier(str, enum.Enum):
    """Desired accuracy for a fix. Finer tiers cost more battery and time."""

    LOW = "low"
    BALANCED = "balanced"
    HIGH = "high"


@dataclass
class PositionFix:
    """One position fix from the device."""

    latitude: float
    longitude: float
    captured_at: datetime
    accuracy: float | None = None  # meters


class PositioningService(ABC):
    """Abstract base class for device positioning backends."""

    @abstractmethod
    async def permission_status(self) -> PermissionStatus:
        """Return the current foreground location permission status."""

    @abstractmethod
    async def current_position(self, accuracy: AccuracyTier) -> PositionFix:
        """Acquire the current position at the requested accuracy tier.

        Raises:
            PermissionDeniedError: permission was revoked mid-request.
            PositionUnavailableError: the device cannot get a fix.
        """
