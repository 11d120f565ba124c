"""Tracker-side errors.

The scheduled loop logs and swallows all of these; ``send_once`` raises
them so an explicit user action can show feedback.
"""

from __future__ import annotations


class TrackerError(Exception):
    """Base class for failed report attempts."""


class PermissionDeniedError(TrackerError):
    """Foreground location permission is not granted."""


class PositionUnavailableError(TrackerError):
    """The device could not produce a fix in time."""


class MissingCredentialsError(TrackerError):
    """No session token is available to authenticate the submission."""


class NetworkFailure(TrackerError):
    """The submission did not reach the server or was rejected by it."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code
