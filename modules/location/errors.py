"""Location service errors.

Each error carries the HTTP status and a stable ``code`` string so the app
can tell an identity mismatch apart from a user's own opt-out.
"""

from __future__ import annotations


class LocationError(Exception):
    """Base class for caller-visible location service errors."""

    status_code = 500
    code = "location_error"
    default_message = "Location service error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class NotAuthorizedError(LocationError):
    """The caller tried to act on another user's location data."""

    status_code = 403
    code = "not_authorized"
    default_message = "Not authorized to update this user's location"


class TrackingDisabledError(LocationError):
    """The target user has explicitly opted out of location tracking."""

    status_code = 403
    code = "tracking_disabled"
    default_message = "Location tracking is disabled"


class PersistenceFailure(LocationError):
    """The store was unavailable. Safe for the client to retry."""

    status_code = 500
    code = "persistence_failure"
    default_message = "Failed to access location storage"


class UserNotFoundError(LocationError):
    status_code = 404
    code = "user_not_found"
    default_message = "User not found"


class MissingTargetUserError(LocationError):
    """A report posted without a path id must name its user in the body."""

    status_code = 422
    code = "missing_user_id"
    default_message = "user_id is required"
