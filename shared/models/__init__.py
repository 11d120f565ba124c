"""SQLAlchemy models."""

from shared.models.base import Base
from shared.models.group import Group, GroupMember
from shared.models.location_sample import LocationSample
from shared.models.user import User

__all__ = [
    "Base",
    "Group",
    "GroupMember",
    "LocationSample",
    "User",
]
