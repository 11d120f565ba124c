"""Per-user tracking preference and the admin view of tracked users."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone

import structlog
from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from modules.location.errors import (
    NotAuthorizedError,
    PersistenceFailure,
    UserNotFoundError,
)
from shared.auth import SessionUser
from shared.models.location_sample import LocationSample
from shared.models.user import User
from shared.schemas.location import TrackedUser

logger = structlog.get_logger()


async def set_tracking_enabled(
    session_factory: async_sessionmaker[AsyncSession],
    caller: SessionUser,
    target_user_id: uuid.UUID,
    enabled: bool,
) -> bool:
    """Store an explicit tracking preference. Users may set their own; admins anyone's."""
    if caller.user_id != target_user_id and not caller.is_admin:
        raise NotAuthorizedError("Not authorized to update this user's settings")

    try:
        async with session_factory() as session:
            result = await session.execute(
                update(User)
                .where(User.id == target_user_id)
                .values(
                    location_tracking=enabled,
                    updated_at=datetime.now(timezone.utc),
                )
            )
            if result.rowcount == 0:
                raise UserNotFoundError()
            await session.commit()
    except SQLAlchemyError as e:
        logger.error(
            "tracking_preference_update_failed",
            user_id=str(target_user_id),
            error=str(e),
        )
        raise PersistenceFailure("Failed to update location tracking") from e

    logger.info(
        "tracking_preference_updated",
        user_id=str(target_user_id),
        enabled=enabled,
        by=str(caller.user_id),
    )
    return enabled


async def list_tracked_users(
    session_factory: async_sessionmaker[AsyncSession],
    caller: SessionUser,
) -> list[TrackedUser]:
    """Users whose tracking is not disabled, each with their newest sample."""
    if not caller.is_admin:
        raise NotAuthorizedError("Admin access required")

    try:
        async with session_factory() as session:
            result = await session.execute(
                select(User)
                .where(User.location_tracking.is_not(False))
                .order_by(User.updated_at.desc().nulls_last())
            )
            users = list(result.scalars().all())
            if not users:
                return []

            loc_result = await session.execute(
                select(LocationSample)
                .where(LocationSample.user_id.in_([u.id for u in users]))
                .order_by(LocationSample.received_at.desc())
            )
            samples = loc_result.scalars().all()
    except SQLAlchemyError as e:
        logger.error("tracked_users_fetch_failed", error=str(e))
        raise PersistenceFailure("Failed to fetch tracked users") from e

    newest: dict[uuid.UUID, LocationSample] = {}
    for sample in samples:
        newest.setdefault(sample.user_id, sample)

    tracked = []
    for user in users:
        sample = newest.get(user.id)
        tracked.append(
            TrackedUser(
                user_id=user.id,
                display_name=user.display_name,
                device_info=user.device_info,
                last_latitude=sample.latitude if sample else None,
                last_longitude=sample.longitude if sample else None,
                last_location_update=sample.received_at if sample else None,
            )
        )
    return tracked
