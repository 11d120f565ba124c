"""Location ingestion: accept one report, persist it, refresh the cache."""

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
    TrackingDisabledError,
)
from shared.models.location_sample import LocationSample
from shared.models.user import User
from shared.schemas.location import LocationReport

logger = structlog.get_logger()


async def _tracking_enabled(session: AsyncSession, user_id: uuid.UUID) -> bool:
    """Return the user's tracking preference. No stored value means enabled.

    An unreadable preference raises ``PersistenceFailure`` rather than
    guessing, so an opted-out user is never written to.
    """
    try:
        result = await session.execute(
            select(User.location_tracking).where(User.id == user_id)
        )
        flag = result.scalar_one_or_none()
    except SQLAlchemyError as e:
        logger.error("tracking_preference_lookup_failed", user_id=str(user_id), error=str(e))
        await session.rollback()
        raise PersistenceFailure() from e
    return flag is not False


async def _update_location_cache(
    session: AsyncSession,
    sample: LocationSample,
    device_info: str | None,
) -> None:
    """Copy the sample onto the user's last-known-location columns.

    Failures are logged only: the sample row is the source of truth and
    the cache can be rebuilt from it.
    """
    now = datetime.now(timezone.utc)
    values: dict = {
        "last_latitude": sample.latitude,
        "last_longitude": sample.longitude,
        "last_location_update": sample.received_at,
        "updated_at": now,
    }
    if device_info:
        values["device_info"] = device_info

    try:
        await session.execute(
            update(User).where(User.id == sample.user_id).values(**values)
        )
        await session.commit()
    except SQLAlchemyError as e:
        logger.error(
            "location_cache_update_failed",
            user_id=str(sample.user_id),
            sample_id=str(sample.id),
            error=str(e),
        )
        await session.rollback()


async def ingest_location(
    session_factory: async_sessionmaker[AsyncSession],
    caller_id: uuid.UUID,
    target_user_id: uuid.UUID,
    report: LocationReport,
) -> LocationSample:
    """Accept a location report for ``target_user_id`` from ``caller_id``.

    Raises:
        NotAuthorizedError: caller is not the target user.
        TrackingDisabledError: the target explicitly disabled tracking.
        PersistenceFailure: the sample could not be stored.
    """
    if caller_id != target_user_id:
        logger.warning(
            "location_update_forbidden",
            caller_id=str(caller_id),
            target_user_id=str(target_user_id),
        )
        raise NotAuthorizedError()

    async with session_factory() as session:
        if not await _tracking_enabled(session, target_user_id):
            logger.info("location_tracking_disabled", user_id=str(target_user_id))
            raise TrackingDisabledError()

        sample = LocationSample(
            id=uuid.uuid4(),
            user_id=target_user_id,
            latitude=report.latitude,
            longitude=report.longitude,
            accuracy=report.accuracy,
            sampled_at=report.sampled_at,
            received_at=datetime.now(timezone.utc),
        )
        try:
            session.add(sample)
            await session.commit()
        except SQLAlchemyError as e:
            logger.error(
                "location_sample_insert_failed",
                user_id=str(target_user_id),
                error=str(e),
            )
            await session.rollback()
            raise PersistenceFailure() from e

        await _update_location_cache(session, sample, report.device_info)

    logger.info(
        "location_updated",
        user_id=str(target_user_id),
        sample_id=str(sample.id),
        device=report.device_info or "unknown",
    )
    return sample
