"""Group aggregation: one latest position per group member."""

from __future__ import annotations

import uuid
from collections.abc import Iterable, Sequence
from typing import Any

import structlog
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from modules.location.errors import PersistenceFailure
from shared.models.group import GroupMember
from shared.models.location_sample import LocationSample
from shared.models.user import User
from shared.schemas.location import GroupMemberLocation

logger = structlog.get_logger()


async def resolve_group_members(
    session: AsyncSession, group_id: uuid.UUID
) -> list[uuid.UUID]:
    """Return the group's member ids in join order."""
    result = await session.execute(
        select(GroupMember.user_id)
        .where(GroupMember.group_id == group_id)
        .order_by(GroupMember.joined_at)
    )
    return list(result.scalars().all())


async def fetch_member_samples(
    session: AsyncSession, member_ids: Sequence[uuid.UUID]
) -> Sequence[Any]:
    """Fetch (sample, display_name, avatar_url) rows, newest received first."""
    result = await session.execute(
        select(LocationSample, User.display_name, User.avatar_url)
        .join(User, User.id == LocationSample.user_id)
        .where(LocationSample.user_id.in_(member_ids))
        .order_by(LocationSample.received_at.desc())
    )
    return result.all()


def latest_per_member(rows: Iterable[Any]) -> list[GroupMemberLocation]:
    """Reduce newest-first rows to the first row seen per user.

    Output keeps the order in which users were first encountered, so it is
    newest-first as well. When two samples share ``received_at`` the one the
    fetch returned first wins.
    """
    seen: set[uuid.UUID] = set()
    latest: list[GroupMemberLocation] = []
    for sample, display_name, avatar_url in rows:
        if sample.user_id in seen:
            continue
        seen.add(sample.user_id)
        latest.append(
            GroupMemberLocation(
                user_id=sample.user_id,
                latitude=sample.latitude,
                longitude=sample.longitude,
                accuracy=sample.accuracy,
                sampled_at=sample.sampled_at,
                received_at=sample.received_at,
                display_name=display_name,
                avatar_url=avatar_url,
            )
        )
    return latest


async def get_group_locations(
    session_factory: async_sessionmaker[AsyncSession],
    group_id: uuid.UUID,
) -> list[GroupMemberLocation]:
    """Current positions of all members of ``group_id`` who have ever reported.

    The caller's access to the group is checked upstream; this only resolves
    membership. Any storage error fails the whole request.
    """
    try:
        async with session_factory() as session:
            member_ids = await resolve_group_members(session, group_id)
            if not member_ids:
                return []
            rows = await fetch_member_samples(session, member_ids)
    except SQLAlchemyError as e:
        logger.error("group_locations_fetch_failed", group_id=str(group_id), error=str(e))
        raise PersistenceFailure("Failed to fetch group locations") from e

    locations = latest_per_member(rows)
    logger.info(
        "group_locations_fetched",
        group_id=str(group_id),
        members=len(member_ids),
        located=len(locations),
    )
    return locations
