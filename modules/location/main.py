"""Location Module: FastAPI service for live location sharing."""

from __future__ import annotations

import uuid

import structlog
from fastapi import Depends, FastAPI, Request
from fastapi.responses import JSONResponse

from modules.location.aggregator import get_group_locations
from modules.location.errors import LocationError, MissingTargetUserError
from modules.location.ingestion import ingest_location
from modules.location.tracking import list_tracked_users, set_tracking_enabled
from shared.auth import SessionUser, require_session
from shared.database import dispose_engine, get_session_factory
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

structlog.configure(
    processors=[
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.JSONRenderer(),
    ],
)

logger = structlog.get_logger()
app = FastAPI(title="Location Module", version="1.0.0")

session_factory = None


@app.on_event("startup")
async def startup():
    global session_factory
    session_factory = get_session_factory()
    logger.info("location_module_ready")


@app.on_event("shutdown")
async def shutdown():
    await dispose_engine()


def _factory():
    return session_factory if session_factory is not None else get_session_factory()


@app.exception_handler(LocationError)
async def location_error_handler(request: Request, exc: LocationError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.message, "code": exc.code},
    )


# --- Ingestion (called by the tracker on the phone) ---


async def _update(
    target_user_id: uuid.UUID, report: LocationReport, user: SessionUser
) -> LocationUpdateResponse:
    logger.info(
        "location_update_received",
        user_id=str(target_user_id),
        device=report.device_info or "unknown",
    )
    sample = await ingest_location(_factory(), user.user_id, target_user_id, report)
    return LocationUpdateResponse(location=LocationSampleOut.model_validate(sample))


@app.post("/api/location/update", response_model=LocationUpdateResponse)
async def update_location(
    report: LocationReport,
    user: SessionUser = Depends(require_session),
):
    """Record a location report; the target user id travels in the body."""
    if report.user_id is None:
        raise MissingTargetUserError()
    return await _update(report.user_id, report, user)


@app.post("/api/location/users/{user_id}", response_model=LocationUpdateResponse)
async def update_user_location(
    user_id: uuid.UUID,
    report: LocationReport,
    user: SessionUser = Depends(require_session),
):
    """Record a location report; the path id wins over any body id."""
    return await _update(user_id, report, user)


# --- Aggregation (called by the live map) ---


@app.get("/api/location/group/{group_id}", response_model=list[GroupMemberLocation])
async def group_locations(
    group_id: uuid.UUID,
    user: SessionUser = Depends(require_session),
):
    """Latest position of every group member who has reported."""
    return await get_group_locations(_factory(), group_id)


@app.get("/api/location/tracked-users", response_model=list[TrackedUser])
async def tracked_users(user: SessionUser = Depends(require_session)):
    """Admin overview of users with tracking enabled."""
    return await list_tracked_users(_factory(), user)


# --- Preferences ---


@app.post(
    "/api/users/{user_id}/location-tracking",
    response_model=TrackingPreferenceResponse,
)
async def update_location_tracking(
    user_id: uuid.UUID,
    body: TrackingPreference,
    user: SessionUser = Depends(require_session),
):
    enabled = await set_tracking_enabled(_factory(), user, user_id, body.enabled)
    return TrackingPreferenceResponse(location_tracking=enabled)


@app.get("/health", response_model=HealthResponse)
async def health():
    return HealthResponse(status="ok")
