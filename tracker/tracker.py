"""Location tracker: periodic and on-demand position reports for one user.

A ``LocationTracker`` instance is the handle for one tracking loop: whoever
owns the app lifecycle creates it, calls ``start`` after sign-in and
``stop`` on sign-out.  Nothing is kept at module level, so independent
trackers never interfere.

Each scheduled tick runs its report as a separate task with its own
timeouts; a done-callback only logs the outcome.  If the previous
scheduled report is still in flight when a tick fires, the tick is
skipped rather than stacking a second report behind it.
"""

from __future__ import annotations

import asyncio
import platform

import structlog

from shared.config import Settings, get_settings
from tracker.client import LocationClient, TokenProvider
from tracker.errors import (
    NetworkFailure,
    PermissionDeniedError,
    PositionUnavailableError,
    TrackerError,
)
from tracker.positioning import AccuracyTier, PermissionStatus, PositioningService

logger = structlog.get_logger()

# Fixed cadence for scheduled reports (seconds)
DEFAULT_INTERVAL = 5 * 60

SCHEDULED_ACCURACY = AccuracyTier.BALANCED
ON_DEMAND_ACCURACY = AccuracyTier.HIGH


def default_device_info() -> str:
    """Describe the host for the server's device_info column."""
    system = platform.system() or "unknown"
    release = platform.release()
    return f"{system} {release}".strip()


class LocationTracker:
    """Reports one user's position every ``interval`` seconds and on demand."""

    def __init__(
        self,
        positioning: PositioningService,
        client: LocationClient,
        *,
        interval: float = DEFAULT_INTERVAL,
        position_timeout: float = 30.0,
        submit_timeout: float = 15.0,
        device_info: str | None = None,
    ):
        self.positioning = positioning
        self.client = client
        self.interval = interval
        self.position_timeout = position_timeout
        self.submit_timeout = submit_timeout
        self.device_info = device_info or default_device_info()

        self._user_id: str | None = None
        self._loop_task: asyncio.Task | None = None
        self._inflight: asyncio.Task | None = None

    @classmethod
    def from_settings(
        cls,
        positioning: PositioningService,
        token_provider: TokenProvider,
        settings: Settings | None = None,
    ) -> LocationTracker:
        """Build a tracker and its HTTP client from application settings."""
        settings = settings or get_settings()
        client = LocationClient(
            settings.location_api_url,
            token_provider,
            timeout=settings.tracker_submit_timeout_seconds,
        )
        return cls(
            positioning,
            client,
            interval=settings.tracker_interval_seconds,
            position_timeout=settings.tracker_position_timeout_seconds,
            submit_timeout=settings.tracker_submit_timeout_seconds,
            device_info=settings.tracker_device_info or None,
        )

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def start(self, user_id: str) -> None:
        """Start the schedule. A no-op while a schedule is already running.

        Must be called from within a running event loop.
        """
        if self.is_tracking_active():
            logger.info("location_tracking_already_active", user_id=self._user_id)
            return

        self._user_id = user_id
        self._loop_task = asyncio.get_running_loop().create_task(self._run(user_id))
        logger.info(
            "location_tracking_started", user_id=user_id, interval_s=self.interval
        )

    def stop(self) -> None:
        """Cancel the schedule and any scheduled report still in flight."""
        if self._loop_task is not None:
            self._loop_task.cancel()
            self._loop_task = None
        if self._inflight is not None and not self._inflight.done():
            self._inflight.cancel()
        self._inflight = None

        if self._user_id is not None:
            logger.info("location_tracking_stopped", user_id=self._user_id)
        self._user_id = None

    def is_tracking_active(self) -> bool:
        return self._loop_task is not None and not self._loop_task.done()

    async def send_once(self, user_id: str) -> dict:
        """Report the current position right now at high accuracy.

        Returns the persisted sample echoed by the server.

        Raises:
            PermissionDeniedError, PositionUnavailableError,
            MissingCredentialsError, NetworkFailure
        """
        return await self._report(user_id, ON_DEMAND_ACCURACY)

    # ------------------------------------------------------------------
    # Scheduling
    # ------------------------------------------------------------------

    async def _run(self, user_id: str) -> None:
        while True:
            self._tick(user_id)
            await asyncio.sleep(self.interval)

    def _tick(self, user_id: str) -> None:
        if self._inflight is not None and not self._inflight.done():
            logger.warning("location_tick_skipped", user_id=user_id)
            return

        task = asyncio.get_running_loop().create_task(
            self._report(user_id, SCHEDULED_ACCURACY)
        )
        task.add_done_callback(self._log_outcome)
        self._inflight = task

    def _log_outcome(self, task: asyncio.Task) -> None:
        if task.cancelled():
            logger.debug("location_report_cancelled")
            return

        exc = task.exception()
        if exc is None:
            logger.info("location_report_sent")
        elif isinstance(exc, PermissionDeniedError):
            # Re-checked on the next tick
            logger.info("location_permission_not_granted")
        elif isinstance(exc, TrackerError):
            logger.warning("location_report_failed", error=str(exc))
        else:
            logger.error("location_report_error", error=repr(exc))

    # ------------------------------------------------------------------
    # One report attempt
    # ------------------------------------------------------------------

    async def _report(self, user_id: str, accuracy: AccuracyTier) -> dict:
        try:
            status = await asyncio.wait_for(
                self.positioning.permission_status(), self.position_timeout
            )
        except asyncio.TimeoutError as e:
            raise PositionUnavailableError("Permission check timed out") from e

        if status != PermissionStatus.GRANTED:
            raise PermissionDeniedError(f"Location permission {status.value}")

        try:
            fix = await asyncio.wait_for(
                self.positioning.current_position(accuracy), self.position_timeout
            )
        except asyncio.TimeoutError as e:
            raise PositionUnavailableError("Timed out acquiring position") from e

        try:
            return await asyncio.wait_for(
                self.client.submit(user_id, fix, self.device_info),
                self.submit_timeout,
            )
        except asyncio.TimeoutError as e:
            raise NetworkFailure("Location update timed out") from e
