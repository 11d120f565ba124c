"""HTTP client for submitting location reports to the location service."""

from __future__ import annotations

import inspect
from collections.abc import Awaitable, Callable

import httpx
import structlog

from tracker.errors import MissingCredentialsError, NetworkFailure
from tracker.positioning import PositionFix

logger = structlog.get_logger()

UPDATE_PATH = "/api/location/update"

TokenProvider = Callable[[], Awaitable[str | None] | str | None]


class LocationClient:
    """Async client for ``POST /api/location/update``.

    ``token_provider`` returns the current session token (sync or async),
    or ``None`` when the user is signed out.
    """

    def __init__(
        self,
        api_url: str,
        token_provider: TokenProvider,
        timeout: float = 15.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.api_url = api_url.rstrip("/")
        self.token_provider = token_provider
        self.timeout = timeout
        self._transport = transport

    async def _token(self) -> str | None:
        token = self.token_provider()
        if inspect.isawaitable(token):
            token = await token
        return token

    async def submit(
        self,
        user_id: str,
        fix: PositionFix,
        device_info: str | None = None,
    ) -> dict:
        """Send one fix and return the persisted sample echoed by the server.

        Raises:
            MissingCredentialsError: no session token is available.
            NetworkFailure: transport error, non-2xx response or unreadable body.
        """
        token = await self._token()
        if not token:
            raise MissingCredentialsError("No session token; skipping location update")

        payload = {
            "user_id": str(user_id),
            "latitude": fix.latitude,
            "longitude": fix.longitude,
            "accuracy": fix.accuracy,
            "sampled_at": fix.captured_at.isoformat(),
        }
        if device_info:
            payload["device_info"] = device_info

        headers = {"Authorization": f"Bearer {token}"}

        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, transport=self._transport
            ) as client:
                resp = await client.post(
                    f"{self.api_url}{UPDATE_PATH}", json=payload, headers=headers
                )
                resp.raise_for_status()
                data = resp.json()
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            raise NetworkFailure(
                f"Location update rejected: HTTP {status}", status_code=status
            ) from e
        except httpx.HTTPError as e:
            raise NetworkFailure(f"Location update failed: {e}") from e
        except ValueError as e:
            raise NetworkFailure(f"Location update returned a non-JSON body: {e}") from e

        if not isinstance(data, dict):
            raise NetworkFailure("Location update returned an unexpected body")

        logger.debug("location_submitted", user_id=str(user_id))
        return data.get("location", data)
