"""Common schemas shared by the service endpoints."""

from __future__ import annotations

from pydantic import BaseModel


class HealthResponse(BaseModel):
    """Liveness probe payload. Does not touch the database."""

    status: str = "ok"
    service: str = "location"
