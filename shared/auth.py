"""Session-token authentication for the location API.

Session tokens are HS256 JWTs issued by the auth service at login.  The
``sub`` claim carries the user id; ``permission_level`` is optional and
defaults to ``"user"``.

Usage in a FastAPI route::

    from shared.auth import SessionUser, require_session

    @app.get("/api/location/group/{group_id}")
    async def group_locations(group_id: uuid.UUID, user: SessionUser = Depends(require_session)):
        ...
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass

import jwt
import structlog
from fastapi import Header, HTTPException

from shared.config import get_settings

logger = structlog.get_logger()

JWT_ALGORITHM = "HS256"


@dataclass
class SessionUser:
    """Authenticated caller. Injected by require_session."""

    user_id: uuid.UUID
    permission_level: str = "user"

    @property
    def is_admin(self) -> bool:
        return self.permission_level == "admin"


def decode_session_token(token: str) -> SessionUser:
    """Decode and validate a session JWT, returning the caller."""
    settings = get_settings()
    if not settings.session_jwt_secret:
        raise HTTPException(status_code=503, detail="Session auth not configured")
    try:
        payload = jwt.decode(
            token, settings.session_jwt_secret, algorithms=[JWT_ALGORITHM]
        )
    except jwt.ExpiredSignatureError:
        raise HTTPException(status_code=401, detail="Token expired")
    except jwt.InvalidTokenError as e:
        logger.warning("session_token_invalid", error=str(e))
        raise HTTPException(status_code=401, detail="Invalid token")

    try:
        user_id = uuid.UUID(str(payload["sub"]))
    except (KeyError, ValueError):
        raise HTTPException(status_code=401, detail="Invalid token subject")

    return SessionUser(
        user_id=user_id,
        permission_level=payload.get("permission_level", "user"),
    )


async def require_session(authorization: str | None = Header(default=None)) -> SessionUser:
    """FastAPI dependency: extract and validate the session JWT.

    Expects: Authorization: Bearer <jwt>
    """
    if not authorization or not authorization.startswith("Bearer "):
        raise HTTPException(status_code=401, detail="Missing Bearer token")
    token = authorization[7:]  # strip "Bearer "
    return decode_session_token(token)
