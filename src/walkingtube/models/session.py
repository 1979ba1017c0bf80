"""Models describing authenticated sessions and auth-state events."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import Field

from walkingtube.models.base import WalkingTubeBaseModel


class AuthEvent(str, Enum):
    """Auth-state transitions delivered to session subscribers."""

    INITIAL_SESSION = "INITIAL_SESSION"
    SIGNED_IN = "SIGNED_IN"
    SIGNED_OUT = "SIGNED_OUT"
    TOKEN_REFRESHED = "TOKEN_REFRESHED"
    USER_UPDATED = "USER_UPDATED"


class SessionUser(WalkingTubeBaseModel):
    """Authenticated identity handle."""

    id: str = Field(min_length=1)
    email: Optional[str] = None


class AuthSession(WalkingTubeBaseModel):
    """Tokens issued by the auth service together with the signed-in user."""

    access_token: str
    refresh_token: str
    expires_at: datetime
    user: SessionUser

    def is_expired(self, *, now: Optional[datetime] = None) -> bool:
        """Return ``True`` once the access token has passed its expiry time."""

        current = now or datetime.now(timezone.utc)
        return current >= self.expires_at


__all__ = ["AuthEvent", "AuthSession", "SessionUser"]
