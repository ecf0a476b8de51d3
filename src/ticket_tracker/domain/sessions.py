"""Domain models for login sessions."""

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class UserIdentity:
    """The user a session was issued to."""

    id: str
    username: str
    email: str


@dataclass(frozen=True)
class SessionRecord:
    """The single active proof of login for a store."""

    token: str
    user: UserIdentity
    expires_at: datetime
    created_at: datetime

    def is_expired(self, now: datetime) -> bool:
        """Return True when the session is no longer valid at ``now``."""
        return self.expires_at <= now
