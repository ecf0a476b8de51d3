"""Login session lifecycle backed by the key-value store."""

import logging
import secrets
import string
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import timedelta
from uuid import NAMESPACE_DNS, uuid5

from ticket_tracker.config import DEFAULT_DEMO_USERS
from ticket_tracker.domain.results import Err, ErrorKind, Ok, Result
from ticket_tracker.domain.sessions import SessionRecord, UserIdentity
from ticket_tracker.services.clock import Clock, utcnow
from ticket_tracker.services.errors import storage_err
from ticket_tracker.services.records import parse_session, session_to_payload
from ticket_tracker.services.store import (
    PREFERENCES_KEY,
    REDIRECT_KEY,
    REDIRECT_MESSAGE_KEY,
    SESSION_KEY,
    StoreAdapter,
    StoreFailureKind,
)
from ticket_tracker.services.validation import (
    PASSWORD_MIN_LENGTH,
    USERNAME_MIN_LENGTH,
    is_valid_email,
)

logger = logging.getLogger(__name__)

MISSING_CREDENTIALS_MESSAGE = "Username and password are required"
CREDENTIAL_LENGTH_MESSAGE = (
    f"Username must be at least {USERNAME_MIN_LENGTH} characters and password "
    f"at least {PASSWORD_MIN_LENGTH} characters"
)
INVALID_CREDENTIALS_MESSAGE = "Invalid username or password"

_TOKEN_ALPHABET = string.ascii_letters + string.digits
_TOKEN_LENGTH = 32
_USER_NAMESPACE = uuid5(NAMESPACE_DNS, "ticket-tracker.local")


@dataclass
class SessionManager:
    """Owns the single active session record.

    ``store`` is the persistent store holding the session. ``transient_store``
    is tab-scoped and only remembers where to send the user after login.
    """

    store: StoreAdapter
    transient_store: StoreAdapter
    demo_users: dict[str, str] = field(
        default_factory=lambda: dict(DEFAULT_DEMO_USERS)
    )
    ttl: timedelta = timedelta(hours=24)
    clock: Clock = utcnow

    def login(self, credentials: Mapping[str, object]) -> Result[UserIdentity]:
        """Check credentials and start a session."""
        username = credentials.get("username")
        password = credentials.get("password")
        if (
            not isinstance(username, str)
            or not isinstance(password, str)
            or not username.strip()
            or not password
        ):
            return Err(kind=ErrorKind.VALIDATION, message=MISSING_CREDENTIALS_MESSAGE)
        username = username.strip()
        if len(username) < USERNAME_MIN_LENGTH or len(password) < PASSWORD_MIN_LENGTH:
            return Err(kind=ErrorKind.VALIDATION, message=CREDENTIAL_LENGTH_MESSAGE)
        if not self._credentials_match(username, password):
            logger.info("Rejected login attempt")
            return Err(
                kind=ErrorKind.AUTHENTICATION, message=INVALID_CREDENTIALS_MESSAGE
            )

        now = self.clock()
        session = SessionRecord(
            token=_generate_token(),
            user=_identity_for(username),
            expires_at=now + self.ttl,
            created_at=now,
        )
        if not self.store.set(SESSION_KEY, session_to_payload(session)):
            return storage_err(self.store)
        logger.info("Started session for user %s", session.user.id)
        return Ok(session.user)

    def is_authenticated(self) -> bool:
        """Return True if a valid, unexpired session exists.

        Absent, malformed or expired records are removed as a side effect.
        """
        raw = self.store.get(SESSION_KEY)
        if raw is None:
            failure = self.store.last_failure
            if failure is not None and failure.kind is StoreFailureKind.CORRUPT:
                self.store.remove(SESSION_KEY)
            return False
        session = parse_session(raw)
        if session is None:
            self.store.remove(SESSION_KEY)
            return False
        if session.is_expired(self.clock()):
            logger.info("Session for user %s expired", session.user.id)
            self.store.remove(SESSION_KEY)
            return False
        return True

    def get_session(self) -> SessionRecord | None:
        """Return the valid session without modifying the store."""
        session = parse_session(self.store.get(SESSION_KEY))
        if session is None or session.is_expired(self.clock()):
            return None
        return session

    def get_current_user(self) -> UserIdentity | None:
        """Return the user of the valid session, if any."""
        session = self.get_session()
        return session.user if session else None

    def refresh_session(self) -> bool:
        """Extend a valid session's expiry. Return False if none exists."""
        if not self.is_authenticated():
            return False
        session = self.get_session()
        if session is None:
            return False
        refreshed = SessionRecord(
            token=session.token,
            user=session.user,
            expires_at=self.clock() + self.ttl,
            created_at=session.created_at,
        )
        return self.store.set(SESSION_KEY, session_to_payload(refreshed))

    def logout(self) -> Result[None]:
        """Remove the session and per-session keys. Always succeeds."""
        removed_session = self.store.remove(SESSION_KEY)
        removed_preferences = self.store.remove(PREFERENCES_KEY)
        if not (removed_session and removed_preferences):
            logger.warning("Logout could not clear every session key")
        logger.info("Logged out")
        return Ok(None)

    def redirect_if_not_auth(
        self, target_path: str | None = None, message: str | None = None
    ) -> bool:
        """Remember where to return after login when no session exists.

        Returns True when the caller should navigate to the login view.
        """
        if self.is_authenticated():
            return False
        if target_path:
            self.transient_store.set(REDIRECT_KEY, target_path)
        if message:
            self.transient_store.set(REDIRECT_MESSAGE_KEY, message)
        return True

    def pending_message(self) -> str | None:
        """Return the message stored alongside a pending redirect."""
        message = self.transient_store.get(REDIRECT_MESSAGE_KEY)
        return message if isinstance(message, str) else None

    def consume_redirect(self, default: str) -> str:
        """Return the stored post-login target and forget it."""
        target = self.transient_store.get(REDIRECT_KEY)
        self.transient_store.remove(REDIRECT_KEY)
        self.transient_store.remove(REDIRECT_MESSAGE_KEY)
        return target if isinstance(target, str) and target else default

    def _credentials_match(self, username: str, password: str) -> bool:
        if self.demo_users.get(username) == password:
            return True
        return is_valid_email(username) and len(password) >= PASSWORD_MIN_LENGTH


def _generate_token() -> str:
    return "".join(secrets.choice(_TOKEN_ALPHABET) for _ in range(_TOKEN_LENGTH))


def _identity_for(username: str) -> UserIdentity:
    email = username if "@" in username else f"{username}@example.com"
    return UserIdentity(
        id=str(uuid5(_USER_NAMESPACE, username)),
        username=username,
        email=email,
    )
