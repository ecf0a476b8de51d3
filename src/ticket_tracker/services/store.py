"""Key-value store adapter with failure isolation."""

import json
import logging
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Protocol

logger = logging.getLogger(__name__)

SESSION_KEY = "ticketapp_session"
TICKETS_KEY = "tickets"
PREFERENCES_KEY = "user_preferences"
REDIRECT_KEY = "auth_redirect"
REDIRECT_MESSAGE_KEY = "auth_message"

_EMPTY_LITERALS = {"null", "undefined"}


class StorageError(Exception):
    """Base error raised by storage backends."""


class StorageQuotaError(StorageError):
    """Raised when a write exceeds the backend's size limit."""


class StorageAccessError(StorageError):
    """Raised when the backend refuses access."""


class StorageBackend(Protocol):
    """Raw string key-value persistence."""

    def get_item(self, key: str) -> str | None:
        """Return the stored text for a key, if present."""

    def set_item(self, key: str, value: str) -> None:
        """Store text under a key."""

    def remove_item(self, key: str) -> None:
        """Remove a key if present."""

    def clear(self) -> None:
        """Remove every key."""

    def keys(self) -> list[str]:
        """Return all stored keys."""


class StoreFailureKind(StrEnum):
    """Why the last store call failed."""

    QUOTA = "quota"
    ACCESS = "access"
    CORRUPT = "corrupt"


@dataclass(frozen=True)
class StoreFailure:
    """Details of the last failed store call."""

    kind: StoreFailureKind
    key: str | None
    detail: str


@dataclass
class StoreAdapter:
    """JSON-serializing wrapper that never lets storage errors escape."""

    backend: StorageBackend
    name: str = "local"
    last_failure: StoreFailure | None = field(default=None, init=False)

    def get(self, key: str, default: object = None) -> object:
        """Return the decoded value for a key, or ``default``."""
        self.last_failure = None
        try:
            raw = self.backend.get_item(key)
        except StorageError as exc:
            self._fail(_failure_kind(exc), key, exc)
            return default
        if raw is None or raw.strip() in _EMPTY_LITERALS:
            return default
        try:
            value = json.loads(raw)
        except ValueError as exc:
            self._fail(StoreFailureKind.CORRUPT, key, exc)
            return default
        return default if value is None else value

    def set(self, key: str, value: object) -> bool:
        """Encode and store a value. Return False if the backend refused it."""
        self.last_failure = None
        try:
            encoded = json.dumps(value)
        except (TypeError, ValueError) as exc:
            self._fail(StoreFailureKind.CORRUPT, key, exc)
            return False
        try:
            self.backend.set_item(key, encoded)
        except StorageError as exc:
            self._fail(_failure_kind(exc), key, exc)
            return False
        return True

    def remove(self, key: str) -> bool:
        """Remove a key. Return False if the backend refused."""
        self.last_failure = None
        try:
            self.backend.remove_item(key)
        except StorageError as exc:
            self._fail(_failure_kind(exc), key, exc)
            return False
        return True

    def clear(self) -> bool:
        """Remove every key. Return False if the backend refused."""
        self.last_failure = None
        try:
            self.backend.clear()
        except StorageError as exc:
            self._fail(_failure_kind(exc), None, exc)
            return False
        return True

    def keys(self) -> list[str]:
        """Return stored keys, or an empty list if they cannot be read."""
        self.last_failure = None
        try:
            return list(self.backend.keys())
        except StorageError as exc:
            self._fail(_failure_kind(exc), None, exc)
            return []

    def _fail(self, kind: StoreFailureKind, key: str | None, exc: Exception) -> None:
        self.last_failure = StoreFailure(kind=kind, key=key, detail=str(exc))
        logger.warning(
            "%s store %s failure for key %r: %s", self.name, kind.value, key, exc
        )


def _failure_kind(exc: StorageError) -> StoreFailureKind:
    if isinstance(exc, StorageQuotaError):
        return StoreFailureKind.QUOTA
    return StoreFailureKind.ACCESS
