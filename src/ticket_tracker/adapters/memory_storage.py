"""In-process storage backend with a browser-style quota."""

from dataclasses import dataclass, field

from ticket_tracker.services.store import (
    StorageAccessError,
    StorageBackend,
    StorageQuotaError,
)


@dataclass
class InMemoryStorage(StorageBackend):
    """Dict-backed storage that enforces a byte quota like localStorage."""

    quota_bytes: int | None = None
    blocked: bool = False
    items: dict[str, str] = field(default_factory=dict)

    def get_item(self, key: str) -> str | None:
        """Return the stored text for a key, if present."""
        self._check_access()
        return self.items.get(key)

    def set_item(self, key: str, value: str) -> None:
        """Store text under a key, rejecting writes that exceed the quota."""
        self._check_access()
        if self.quota_bytes is not None:
            current = self.used_bytes() - _entry_size(key, self.items.get(key))
            if current + _entry_size(key, value) > self.quota_bytes:
                raise StorageQuotaError(
                    f"Writing {key!r} would exceed the {self.quota_bytes} byte quota"
                )
        self.items[key] = value

    def remove_item(self, key: str) -> None:
        """Remove a key if present."""
        self._check_access()
        self.items.pop(key, None)

    def clear(self) -> None:
        """Remove every key."""
        self._check_access()
        self.items.clear()

    def keys(self) -> list[str]:
        """Return all stored keys."""
        self._check_access()
        return list(self.items)

    def used_bytes(self) -> int:
        """Return the bytes currently held, counting keys and values."""
        return sum(_entry_size(key, value) for key, value in self.items.items())

    def _check_access(self) -> None:
        if self.blocked:
            raise StorageAccessError("Storage access denied")


def _entry_size(key: str, value: str | None) -> int:
    if value is None:
        return 0
    # localStorage counts UTF-16 code units
    return (len(key) + len(value)) * 2
