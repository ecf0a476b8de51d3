"""Shared test fixtures."""

from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta

import pytest

from ticket_tracker.adapters.memory_storage import InMemoryStorage
from ticket_tracker.config import Settings
from ticket_tracker.containers import AppContainer, build_container
from ticket_tracker.domain.sessions import UserIdentity

START = datetime(2024, 1, 15, 9, 0, tzinfo=UTC)


@dataclass
class FixedClock:
    """Manually advanced clock for tests."""

    now: datetime = START

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


@dataclass
class FlakyStorage(InMemoryStorage):
    """In-memory storage whose writes and reads can be switched off."""

    fail_writes_with: type[Exception] | None = None
    fail_reads_with: type[Exception] | None = None
    unreadable_keys: set[str] | None = None
    write_attempts: list[str] = field(default_factory=list)

    def get_item(self, key: str) -> str | None:
        if self.fail_reads_with is not None and (
            self.unreadable_keys is None or key in self.unreadable_keys
        ):
            raise self.fail_reads_with("read refused")
        return super().get_item(key)

    def set_item(self, key: str, value: str) -> None:
        self.write_attempts.append(key)
        if self.fail_writes_with is not None:
            raise self.fail_writes_with("write refused")
        super().set_item(key, value)

    def remove_item(self, key: str) -> None:
        if self.fail_writes_with is not None:
            raise self.fail_writes_with("remove refused")
        super().remove_item(key)


@dataclass
class ExplodingElement:
    """Surface element whose text cannot be set."""

    id: str

    def set_text(self, text: str) -> None:
        raise RuntimeError(f"cannot render {self.id}")

    def on(self, event: str, callback) -> None:  # type: ignore[no-untyped-def]
        return None


def fill_quota(storage: InMemoryStorage) -> None:
    """Shrink the quota so the next growing write is rejected."""
    storage.quota_bytes = storage.used_bytes()


@pytest.fixture
def settings() -> Settings:
    return Settings(
        environment="test",
        storage_backend="memory",
        demo_users=None,
        session_ttl_hours=24,
    )


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock()


@pytest.fixture
def storage() -> FlakyStorage:
    return FlakyStorage(quota_bytes=5 * 1024 * 1024)


@pytest.fixture
def container(
    settings: Settings, storage: FlakyStorage, clock: FixedClock
) -> AppContainer:
    return build_container(settings, backend=storage, clock=clock)


@pytest.fixture
def logged_in(container: AppContainer) -> UserIdentity:
    result = container.session_manager.login(
        {"username": "demo", "password": "password"}
    )
    return result.value  # type: ignore[union-attr]
