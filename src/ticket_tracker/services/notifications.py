"""Transient, auto-dismissing feedback messages."""

import html
from dataclasses import dataclass, field
from datetime import datetime, timedelta

from ticket_tracker.domain.notifications import Notification, NotificationKind
from ticket_tracker.services.clock import Clock, utcnow

DEFAULT_DURATION_MS = 3000
ERROR_DURATION_MS = 5000
WARNING_DURATION_MS = 4000


@dataclass
class NotificationChannel:
    """Queue of feedback messages with independent lifetimes.

    Messages expire lazily: anything past its ``expires_at`` is dropped the
    next time the channel is read. Text is HTML-escaped on the way in.
    """

    clock: Clock = utcnow
    default_duration_ms: int = DEFAULT_DURATION_MS
    duplicate_window_ms: int = DEFAULT_DURATION_MS
    _messages: dict[int, Notification] = field(default_factory=dict, init=False)
    _recent: dict[tuple[NotificationKind, str], datetime] = field(
        default_factory=dict, init=False
    )
    _counter: int = field(default=0, init=False)

    def show(
        self,
        message: str,
        kind: NotificationKind | str = NotificationKind.INFO,
        duration_ms: int | None = None,
    ) -> int | None:
        """Queue a message and return its id.

        Returns None when the same message of the same kind was shown within
        the duplicate window. A non-positive duration keeps the message until
        it is dismissed.
        """
        resolved = _resolve_kind(kind)
        text = str(message)
        now = self.clock()
        self._prune(now)

        key = (resolved, text)
        last_shown = self._recent.get(key)
        window = timedelta(milliseconds=self.duplicate_window_ms)
        if last_shown is not None and now - last_shown < window:
            return None
        self._recent[key] = now

        duration = self.default_duration_ms if duration_ms is None else duration_ms
        self._counter += 1
        notification = Notification(
            id=self._counter,
            kind=resolved,
            message=text,
            html=html.escape(text, quote=True),
            created_at=now,
            expires_at=(
                now + timedelta(milliseconds=duration) if duration > 0 else None
            ),
        )
        self._messages[notification.id] = notification
        return notification.id

    def show_success(
        self, message: str, duration_ms: int = DEFAULT_DURATION_MS
    ) -> int | None:
        return self.show(message, NotificationKind.SUCCESS, duration_ms)

    def show_error(
        self, message: str, duration_ms: int = ERROR_DURATION_MS
    ) -> int | None:
        return self.show(message, NotificationKind.ERROR, duration_ms)

    def show_warning(
        self, message: str, duration_ms: int = WARNING_DURATION_MS
    ) -> int | None:
        return self.show(message, NotificationKind.WARNING, duration_ms)

    def show_info(
        self, message: str, duration_ms: int = DEFAULT_DURATION_MS
    ) -> int | None:
        return self.show(message, NotificationKind.INFO, duration_ms)

    def dismiss(self, notification_id: int) -> bool:
        """Remove one message. Return False if it was already gone."""
        notification = self._messages.pop(notification_id, None)
        if notification is None:
            return False
        self._recent.pop((notification.kind, notification.message), None)
        return True

    def dismiss_all(self) -> None:
        """Remove every message."""
        for notification_id in list(self._messages):
            self.dismiss(notification_id)

    def active(self) -> list[Notification]:
        """Return live messages, oldest first."""
        self._prune(self.clock())
        return sorted(self._messages.values(), key=lambda item: item.id)

    def _prune(self, now: datetime) -> None:
        expired = [
            notification_id
            for notification_id, notification in self._messages.items()
            if notification.expires_at is not None and now >= notification.expires_at
        ]
        for notification_id in expired:
            self.dismiss(notification_id)
        window = timedelta(milliseconds=self.duplicate_window_ms)
        for key, shown_at in list(self._recent.items()):
            if now - shown_at >= window:
                del self._recent[key]


def _resolve_kind(kind: NotificationKind | str) -> NotificationKind:
    try:
        return NotificationKind(kind)
    except ValueError:
        return NotificationKind.INFO
