"""Domain models for user feedback messages."""

from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum


class NotificationKind(StrEnum):
    """Feedback message severity."""

    SUCCESS = "success"
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


GLYPHS: dict[NotificationKind, str] = {
    NotificationKind.SUCCESS: "✓",
    NotificationKind.ERROR: "✕",
    NotificationKind.WARNING: "⚠",
    NotificationKind.INFO: "ℹ",
}


@dataclass(frozen=True)
class Notification:
    """A transient message shown to the user."""

    id: int
    kind: NotificationKind
    message: str
    html: str
    created_at: datetime
    expires_at: datetime | None

    @property
    def glyph(self) -> str:
        return GLYPHS[self.kind]
