"""Domain models for tickets."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum


class TicketStatus(StrEnum):
    """Lifecycle status of a ticket."""

    OPEN = "Open"
    IN_PROGRESS = "In Progress"
    CLOSED = "Closed"


@dataclass(frozen=True)
class TicketRecord:
    """A persisted ticket owned by a user."""

    id: str
    title: str
    description: str
    status: TicketStatus
    created_at: datetime
    updated_at: datetime
    user_id: str


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of a field-level validation pass."""

    errors: dict[str, str] = field(default_factory=dict)

    @property
    def is_valid(self) -> bool:
        return not self.errors
