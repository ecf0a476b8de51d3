"""Closed result type shared by every lifecycle operation."""

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Generic, TypeVar

from ticket_tracker.domain.tickets import TicketRecord

T = TypeVar("T")


class ErrorKind(StrEnum):
    """Failure categories surfaced to callers."""

    VALIDATION = "validation"
    AUTHENTICATION = "authentication"
    QUOTA = "quota"
    ACCESS = "access"
    NOT_FOUND = "not_found"
    CONFIRMATION_REQUIRED = "confirmation_required"
    APPLICATION = "application"


@dataclass(frozen=True)
class Ok(Generic[T]):
    """Successful outcome carrying a value."""

    value: T

    @property
    def success(self) -> bool:
        return True


@dataclass(frozen=True)
class Err:
    """Failed or non-mutating outcome.

    ``errors`` holds field-level messages for validation failures, and
    ``ticket`` carries the affected ticket when a delete needs confirmation.
    """

    kind: ErrorKind
    message: str
    errors: dict[str, str] = field(default_factory=dict)
    ticket: TicketRecord | None = None

    @property
    def success(self) -> bool:
        return False

    @property
    def requires_confirmation(self) -> bool:
        return self.kind is ErrorKind.CONFIRMATION_REQUIRED


Result = Ok[T] | Err
