"""Ticket CRUD scoped to the signed-in user."""

import logging
import secrets
import string
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from datetime import timedelta
from enum import StrEnum

from ticket_tracker.domain.results import Err, ErrorKind, Ok, Result
from ticket_tracker.domain.sessions import UserIdentity
from ticket_tracker.domain.tickets import TicketRecord, TicketStatus
from ticket_tracker.services.clock import Clock, utcnow
from ticket_tracker.services.errors import (
    NOT_AUTHENTICATED_MESSAGE,
    NOT_FOUND_MESSAGE,
    storage_err,
)
from ticket_tracker.services.records import parse_tickets, ticket_to_payload
from ticket_tracker.services.sessions import SessionManager
from ticket_tracker.services.store import TICKETS_KEY, StoreAdapter, StoreFailureKind
from ticket_tracker.services.validation import (
    validate_ticket,
    validate_ticket_update,
)

logger = logging.getLogger(__name__)

VALIDATION_FAILED_MESSAGE = "Validation failed"

_ID_ALPHABET = string.digits + string.ascii_lowercase
_ID_SUFFIX_LENGTH = 9
_MIN_TICK = timedelta(microseconds=1)


class TicketEventKind(StrEnum):
    """Kinds of change a repository reports to subscribers."""

    CREATED = "ticket-created"
    UPDATED = "ticket-updated"
    DELETED = "ticket-deleted"


@dataclass(frozen=True)
class TicketEvent:
    """A change to a single ticket."""

    kind: TicketEventKind
    ticket: TicketRecord


TicketListener = Callable[[TicketEvent], None]


@dataclass
class TicketRepository:
    """Create, read, update and delete tickets in the key-value store.

    The whole collection for every user lives under one key and is replaced
    on each write. Reads only ever expose the current user's tickets.
    """

    store: StoreAdapter
    sessions: SessionManager
    clock: Clock = utcnow
    _issued_ids: set[str] = field(default_factory=set, init=False, repr=False)
    _issued_millis: int | None = field(default=None, init=False, repr=False)
    _listeners: list[TicketListener] = field(
        default_factory=list, init=False, repr=False
    )

    def subscribe(self, listener: TicketListener) -> Callable[[], None]:
        """Register a change listener and return a function that removes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def create(self, data: Mapping[str, object]) -> Result[TicketRecord]:
        """Validate and persist a new ticket for the current user."""
        user = self._current_user()
        if user is None:
            return Err(kind=ErrorKind.AUTHENTICATION, message=NOT_AUTHENTICATED_MESSAGE)
        validation = validate_ticket(data)
        if not validation.is_valid:
            return Err(
                kind=ErrorKind.VALIDATION,
                message=VALIDATION_FAILED_MESSAGE,
                errors=validation.errors,
            )

        tickets = self._load_for_write()
        if isinstance(tickets, Err):
            return tickets
        existing_ids = {ticket.id for ticket in tickets}
        ticket_id = self.generate_ticket_id()
        while ticket_id in existing_ids:
            ticket_id = self.generate_ticket_id()

        now = self.clock()
        ticket = TicketRecord(
            id=ticket_id,
            title=str(data["title"]).strip(),
            description=_clean_description(data.get("description")),
            status=TicketStatus(data.get("status") or TicketStatus.OPEN),
            created_at=now,
            updated_at=now,
            user_id=user.id,
        )
        tickets.append(ticket)
        if not self._save(tickets):
            return storage_err(self.store)
        logger.info("Created ticket %s", ticket.id)
        self._notify(TicketEventKind.CREATED, ticket)
        return Ok(ticket)

    def get_tickets(self) -> list[TicketRecord]:
        """Return the current user's tickets, newest first."""
        user = self._current_user()
        if user is None:
            return []
        owned = [
            ticket for ticket in self._load_all() if ticket.user_id == user.id
        ]
        return sorted(owned, key=lambda ticket: ticket.created_at, reverse=True)

    def get_ticket_by_id(self, ticket_id: str) -> TicketRecord | None:
        """Return one of the current user's tickets by id."""
        for ticket in self.get_tickets():
            if ticket.id == ticket_id:
                return ticket
        return None

    def get_tickets_by_status(self, status: str) -> list[TicketRecord]:
        """Return the current user's tickets with the given status."""
        return [ticket for ticket in self.get_tickets() if ticket.status == status]

    def update(
        self, ticket_id: str, data: Mapping[str, object]
    ) -> Result[TicketRecord]:
        """Apply a validated partial update to a ticket."""
        user = self._current_user()
        if user is None:
            return Err(kind=ErrorKind.AUTHENTICATION, message=NOT_AUTHENTICATED_MESSAGE)
        tickets = self._load_for_write()
        if isinstance(tickets, Err):
            return tickets
        index = _find_owned(tickets, ticket_id, user)
        if index is None:
            return Err(kind=ErrorKind.NOT_FOUND, message=NOT_FOUND_MESSAGE)
        validation = validate_ticket_update(data)
        if not validation.is_valid:
            return Err(
                kind=ErrorKind.VALIDATION,
                message=VALIDATION_FAILED_MESSAGE,
                errors=validation.errors,
            )

        current = tickets[index]
        updated = TicketRecord(
            id=current.id,
            title=(
                str(data["title"]).strip() if "title" in data else current.title
            ),
            description=(
                _clean_description(data["description"])
                if "description" in data
                else current.description
            ),
            status=(
                TicketStatus(data["status"]) if "status" in data else current.status
            ),
            created_at=current.created_at,
            updated_at=max(self.clock(), current.updated_at + _MIN_TICK),
            user_id=current.user_id,
        )
        tickets[index] = updated
        if not self._save(tickets):
            return storage_err(self.store)
        logger.info("Updated ticket %s", updated.id)
        self._notify(TicketEventKind.UPDATED, updated)
        return Ok(updated)

    def delete(self, ticket_id: str, confirmed: bool = False) -> Result[TicketRecord]:
        """Delete a ticket once the caller has confirmed it."""
        user = self._current_user()
        if user is None:
            return Err(kind=ErrorKind.AUTHENTICATION, message=NOT_AUTHENTICATED_MESSAGE)
        tickets = self._load_for_write()
        if isinstance(tickets, Err):
            return tickets
        index = _find_owned(tickets, ticket_id, user)
        if index is None:
            return Err(kind=ErrorKind.NOT_FOUND, message=NOT_FOUND_MESSAGE)
        ticket = tickets[index]
        if not confirmed:
            return Err(
                kind=ErrorKind.CONFIRMATION_REQUIRED,
                message=f'Are you sure you want to delete "{ticket.title}"?',
                ticket=ticket,
            )

        del tickets[index]
        if not self._save(tickets):
            return storage_err(self.store)
        logger.info("Deleted ticket %s", ticket.id)
        self._notify(TicketEventKind.DELETED, ticket)
        return Ok(ticket)

    def generate_ticket_id(self) -> str:
        """Return an id this repository has never issued before.

        Ids embed the issue millisecond, so only ids from the current
        millisecond are remembered for the collision check.
        """
        while True:
            millis = int(self.clock().timestamp() * 1000)
            if millis != self._issued_millis:
                self._issued_ids.clear()
                self._issued_millis = millis
            suffix = "".join(
                secrets.choice(_ID_ALPHABET) for _ in range(_ID_SUFFIX_LENGTH)
            )
            ticket_id = f"ticket_{millis}_{suffix}"
            if ticket_id not in self._issued_ids:
                self._issued_ids.add(ticket_id)
                return ticket_id

    def _current_user(self) -> UserIdentity | None:
        if not self.sessions.is_authenticated():
            return None
        return self.sessions.get_current_user()

    def _load_all(self) -> list[TicketRecord]:
        return parse_tickets(self.store.get(TICKETS_KEY, []))

    def _load_for_write(self) -> list[TicketRecord] | Err:
        tickets = self._load_all()
        failure = self.store.last_failure
        # Corrupt content is treated as empty; an unreadable store is not.
        if failure is not None and failure.kind is not StoreFailureKind.CORRUPT:
            return storage_err(self.store)
        return tickets

    def _save(self, tickets: list[TicketRecord]) -> bool:
        return self.store.set(
            TICKETS_KEY, [ticket_to_payload(ticket) for ticket in tickets]
        )

    def _notify(self, kind: TicketEventKind, ticket: TicketRecord) -> None:
        event = TicketEvent(kind=kind, ticket=ticket)
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                logger.exception("Ticket listener failed on %s", kind.value)


def _find_owned(
    tickets: list[TicketRecord], ticket_id: str, user: UserIdentity
) -> int | None:
    for index, ticket in enumerate(tickets):
        if ticket.id == ticket_id and ticket.user_id == user.id:
            return index
    return None


def _clean_description(value: object) -> str:
    return value.strip() if isinstance(value, str) else ""
