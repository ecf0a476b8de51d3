"""Pydantic models for records as they are serialized in the store."""

import logging
from datetime import UTC, datetime

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from ticket_tracker.domain.sessions import SessionRecord, UserIdentity
from ticket_tracker.domain.tickets import TicketRecord, TicketStatus

logger = logging.getLogger(__name__)


class _StoredModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    @field_validator("*", mode="after")
    @classmethod
    def _ensure_utc(cls, value: object) -> object:
        if isinstance(value, datetime) and value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value


class StoredUser(_StoredModel):
    """Serialized session user."""

    id: str = Field(min_length=1)
    username: str = Field(min_length=1)
    email: str


class StoredSession(_StoredModel):
    """Serialized session record."""

    token: str = Field(min_length=1)
    user: StoredUser
    expires_at: datetime = Field(alias="expiresAt")
    created_at: datetime = Field(alias="createdAt")


class StoredTicket(_StoredModel):
    """Serialized ticket record."""

    id: str = Field(min_length=1)
    title: str = Field(min_length=3, max_length=100)
    description: str = Field(default="", max_length=500)
    status: TicketStatus
    created_at: datetime = Field(alias="createdAt")
    updated_at: datetime = Field(alias="updatedAt")
    user_id: str = Field(alias="userId", min_length=1)


def session_to_payload(session: SessionRecord) -> dict[str, object]:
    """Serialize a session for storage."""
    stored = StoredSession(
        token=session.token,
        user=StoredUser(
            id=session.user.id,
            username=session.user.username,
            email=session.user.email,
        ),
        expires_at=session.expires_at,
        created_at=session.created_at,
    )
    return stored.model_dump(mode="json", by_alias=True)


def parse_session(raw: object) -> SessionRecord | None:
    """Parse a stored session, returning None if the shape is invalid."""
    if not isinstance(raw, dict):
        return None
    try:
        stored = StoredSession.model_validate(raw)
    except ValidationError as exc:
        logger.warning("Discarding malformed session record: %s", exc.errors())
        return None
    return SessionRecord(
        token=stored.token,
        user=UserIdentity(
            id=stored.user.id,
            username=stored.user.username,
            email=stored.user.email,
        ),
        expires_at=stored.expires_at,
        created_at=stored.created_at,
    )


def ticket_to_payload(ticket: TicketRecord) -> dict[str, object]:
    """Serialize a ticket for storage."""
    stored = StoredTicket(
        id=ticket.id,
        title=ticket.title,
        description=ticket.description,
        status=ticket.status,
        created_at=ticket.created_at,
        updated_at=ticket.updated_at,
        user_id=ticket.user_id,
    )
    return stored.model_dump(mode="json", by_alias=True)


def parse_ticket(raw: object) -> TicketRecord | None:
    """Parse a stored ticket, returning None if the shape is invalid."""
    if not isinstance(raw, dict):
        return None
    try:
        stored = StoredTicket.model_validate(raw)
    except ValidationError as exc:
        logger.warning("Skipping malformed ticket record: %s", exc.errors())
        return None
    if stored.updated_at < stored.created_at:
        logger.warning("Skipping ticket %s with updatedAt before createdAt", stored.id)
        return None
    return TicketRecord(
        id=stored.id,
        title=stored.title,
        description=stored.description,
        status=stored.status,
        created_at=stored.created_at,
        updated_at=stored.updated_at,
        user_id=stored.user_id,
    )


def parse_tickets(raw: object) -> list[TicketRecord]:
    """Parse a stored ticket collection, dropping entries that fail to parse."""
    if not isinstance(raw, list):
        if raw is not None:
            logger.warning(
                "Expected a ticket list in storage, got %s", type(raw).__name__
            )
        return []
    tickets = []
    for entry in raw:
        ticket = parse_ticket(entry)
        if ticket is not None:
            tickets.append(ticket)
    return tickets
