"""Pydantic models for HTTP request bodies."""

from pydantic import BaseModel


class LoginRequest(BaseModel):
    """Login form payload."""

    username: str | None = None
    password: str | None = None


class SignupRequest(BaseModel):
    """Signup form payload."""

    username: str | None = None
    email: str | None = None
    password: str | None = None
    confirm_password: str | None = None


class TicketCreateRequest(BaseModel):
    """New ticket form payload. Field rules are enforced by the validator."""

    title: str | None = None
    description: str | None = None
    status: str | None = None


class TicketUpdateRequest(BaseModel):
    """Partial ticket update. Only fields that are sent are applied."""

    title: str | None = None
    description: str | None = None
    status: str | None = None


class StorageEvent(BaseModel):
    """A change made to the shared store from another context."""

    key: str | None = None
