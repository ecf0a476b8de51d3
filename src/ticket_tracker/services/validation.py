"""Field-level validation for tickets and credentials.

All functions are pure: they inspect a payload and return a
``ValidationResult`` mapping each offending field to one message. Surrounding
whitespace is trimmed before length checks, so a whitespace-only title counts
as missing rather than too short.
"""

import re
from collections.abc import Mapping

from ticket_tracker.domain.tickets import TicketStatus, ValidationResult

TITLE_MIN_LENGTH = 3
TITLE_MAX_LENGTH = 100
DESCRIPTION_MAX_LENGTH = 500
USERNAME_MIN_LENGTH = 3
USERNAME_MAX_LENGTH = 20
PASSWORD_MIN_LENGTH = 6
PASSWORD_MAX_LENGTH = 50

_EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
_USERNAME_PATTERN = re.compile(r"^[A-Za-z0-9_]+$")
_STATUS_VALUES = ", ".join(status.value for status in TicketStatus)


def validate_ticket(data: Mapping[str, object]) -> ValidationResult:
    """Validate a full ticket payload for creation."""
    errors: dict[str, str] = {}
    _check_title(data.get("title"), errors)
    status = data.get("status")
    _check_status(TicketStatus.OPEN.value if status in (None, "") else status, errors)
    _check_description(data.get("description"), errors)
    return ValidationResult(errors=errors)


def validate_ticket_update(data: Mapping[str, object]) -> ValidationResult:
    """Validate only the fields present in a partial ticket update."""
    errors: dict[str, str] = {}
    if "title" in data:
        _check_title(data["title"], errors)
    if "status" in data:
        _check_status(data["status"], errors)
    if "description" in data:
        _check_description(data["description"], errors)
    return ValidationResult(errors=errors)


def validate_credentials(data: Mapping[str, object]) -> ValidationResult:
    """Pre-submission check for the login form."""
    errors: dict[str, str] = {}
    username = _text(data.get("username")).strip()
    if not username:
        errors["username"] = "Username or email is required"
    elif len(username) < USERNAME_MIN_LENGTH:
        errors["username"] = (
            f"Username must be at least {USERNAME_MIN_LENGTH} characters long"
        )
    elif "@" in username and not is_valid_email(username):
        errors["username"] = "Please enter a valid email address"

    password = _text(data.get("password"))
    if not password:
        errors["password"] = "Password is required"
    elif len(password) < PASSWORD_MIN_LENGTH:
        errors["password"] = (
            f"Password must be at least {PASSWORD_MIN_LENGTH} characters long"
        )
    return ValidationResult(errors=errors)


def validate_signup(data: Mapping[str, object]) -> ValidationResult:
    """Pre-submission check for the signup form."""
    errors: dict[str, str] = {}
    username = _text(data.get("username")).strip()
    if not username:
        errors["username"] = "Username is required"
    elif len(username) < USERNAME_MIN_LENGTH:
        errors["username"] = (
            f"Username must be at least {USERNAME_MIN_LENGTH} characters long"
        )
    elif len(username) > USERNAME_MAX_LENGTH:
        errors["username"] = (
            f"Username must be at most {USERNAME_MAX_LENGTH} characters long"
        )
    elif not _USERNAME_PATTERN.match(username):
        errors["username"] = (
            "Username can only contain letters, numbers, and underscores"
        )

    email = _text(data.get("email")).strip()
    if not email:
        errors["email"] = "Email is required"
    elif not is_valid_email(email):
        errors["email"] = "Please enter a valid email address"

    password = _text(data.get("password"))
    if not password:
        errors["password"] = "Password is required"
    elif len(password) < PASSWORD_MIN_LENGTH:
        errors["password"] = (
            f"Password must be at least {PASSWORD_MIN_LENGTH} characters long"
        )
    elif len(password) > PASSWORD_MAX_LENGTH:
        errors["password"] = (
            f"Password must be at most {PASSWORD_MAX_LENGTH} characters long"
        )

    confirm = _text(data.get("confirm_password"))
    if not confirm:
        errors["confirm_password"] = "Please confirm your password"
    elif confirm != password:
        errors["confirm_password"] = "Passwords do not match"
    return ValidationResult(errors=errors)


def is_valid_email(value: str) -> bool:
    """Return True for a simple ``local@domain.tld`` address."""
    return bool(_EMAIL_PATTERN.match(value))


def _text(value: object) -> str:
    return value if isinstance(value, str) else ""


def _check_title(value: object, errors: dict[str, str]) -> None:
    if value is not None and not isinstance(value, str):
        errors["title"] = "Title must be text"
        return
    title = (value or "").strip()
    if not title:
        errors["title"] = "Title is required"
    elif len(title) < TITLE_MIN_LENGTH:
        errors["title"] = f"Title must be at least {TITLE_MIN_LENGTH} characters"
    elif len(title) > TITLE_MAX_LENGTH:
        errors["title"] = f"Title must be at most {TITLE_MAX_LENGTH} characters"


def _check_status(value: object, errors: dict[str, str]) -> None:
    if not isinstance(value, str) or value not in tuple(TicketStatus):
        errors["status"] = f"Status must be one of: {_STATUS_VALUES}"


def _check_description(value: object, errors: dict[str, str]) -> None:
    if value is None:
        return
    if not isinstance(value, str):
        errors["description"] = "Description must be text"
    elif len(value.strip()) > DESCRIPTION_MAX_LENGTH:
        errors["description"] = (
            f"Description must be at most {DESCRIPTION_MAX_LENGTH} characters"
        )
