"""User-facing messages for each failure category."""

from ticket_tracker.domain.results import Err, ErrorKind
from ticket_tracker.services.store import StoreAdapter, StoreFailureKind

QUOTA_MESSAGE = "Storage is full. Delete some tickets and try again."
ACCESS_MESSAGE = (
    "Storage is unavailable. Check your browser privacy settings and try again."
)
GENERIC_MESSAGE = "Something went wrong. Please try again."
NOT_AUTHENTICATED_MESSAGE = "not authenticated"
NOT_FOUND_MESSAGE = "not found"


def storage_err(store: StoreAdapter) -> Err:
    """Build an Err describing the store's last failed write."""
    failure = store.last_failure
    if failure is not None and failure.kind is StoreFailureKind.QUOTA:
        return Err(kind=ErrorKind.QUOTA, message=QUOTA_MESSAGE)
    if failure is not None and failure.kind is StoreFailureKind.ACCESS:
        return Err(kind=ErrorKind.ACCESS, message=ACCESS_MESSAGE)
    return Err(kind=ErrorKind.APPLICATION, message=GENERIC_MESSAGE)
