"""Page controller that wires sessions, tickets, stats and feedback together."""

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field

from ticket_tracker.domain.results import Err, ErrorKind, Ok, Result
from ticket_tracker.domain.sessions import UserIdentity
from ticket_tracker.domain.stats import StatisticsSnapshot
from ticket_tracker.domain.tickets import TicketRecord
from ticket_tracker.services.errors import GENERIC_MESSAGE
from ticket_tracker.services.notifications import NotificationChannel
from ticket_tracker.services.sessions import SessionManager
from ticket_tracker.services.stats import StatisticsAggregator
from ticket_tracker.services.store import SESSION_KEY, TICKETS_KEY
from ticket_tracker.services.surface import PageSurface
from ticket_tracker.services.tickets import TicketEvent, TicketRepository
from ticket_tracker.services.validation import validate_credentials, validate_signup

logger = logging.getLogger(__name__)

USERNAME_ID = "username"
CREATE_TICKET_ID = "createTicketBtn"
VIEW_ALL_TICKETS_ID = "viewAllTicketsBtn"
DEFAULT_USERNAME = "User"

LOGIN_REQUIRED_MESSAGE = "Please log in to continue"
SESSION_EXPIRED_MESSAGE = "Your session has expired. Please log in again."
FIX_FIELDS_MESSAGE = "Please fix the highlighted fields"
SIGNUP_FAILED_MESSAGE = "Registration failed. Please try again."
TICKET_NOT_FOUND_MESSAGE = "Ticket not found"


@dataclass
class PageController:
    """Orchestrates one view of the ticket tracker.

    Every action returns the underlying ``Result`` and reports its outcome to
    the notification channel. Unexpected exceptions stop here: they are logged
    and turned into an application error so the page stays usable.
    """

    sessions: SessionManager
    tickets: TicketRepository
    statistics: StatisticsAggregator
    notifications: NotificationChannel
    surface: PageSurface
    login_path: str = "/auth/login"
    dashboard_path: str = "/dashboard"
    tickets_path: str = "/tickets/list"
    _unsubscribe: Callable[[], None] | None = field(
        default=None, init=False, repr=False
    )
    _listeners_attached: bool = field(default=False, init=False, repr=False)
    _field_errors: set[str] = field(default_factory=set, init=False, repr=False)

    def init(self, current_path: str | None = None) -> bool:
        """Bootstrap the view. Return False when sent to the login page."""
        if self.sessions.redirect_if_not_auth(
            current_path or self.dashboard_path, LOGIN_REQUIRED_MESSAGE
        ):
            self.surface.navigate(self.login_path)
            return False
        self.statistics.preload_tickets()
        self.display_username()
        self.attach_event_listeners()
        self.setup_ticket_change_listeners()
        self.refresh_statistics()
        return True

    def dispose(self) -> None:
        """Stop listening for ticket changes."""
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def display_username(self) -> None:
        element = self.surface.element(USERNAME_ID)
        if element is None:
            return
        user = self.sessions.get_current_user()
        element.set_text(user.username if user else DEFAULT_USERNAME)

    def attach_event_listeners(self) -> None:
        if self._listeners_attached:
            return
        bindings = (
            (CREATE_TICKET_ID, self.handle_create_ticket),
            (VIEW_ALL_TICKETS_ID, self.handle_view_all_tickets),
        )
        for element_id, handler in bindings:
            element = self.surface.element(element_id)
            if element is not None:
                element.on("click", handler)
        self._listeners_attached = True

    def setup_ticket_change_listeners(self) -> None:
        if self._unsubscribe is None:
            self._unsubscribe = self.tickets.subscribe(self._on_ticket_event)

    def handle_create_ticket(self) -> None:
        self.surface.navigate(self.tickets_path)

    def handle_view_all_tickets(self) -> None:
        self.surface.navigate(self.tickets_path)

    def handle_storage_change(self, key: str | None) -> None:
        """React to a write made to the shared store by another context.

        ``None`` means the whole store was cleared.
        """
        if key is None or key == SESSION_KEY:
            if not self.sessions.is_authenticated():
                self.statistics.invalidate_cache()
                self.surface.navigate(self.login_path)
                return
            # the signed-in user may have changed
            self.display_username()
            self.refresh_statistics_public(force_refresh=True)
        elif key == TICKETS_KEY:
            self.refresh_statistics_public(force_refresh=True)

    def refresh_statistics(self, force_refresh: bool = False) -> StatisticsSnapshot:
        """Recalculate counts and push them to the page."""
        try:
            snapshot = self.statistics.calculate_statistics(force_refresh)
        except Exception:
            logger.exception("Failed to calculate ticket statistics")
            snapshot = StatisticsSnapshot()
        self.statistics.update_statistics_display(snapshot, self.surface)
        return snapshot

    def refresh_statistics_public(
        self, force_refresh: bool = True
    ) -> StatisticsSnapshot:
        """Refresh statistics from outside the controller."""
        if force_refresh:
            self.statistics.invalidate_cache()
        return self.refresh_statistics(force_refresh)

    def login(self, credentials: Mapping[str, object]) -> Result[UserIdentity]:
        """Submit the login form."""
        validation = validate_credentials(credentials)
        if not validation.is_valid:
            return self._reject_fields(validation.errors)

        def attempt() -> Result[UserIdentity]:
            return self.sessions.login(credentials)

        result = self._guard("login", attempt)
        return self._finish_login(result, None)

    def signup(self, data: Mapping[str, object]) -> Result[UserIdentity]:
        """Submit the signup form, which signs in with the new email."""
        validation = validate_signup(data)
        if not validation.is_valid:
            return self._reject_fields(validation.errors)

        def attempt() -> Result[UserIdentity]:
            return self.sessions.login(
                {"username": data.get("email"), "password": data.get("password")}
            )

        result = self._guard("signup", attempt)
        return self._finish_login(result, SIGNUP_FAILED_MESSAGE)

    def logout(self) -> Result[None]:
        """End the session and return to the login page."""
        result = self._guard("logout", self.sessions.logout)
        self.statistics.invalidate_cache()
        if isinstance(result, Ok):
            self.notifications.show_success("You have been logged out")
            self.surface.navigate(self.login_path)
        else:
            self._report(result)
        return result

    def refresh_session(self) -> bool:
        """Extend the current session, redirecting to login if it is gone."""
        refreshed = self.sessions.refresh_session()
        if refreshed:
            self.notifications.show_info("Session extended")
        elif not self.sessions.is_authenticated():
            self._redirect_to_login(SESSION_EXPIRED_MESSAGE)
        else:
            self.notifications.show_warning("Could not extend your session")
        return refreshed

    def create_ticket(self, data: Mapping[str, object]) -> Result[TicketRecord]:
        """Create a ticket from form data."""
        result = self._guard("create ticket", lambda: self.tickets.create(data))
        if isinstance(result, Ok):
            self._clear_field_errors()
            self.notifications.show_success(f'Ticket "{result.value.title}" created')
        else:
            self._report(result)
        return result

    def update_ticket(
        self, ticket_id: str, data: Mapping[str, object]
    ) -> Result[TicketRecord]:
        """Apply a partial update from form data."""
        result = self._guard(
            "update ticket", lambda: self.tickets.update(ticket_id, data)
        )
        if isinstance(result, Ok):
            self._clear_field_errors()
            self.notifications.show_success(f'Ticket "{result.value.title}" updated')
        else:
            self._report(result)
        return result

    def delete_ticket(
        self, ticket_id: str, confirmed: bool = False
    ) -> Result[TicketRecord]:
        """Delete a ticket, asking for confirmation first."""
        result = self._guard(
            "delete ticket", lambda: self.tickets.delete(ticket_id, confirmed)
        )
        if isinstance(result, Ok):
            self.notifications.show_success(f'Ticket "{result.value.title}" deleted')
        else:
            self._report(result)
        return result

    def _finish_login(
        self, result: Result[UserIdentity], failure_message: str | None
    ) -> Result[UserIdentity]:
        if isinstance(result, Err):
            self.notifications.show_error(failure_message or result.message)
            return result
        self._clear_field_errors()
        self.statistics.invalidate_cache()
        target = self.sessions.consume_redirect(self.dashboard_path)
        self.notifications.show_success(f"Welcome, {result.value.username}!")
        self.surface.navigate(target)
        return result

    def _on_ticket_event(self, event: TicketEvent) -> None:
        logger.debug("Refreshing statistics after %s", event.kind.value)
        self.refresh_statistics_public(force_refresh=True)

    def _guard(self, action: str, operation: Callable[[], Result]) -> Result:
        try:
            return operation()
        except Exception:
            logger.exception("Unexpected failure during %s", action)
            return Err(kind=ErrorKind.APPLICATION, message=GENERIC_MESSAGE)

    def _report(self, error: Err) -> None:
        if error.kind is ErrorKind.VALIDATION:
            self._show_field_errors(error.errors)
            self.notifications.show_error(
                FIX_FIELDS_MESSAGE if error.errors else error.message
            )
        elif error.kind is ErrorKind.AUTHENTICATION:
            self._redirect_to_login(SESSION_EXPIRED_MESSAGE)
        elif error.kind in {ErrorKind.QUOTA, ErrorKind.ACCESS}:
            self.notifications.show_warning(error.message)
        elif error.kind is ErrorKind.NOT_FOUND:
            self.notifications.show_error(TICKET_NOT_FOUND_MESSAGE)
        elif error.kind is ErrorKind.CONFIRMATION_REQUIRED:
            self.notifications.show_warning(error.message)
        else:
            self.notifications.show_error(GENERIC_MESSAGE)

    def _reject_fields(self, errors: dict[str, str]) -> Err:
        error = Err(
            kind=ErrorKind.VALIDATION, message=FIX_FIELDS_MESSAGE, errors=errors
        )
        self._report(error)
        return error

    def _redirect_to_login(self, message: str) -> None:
        self.notifications.show_error(message)
        self.sessions.redirect_if_not_auth(self.dashboard_path, message)
        self.surface.navigate(self.login_path)

    def _show_field_errors(self, errors: Mapping[str, str]) -> None:
        self._clear_field_errors()
        for field_name, message in errors.items():
            element = self.surface.element(f"{field_name}Error")
            if element is not None:
                element.set_text(message)
            self._field_errors.add(field_name)

    def _clear_field_errors(self) -> None:
        for field_name in self._field_errors:
            element = self.surface.element(f"{field_name}Error")
            if element is not None:
                element.set_text("")
        self._field_errors.clear()
