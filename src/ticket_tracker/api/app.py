"""FastAPI application factory."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, NoReturn

from fastapi import Depends, FastAPI, HTTPException, Query, Request, status

from ticket_tracker.api.models import (
    LoginRequest,
    SignupRequest,
    StorageEvent,
    TicketCreateRequest,
    TicketUpdateRequest,
)
from ticket_tracker.app_logging import configure_logging
from ticket_tracker.domain.results import Err, ErrorKind
from ticket_tracker.domain.tickets import TicketStatus
from ticket_tracker.services.errors import NOT_AUTHENTICATED_MESSAGE, NOT_FOUND_MESSAGE

if TYPE_CHECKING:
    from ticket_tracker.containers import AppContainer

_STATUS_CODES = {
    ErrorKind.VALIDATION: 422,
    ErrorKind.AUTHENTICATION: 401,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.CONFIRMATION_REQUIRED: 409,
    ErrorKind.QUOTA: 507,
    ErrorKind.ACCESS: 503,
    ErrorKind.APPLICATION: 500,
}


def _container(request: Request) -> AppContainer:
    return request.app.state.container


def _unauthorized() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail={
            "error": ErrorKind.AUTHENTICATION.value,
            "message": NOT_AUTHENTICATED_MESSAGE,
        },
    )


async def require_session(request: Request) -> None:
    """Reject requests made without a valid session."""
    if not _container(request).session_manager.is_authenticated():
        raise _unauthorized()


def _raise_for(error: Err) -> NoReturn:
    detail: dict[str, object] = {"error": error.kind.value, "message": error.message}
    if error.errors:
        detail["errors"] = error.errors
    if error.ticket is not None:
        detail["ticket"] = {"id": error.ticket.id, "title": error.ticket.title}
    raise HTTPException(status_code=_STATUS_CODES[error.kind], detail=detail)


def create_app(container: AppContainer) -> FastAPI:  # noqa: PLR0915
    """Create a FastAPI app serving one browser context."""
    configure_logging(container.settings.log_level)
    logger = logging.getLogger(__name__)

    app = FastAPI()
    app.state.container = container

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.post("/auth/login")
    async def login(body: LoginRequest, request: Request) -> dict[str, object]:
        """Start a session from the login form."""
        state = _container(request)
        result = state.page_controller.login(body.model_dump())
        if isinstance(result, Err):
            _raise_for(result)
        return {"user": result.value, "redirect": state.surface.location}

    @app.post("/auth/signup")
    async def signup(body: SignupRequest, request: Request) -> dict[str, object]:
        """Register and sign in from the signup form."""
        state = _container(request)
        result = state.page_controller.signup(body.model_dump())
        if isinstance(result, Err):
            _raise_for(result)
        return {"user": result.value, "redirect": state.surface.location}

    @app.post("/auth/logout")
    async def logout(request: Request) -> dict[str, object]:
        """End the session."""
        state = _container(request)
        result = state.page_controller.logout()
        if isinstance(result, Err):
            _raise_for(result)
        return {"success": True, "redirect": state.surface.location}

    @app.post("/auth/refresh")
    async def refresh(request: Request) -> dict[str, bool]:
        """Extend the current session."""
        refreshed = _container(request).page_controller.refresh_session()
        if not refreshed:
            raise _unauthorized()
        return {"refreshed": True}

    @app.get("/auth/session")
    async def session(request: Request) -> dict[str, object]:
        """Describe the current session."""
        sessions = _container(request).session_manager
        if not sessions.is_authenticated():
            return {"authenticated": False, "user": None, "expires_at": None}
        record = sessions.get_session()
        return {
            "authenticated": record is not None,
            "user": record.user if record else None,
            "expires_at": record.expires_at if record else None,
        }

    @app.get("/dashboard")
    async def dashboard(request: Request) -> dict[str, object]:
        """Bootstrap the dashboard view."""
        state = _container(request)
        if not state.page_controller.init(state.settings.dashboard_path):
            return {"authenticated": False, "redirect": state.surface.location}
        surface = state.surface
        return {
            "authenticated": True,
            "username": surface.text_of("username"),
            "statistics": state.statistics.calculate_statistics(),
            "redirect": None,
        }

    @app.get("/api/tickets", dependencies=[Depends(require_session)])
    async def list_tickets(
        request: Request,
        status_filter: TicketStatus | None = Query(default=None, alias="status"),
    ) -> dict[str, object]:
        """Return the current user's tickets, optionally filtered by status."""
        repository = _container(request).ticket_repository
        if status_filter is None:
            return {"tickets": repository.get_tickets()}
        return {"tickets": repository.get_tickets_by_status(status_filter)}

    @app.post("/api/tickets", status_code=201)
    async def create_ticket(
        body: TicketCreateRequest, request: Request
    ) -> dict[str, object]:
        """Create a ticket."""
        result = _container(request).page_controller.create_ticket(
            body.model_dump(exclude_unset=True)
        )
        if isinstance(result, Err):
            _raise_for(result)
        return {"ticket": result.value}

    @app.get("/api/tickets/{ticket_id}", dependencies=[Depends(require_session)])
    async def get_ticket(ticket_id: str, request: Request) -> dict[str, object]:
        """Return one ticket."""
        ticket = _container(request).ticket_repository.get_ticket_by_id(ticket_id)
        if ticket is None:
            _raise_for(Err(kind=ErrorKind.NOT_FOUND, message=NOT_FOUND_MESSAGE))
        return {"ticket": ticket}

    @app.patch("/api/tickets/{ticket_id}")
    async def update_ticket(
        ticket_id: str, body: TicketUpdateRequest, request: Request
    ) -> dict[str, object]:
        """Apply a partial update to a ticket."""
        result = _container(request).page_controller.update_ticket(
            ticket_id, body.model_dump(exclude_unset=True)
        )
        if isinstance(result, Err):
            _raise_for(result)
        return {"ticket": result.value}

    @app.delete("/api/tickets/{ticket_id}")
    async def delete_ticket(
        ticket_id: str, request: Request, confirmed: bool = False
    ) -> dict[str, object]:
        """Delete a ticket. Without confirmation nothing is removed."""
        result = _container(request).page_controller.delete_ticket(
            ticket_id, confirmed
        )
        if isinstance(result, Err):
            _raise_for(result)
        return {"deleted_ticket": result.value}

    @app.get("/api/stats", dependencies=[Depends(require_session)])
    async def stats(request: Request, refresh: bool = False) -> dict[str, object]:
        """Return ticket counts by status."""
        controller = _container(request).page_controller
        if refresh:
            return {"statistics": controller.refresh_statistics_public(True)}
        return {"statistics": controller.refresh_statistics(False)}

    @app.get("/api/notifications")
    async def notifications(request: Request) -> dict[str, object]:
        """Return live feedback messages."""
        active = _container(request).notifications.active()
        return {
            "notifications": [
                {
                    "id": item.id,
                    "kind": item.kind.value,
                    "glyph": item.glyph,
                    "html": item.html,
                    "expires_at": item.expires_at,
                }
                for item in active
            ]
        }

    @app.delete("/api/notifications/{notification_id}")
    async def dismiss_notification(
        notification_id: int, request: Request
    ) -> dict[str, bool]:
        """Dismiss a feedback message."""
        if not _container(request).notifications.dismiss(notification_id):
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
        return {"dismissed": True}

    @app.post("/api/storage-events")
    async def storage_event(body: StorageEvent, request: Request) -> dict[str, str]:
        """Relay a store change made by another context."""
        logger.debug("Storage change for key %r", body.key)
        _container(request).page_controller.handle_storage_change(body.key)
        return {"status": "ok"}

    return app
