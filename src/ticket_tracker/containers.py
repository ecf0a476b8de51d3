"""Dependency container wiring for the application."""

from dataclasses import dataclass
from datetime import timedelta

from supabase import create_client

from ticket_tracker.adapters.memory_storage import InMemoryStorage
from ticket_tracker.adapters.memory_surface import InMemorySurface
from ticket_tracker.adapters.supabase_storage import SupabaseStorage
from ticket_tracker.config import Settings, parse_demo_users
from ticket_tracker.services.clock import Clock, utcnow
from ticket_tracker.services.controller import PageController
from ticket_tracker.services.notifications import NotificationChannel
from ticket_tracker.services.sessions import SessionManager
from ticket_tracker.services.stats import StatisticsAggregator
from ticket_tracker.services.store import StorageBackend, StoreAdapter
from ticket_tracker.services.tickets import TicketRepository

# Element ids the server-rendered page shell provides.
PAGE_ELEMENT_IDS = (
    "username",
    "totalCount",
    "openCount",
    "inProgressCount",
    "closedCount",
    "createTicketBtn",
    "viewAllTicketsBtn",
    "titleError",
    "descriptionError",
    "statusError",
    "usernameError",
    "passwordError",
    "emailError",
    "confirm_passwordError",
)


@dataclass
class AppContainer:
    """Holds application-wide dependencies for one browser context."""

    settings: Settings
    store: StoreAdapter
    transient_store: StoreAdapter
    session_manager: SessionManager
    ticket_repository: TicketRepository
    statistics: StatisticsAggregator
    notifications: NotificationChannel
    surface: InMemorySurface
    page_controller: PageController


def build_storage_backend(settings: Settings) -> StorageBackend:
    """Create the persistent storage backend selected in settings."""
    if settings.storage_backend == "supabase":
        if not settings.supabase_url or not settings.supabase_service_key:
            raise ValueError(
                "supabase_url and supabase_service_key are required "
                "for the supabase storage backend"
            )
        client = create_client(settings.supabase_url, settings.supabase_service_key)
        return SupabaseStorage(client=client, table=settings.supabase_table)
    return InMemoryStorage(quota_bytes=settings.storage_quota_bytes)


def build_container(
    settings: Settings | None = None,
    backend: StorageBackend | None = None,
    clock: Clock = utcnow,
) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    store = StoreAdapter(
        backend=backend or build_storage_backend(resolved_settings), name="local"
    )
    transient_store = StoreAdapter(backend=InMemoryStorage(), name="session")
    session_manager = SessionManager(
        store=store,
        transient_store=transient_store,
        demo_users=parse_demo_users(resolved_settings.demo_users),
        ttl=timedelta(hours=resolved_settings.session_ttl_hours),
        clock=clock,
    )
    ticket_repository = TicketRepository(
        store=store, sessions=session_manager, clock=clock
    )
    statistics = StatisticsAggregator(ticket_repository)
    notifications = NotificationChannel(
        clock=clock,
        default_duration_ms=resolved_settings.notification_duration_ms,
        duplicate_window_ms=resolved_settings.duplicate_window_ms,
    )
    surface = InMemorySurface.with_elements(*PAGE_ELEMENT_IDS)
    page_controller = PageController(
        sessions=session_manager,
        tickets=ticket_repository,
        statistics=statistics,
        notifications=notifications,
        surface=surface,
        login_path=resolved_settings.login_path,
        dashboard_path=resolved_settings.dashboard_path,
        tickets_path=resolved_settings.tickets_path,
    )
    page_controller.setup_ticket_change_listeners()
    return AppContainer(
        settings=resolved_settings,
        store=store,
        transient_store=transient_store,
        session_manager=session_manager,
        ticket_repository=ticket_repository,
        statistics=statistics,
        notifications=notifications,
        surface=surface,
        page_controller=page_controller,
    )
