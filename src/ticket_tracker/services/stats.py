"""Statistics service for ticket status counts."""

import logging
from dataclasses import dataclass, field

from ticket_tracker.domain.stats import StatisticsSnapshot
from ticket_tracker.domain.tickets import TicketRecord, TicketStatus
from ticket_tracker.services.surface import PageSurface
from ticket_tracker.services.tickets import TicketRepository

logger = logging.getLogger(__name__)

TOTAL_COUNT_ID = "totalCount"
OPEN_COUNT_ID = "openCount"
IN_PROGRESS_COUNT_ID = "inProgressCount"
CLOSED_COUNT_ID = "closedCount"


@dataclass
class StatisticsAggregator:
    """Derives status counts from the repository, with an explicit cache."""

    repository: TicketRepository
    _cached_stats: StatisticsSnapshot | None = field(
        default=None, init=False, repr=False
    )
    _cached_tickets: list[TicketRecord] | None = field(
        default=None, init=False, repr=False
    )

    @property
    def cached_tickets(self) -> list[TicketRecord] | None:
        """Tickets the cached snapshot was computed from."""
        return self._cached_tickets

    def calculate_statistics(self, force_refresh: bool = False) -> StatisticsSnapshot:
        """Return counts by status, reusing the cached snapshot when allowed."""
        if not force_refresh and self._cached_stats is not None:
            return self._cached_stats

        tickets = self.repository.get_tickets()
        counts = dict.fromkeys(TicketStatus, 0)
        for ticket in tickets:
            counts[ticket.status] += 1
        snapshot = StatisticsSnapshot(
            total=sum(counts.values()),
            open=counts[TicketStatus.OPEN],
            in_progress=counts[TicketStatus.IN_PROGRESS],
            closed=counts[TicketStatus.CLOSED],
        )
        self._cached_stats = snapshot
        self._cached_tickets = tickets
        return snapshot

    def invalidate_cache(self) -> None:
        """Drop the cached snapshot so the next read recalculates."""
        self._cached_stats = None
        self._cached_tickets = None

    def preload_tickets(self) -> None:
        """Warm the ticket read ahead of the first calculation."""
        self.repository.get_tickets()

    def update_statistics_display(
        self, snapshot: StatisticsSnapshot, surface: PageSurface
    ) -> None:
        """Push counts to the page, skipping elements that are missing."""
        updates = (
            (TOTAL_COUNT_ID, snapshot.total),
            (OPEN_COUNT_ID, snapshot.open),
            (IN_PROGRESS_COUNT_ID, snapshot.in_progress),
            (CLOSED_COUNT_ID, snapshot.closed),
        )
        for element_id, value in updates:
            element = surface.element(element_id)
            if element is None:
                continue
            try:
                element.set_text(str(value))
            except Exception:
                logger.exception("Failed to update statistics element %s", element_id)
