"""Domain models for statistics."""

from dataclasses import dataclass


@dataclass(frozen=True)
class StatisticsSnapshot:
    """Ticket counts by status."""

    total: int = 0
    open: int = 0
    in_progress: int = 0
    closed: int = 0
