"""Tests for ticket statistics."""

from ticket_tracker.adapters.memory_surface import InMemorySurface
from ticket_tracker.containers import AppContainer
from ticket_tracker.domain.stats import StatisticsSnapshot
from ticket_tracker.services.stats import StatisticsAggregator
from tests.conftest import ExplodingElement


def _seed(container: AppContainer, status: str, count: int) -> None:
    for index in range(count):
        result = container.ticket_repository.create(
            {"title": f"{status} ticket {index}", "status": status}
        )
        assert result.success


def test_counts_by_status(container: AppContainer, logged_in) -> None:
    _seed(container, "Open", 40)
    _seed(container, "In Progress", 30)
    _seed(container, "Closed", 30)

    snapshot = container.statistics.calculate_statistics()

    assert snapshot == StatisticsSnapshot(
        total=100, open=40, in_progress=30, closed=30
    )
    assert snapshot.total == snapshot.open + snapshot.in_progress + snapshot.closed


def test_empty_store_counts_zero(container: AppContainer, logged_in) -> None:
    assert container.statistics.calculate_statistics() == StatisticsSnapshot()


def test_cached_snapshot_is_reused_until_forced(
    container: AppContainer, logged_in
) -> None:
    _seed(container, "Open", 2)
    statistics = StatisticsAggregator(container.ticket_repository)
    first = statistics.calculate_statistics()

    _seed(container, "Closed", 1)

    assert statistics.calculate_statistics() is first
    refreshed = statistics.calculate_statistics(force_refresh=True)
    assert refreshed == StatisticsSnapshot(total=3, open=2, closed=1)
    assert statistics.cached_tickets is not None
    assert len(statistics.cached_tickets) == 3


def test_invalidate_cache_forces_recalculation(
    container: AppContainer, logged_in
) -> None:
    statistics = StatisticsAggregator(container.ticket_repository)
    statistics.calculate_statistics()
    _seed(container, "In Progress", 1)
    assert statistics.calculate_statistics().in_progress == 0

    statistics.invalidate_cache()

    assert statistics.cached_tickets is None
    assert statistics.calculate_statistics().in_progress == 1


def test_other_users_tickets_are_not_counted(
    container: AppContainer, logged_in
) -> None:
    _seed(container, "Open", 3)
    container.session_manager.logout()
    container.session_manager.login({"username": "admin", "password": "admin123"})

    snapshot = container.statistics.calculate_statistics(force_refresh=True)

    assert snapshot.total == 0


def test_display_skips_missing_elements(container: AppContainer) -> None:
    surface = InMemorySurface.with_elements("totalCount", "closedCount")

    container.statistics.update_statistics_display(
        StatisticsSnapshot(total=5, open=2, in_progress=1, closed=2), surface
    )

    assert surface.text_of("totalCount") == "5"
    assert surface.text_of("closedCount") == "2"
    assert surface.text_of("openCount") is None


def test_display_survives_failing_element(container: AppContainer) -> None:
    surface = InMemorySurface.with_elements("totalCount", "closedCount")
    surface.elements["openCount"] = ExplodingElement(id="openCount")

    container.statistics.update_statistics_display(
        StatisticsSnapshot(total=1, open=1), surface
    )

    assert surface.text_of("totalCount") == "1"
    assert surface.text_of("closedCount") == "0"


def test_container_statistics_follow_ticket_changes(
    container: AppContainer, logged_in
) -> None:
    statistics = container.statistics
    assert statistics.calculate_statistics() == StatisticsSnapshot()

    _seed(container, "Open", 1)

    assert statistics.calculate_statistics() == StatisticsSnapshot(total=1, open=1)
