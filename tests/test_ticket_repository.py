"""Tests for ticket CRUD."""

import json
import re

import pytest

from ticket_tracker.containers import AppContainer
from ticket_tracker.domain.results import Err, ErrorKind, Ok
from ticket_tracker.domain.tickets import TicketRecord, TicketStatus
from ticket_tracker.services.store import TICKETS_KEY, StorageAccessError
from ticket_tracker.services.tickets import TicketEvent, TicketEventKind
from tests.conftest import FixedClock, FlakyStorage, fill_quota


def _create(container: AppContainer, title: str, **fields: str) -> TicketRecord:
    result = container.ticket_repository.create({"title": title, **fields})
    assert isinstance(result, Ok)
    return result.value


def test_create_requires_session(container: AppContainer) -> None:
    result = container.ticket_repository.create({"title": "Printer jam"})

    assert isinstance(result, Err)
    assert result.kind is ErrorKind.AUTHENTICATION


def test_create_persists_ticket_for_current_user(
    container: AppContainer, storage: FlakyStorage, logged_in, clock: FixedClock
) -> None:
    result = container.ticket_repository.create(
        {"title": "  Printer jam  ", "description": " Tray 2 "}
    )

    assert isinstance(result, Ok)
    ticket = result.value
    assert ticket.title == "Printer jam"
    assert ticket.description == "Tray 2"
    assert ticket.status is TicketStatus.OPEN
    assert ticket.user_id == logged_in.id
    assert ticket.created_at == ticket.updated_at == clock.now
    assert re.fullmatch(r"ticket_\d+_[0-9a-z]{9}", ticket.id)
    stored = json.loads(storage.items[TICKETS_KEY])
    assert stored[0]["userId"] == logged_in.id
    assert stored[0]["status"] == "Open"
    assert container.ticket_repository.get_ticket_by_id(ticket.id) == ticket


def test_create_with_invalid_fields_writes_nothing(
    container: AppContainer, storage: FlakyStorage, logged_in
) -> None:
    result = container.ticket_repository.create({"title": "ab", "status": "Done"})

    assert isinstance(result, Err)
    assert result.kind is ErrorKind.VALIDATION
    assert set(result.errors) == {"title", "status"}
    assert TICKETS_KEY not in storage.items


def test_get_tickets_is_scoped_and_sorted(
    container: AppContainer, clock: FixedClock, logged_in
) -> None:
    first = _create(container, "First ticket")
    clock.advance(minutes=1)
    second = _create(container, "Second ticket")

    container.session_manager.logout()
    container.session_manager.login({"username": "admin", "password": "admin123"})
    _create(container, "Admin ticket")
    assert [t.title for t in container.ticket_repository.get_tickets()] == [
        "Admin ticket"
    ]

    container.session_manager.logout()
    container.session_manager.login({"username": "demo", "password": "password"})
    tickets = container.ticket_repository.get_tickets()

    assert [t.id for t in tickets] == [second.id, first.id]


def test_get_tickets_without_session_is_empty(container: AppContainer) -> None:
    assert container.ticket_repository.get_tickets() == []


def test_get_tickets_by_status(container: AppContainer, logged_in) -> None:
    _create(container, "Open one")
    _create(container, "Working one", status="In Progress")
    _create(container, "Done one", status="Closed")

    repository = container.ticket_repository

    assert [t.title for t in repository.get_tickets_by_status("Closed")] == [
        "Done one"
    ]
    assert repository.get_tickets_by_status("Nope") == []


def test_corrupt_entries_are_skipped(
    container: AppContainer, storage: FlakyStorage, logged_in
) -> None:
    good = _create(container, "Keep me")
    stored = json.loads(storage.items[TICKETS_KEY])
    stored.append({"id": "broken", "title": "x"})
    stored.append("not a ticket")
    storage.items[TICKETS_KEY] = json.dumps(stored)

    assert [t.id for t in container.ticket_repository.get_tickets()] == [good.id]


def test_update_changes_only_given_fields(
    container: AppContainer, clock: FixedClock, logged_in
) -> None:
    ticket = _create(container, "Printer jam", description="Tray 2")
    clock.advance(seconds=5)

    result = container.ticket_repository.update(ticket.id, {"status": "Closed"})

    assert isinstance(result, Ok)
    updated = result.value
    assert updated.status is TicketStatus.CLOSED
    assert updated.title == "Printer jam"
    assert updated.description == "Tray 2"
    assert updated.created_at == ticket.created_at
    assert updated.updated_at == clock.now


def test_update_timestamp_strictly_increases_on_frozen_clock(
    container: AppContainer, logged_in
) -> None:
    ticket = _create(container, "Printer jam")
    repository = container.ticket_repository

    first = repository.update(ticket.id, {"title": "Printer jam again"})
    second = repository.update(ticket.id, {"title": "Printer jam thrice"})

    assert isinstance(first, Ok)
    assert isinstance(second, Ok)
    assert ticket.updated_at < first.value.updated_at < second.value.updated_at


def test_update_validation_failure_keeps_ticket(
    container: AppContainer, logged_in
) -> None:
    ticket = _create(container, "Printer jam")

    result = container.ticket_repository.update(ticket.id, {"title": ""})

    assert isinstance(result, Err)
    assert result.kind is ErrorKind.VALIDATION
    assert container.ticket_repository.get_ticket_by_id(ticket.id) == ticket


def test_update_unknown_ticket(container: AppContainer, logged_in) -> None:
    result = container.ticket_repository.update("ticket_0_missing00", {"title": "New"})

    assert isinstance(result, Err)
    assert result.kind is ErrorKind.NOT_FOUND


def test_other_users_ticket_is_not_found(container: AppContainer, logged_in) -> None:
    ticket = _create(container, "Private ticket")
    sessions = container.session_manager
    sessions.logout()
    sessions.login({"username": "admin", "password": "admin123"})

    update = container.ticket_repository.update(ticket.id, {"title": "Stolen"})
    delete = container.ticket_repository.delete(ticket.id, confirmed=True)

    assert isinstance(update, Err)
    assert update.kind is ErrorKind.NOT_FOUND
    assert isinstance(delete, Err)
    assert delete.kind is ErrorKind.NOT_FOUND
    assert container.ticket_repository.get_ticket_by_id(ticket.id) is None


def test_delete_requires_confirmation(
    container: AppContainer, logged_in
) -> None:
    ticket = _create(container, "Printer jam")
    repository = container.ticket_repository

    pending = repository.delete(ticket.id)

    assert isinstance(pending, Err)
    assert pending.requires_confirmation
    assert pending.ticket == ticket
    assert pending.message == 'Are you sure you want to delete "Printer jam"?'
    assert repository.get_ticket_by_id(ticket.id) == ticket

    confirmed = repository.delete(ticket.id, confirmed=True)

    assert isinstance(confirmed, Ok)
    assert confirmed.value == ticket
    assert repository.get_tickets() == []


def test_quota_failure_leaves_collection_unchanged(
    container: AppContainer, storage: FlakyStorage, logged_in
) -> None:
    existing = _create(container, "Existing ticket")
    fill_quota(storage)

    result = container.ticket_repository.create({"title": "One too many"})

    assert isinstance(result, Err)
    assert result.kind is ErrorKind.QUOTA
    assert [t.id for t in container.ticket_repository.get_tickets()] == [existing.id]


def test_blocked_write_is_access_error(
    container: AppContainer, storage: FlakyStorage, logged_in
) -> None:
    ticket = _create(container, "Existing ticket")
    storage.fail_writes_with = StorageAccessError

    result = container.ticket_repository.update(ticket.id, {"status": "Closed"})

    assert isinstance(result, Err)
    assert result.kind is ErrorKind.ACCESS


def test_unreadable_store_blocks_writes(
    container: AppContainer, storage: FlakyStorage, logged_in
) -> None:
    storage.write_attempts.clear()
    storage.fail_reads_with = StorageAccessError
    storage.unreadable_keys = {TICKETS_KEY}

    result = container.ticket_repository.create({"title": "Printer jam"})

    assert isinstance(result, Err)
    assert result.kind is ErrorKind.ACCESS
    assert storage.write_attempts == []


def test_generated_ids_are_unique(container: AppContainer) -> None:
    ids = {container.ticket_repository.generate_ticket_id() for _ in range(1000)}

    assert len(ids) == 1000


def test_listeners_receive_events_and_can_unsubscribe(
    container: AppContainer, logged_in
) -> None:
    events: list[TicketEvent] = []
    unsubscribe = container.ticket_repository.subscribe(events.append)

    ticket = _create(container, "Printer jam")
    container.ticket_repository.update(ticket.id, {"status": "Closed"})
    container.ticket_repository.delete(ticket.id, confirmed=True)
    unsubscribe()
    _create(container, "Unheard ticket")

    assert [event.kind for event in events] == [
        TicketEventKind.CREATED,
        TicketEventKind.UPDATED,
        TicketEventKind.DELETED,
    ]


def test_failing_listener_does_not_break_write(
    container: AppContainer, logged_in
) -> None:
    def explode(event: TicketEvent) -> None:
        raise RuntimeError("listener bug")

    container.ticket_repository.subscribe(explode)

    result = container.ticket_repository.create({"title": "Printer jam"})

    assert isinstance(result, Ok)


def test_corrupt_collection_reads_as_empty(
    container: AppContainer, storage: FlakyStorage, logged_in
) -> None:
    storage.items[TICKETS_KEY] = "{definitely not json"

    assert container.ticket_repository.get_tickets() == []

    result = container.ticket_repository.create({"title": "Fresh start"})

    assert isinstance(result, Ok)
    assert len(container.ticket_repository.get_tickets()) == 1


def test_create_increments_open_count(container: AppContainer, logged_in) -> None:
    before = container.statistics.calculate_statistics(force_refresh=True)

    result = container.ticket_repository.create(
        {"title": "Printer jam", "status": "Open"}
    )

    assert isinstance(result, Ok)
    after = container.statistics.calculate_statistics(force_refresh=True)
    assert after.open == before.open + 1
    assert after.total == before.total + 1


@pytest.mark.parametrize("title", ["ab", "a" * 101])
def test_create_rejects_title_length_and_keeps_store(
    container: AppContainer, storage: FlakyStorage, logged_in, title: str
) -> None:
    _create(container, "Existing ticket")
    before = storage.items[TICKETS_KEY]

    result = container.ticket_repository.create({"title": title})

    assert isinstance(result, Err)
    assert result.kind is ErrorKind.VALIDATION
    assert "title" in result.errors
    assert storage.items[TICKETS_KEY] == before


@pytest.mark.parametrize("title", ["ab", "a" * 101])
def test_update_rejects_title_length_and_keeps_store(
    container: AppContainer, storage: FlakyStorage, logged_in, title: str
) -> None:
    ticket = _create(container, "Existing ticket")
    before = storage.items[TICKETS_KEY]

    result = container.ticket_repository.update(ticket.id, {"title": title})

    assert isinstance(result, Err)
    assert result.kind is ErrorKind.VALIDATION
    assert "title" in result.errors
    assert storage.items[TICKETS_KEY] == before


def test_issued_ids_are_only_remembered_for_current_millisecond(
    container: AppContainer, clock: FixedClock
) -> None:
    repository = container.ticket_repository
    first_batch = {repository.generate_ticket_id() for _ in range(50)}

    clock.advance(milliseconds=1)
    later = repository.generate_ticket_id()

    assert len(first_batch) == 50
    assert later not in first_batch
    assert repository._issued_ids == {later}
