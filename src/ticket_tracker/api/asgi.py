"""ASGI entrypoint for the ticket tracker API."""

from ticket_tracker.api.app import create_app
from ticket_tracker.containers import build_container

app = create_app(build_container())
