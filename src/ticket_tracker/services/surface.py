"""Interfaces to the rendered page the controller drives."""

from collections.abc import Callable
from typing import Protocol


class SurfaceElement(Protocol):
    """A single addressable element on the page."""

    def set_text(self, text: str) -> None:
        """Replace the element's text content."""

    def on(self, event: str, callback: Callable[[], None]) -> None:
        """Attach a callback to a named user event."""


class PageSurface(Protocol):
    """The page shell rendered by the server."""

    def element(self, element_id: str) -> SurfaceElement | None:
        """Return the element with this id, if the page has one."""

    def navigate(self, path: str) -> None:
        """Send the browser to another view."""
