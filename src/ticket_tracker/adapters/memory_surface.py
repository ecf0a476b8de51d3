"""In-memory page surface used by the HTTP app and tests."""

from collections.abc import Callable
from dataclasses import dataclass, field

from ticket_tracker.services.surface import PageSurface, SurfaceElement


@dataclass
class InMemoryElement(SurfaceElement):
    """Element that records its text and bound handlers."""

    id: str
    text: str = ""
    handlers: dict[str, list[Callable[[], None]]] = field(default_factory=dict)

    def set_text(self, text: str) -> None:
        """Replace the element's text content."""
        self.text = text

    def on(self, event: str, callback: Callable[[], None]) -> None:
        """Attach a callback to a named user event."""
        self.handlers.setdefault(event, []).append(callback)

    def trigger(self, event: str) -> None:
        """Fire every handler bound to an event."""
        for callback in list(self.handlers.get(event, [])):
            callback()


@dataclass
class InMemorySurface(PageSurface):
    """Page with a fixed set of element ids and a recorded location."""

    elements: dict[str, InMemoryElement] = field(default_factory=dict)
    location: str | None = None
    history: list[str] = field(default_factory=list)

    @classmethod
    def with_elements(cls, *element_ids: str) -> "InMemorySurface":
        """Create a surface containing the given element ids."""
        return cls(
            elements={
                element_id: InMemoryElement(id=element_id)
                for element_id in element_ids
            }
        )

    def element(self, element_id: str) -> InMemoryElement | None:
        """Return the element with this id, if the page has one."""
        return self.elements.get(element_id)

    def add_element(self, element_id: str) -> InMemoryElement:
        """Return the element with this id, creating it when missing."""
        return self.elements.setdefault(element_id, InMemoryElement(id=element_id))

    def navigate(self, path: str) -> None:
        """Record a navigation."""
        self.location = path
        self.history.append(path)

    def text_of(self, element_id: str) -> str | None:
        """Return the text of an element, if present."""
        element = self.elements.get(element_id)
        return element.text if element else None
