from __future__ import annotations

from typing import Any, Protocol, Sequence


class PageDriver(Protocol):
    """Browser automation that scrapes elements and turns selectors into handles."""

    def extract_elements(self) -> Sequence[dict[str, Any]]:
        """Return raw DOM descriptors (tag, attributes, text, xpath)."""

    def resolve_locator(self, selector: str) -> Any:
        """Return an opaque handle for ``selector``."""
