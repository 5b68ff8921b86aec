"""Menu rendering with optional page browsing options."""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Any, Optional

from vise.resource import MenuResource

logger = logging.getLogger(__name__)


class BrowseError(IndexError):
    """Raised when browsing outside the page range of a rendered node."""

    def __init__(self, idx: int, page_count: int) -> None:
        super().__init__(f"index is out of bounds: {idx}")
        self.idx = idx
        self.page_count = page_count


@dataclass
class BrowseConfig:
    """Availability and display parameters for page browsing."""

    next_available: bool = False
    next_selector: str = ""
    next_title: str = ""
    previous_available: bool = False
    previous_selector: str = ""
    previous_title: str = ""


def default_browse_config() -> BrowseConfig:
    """Browse settings with both options enabled."""
    return BrowseConfig(
        next_available=True,
        next_selector="11",
        next_title="next",
        previous_available=True,
        previous_selector="22",
        previous_title="previous",
    )


def _byte_len(s: str) -> int:
    return len(s.encode("utf-8"))


class Menu:
    """Collects menu options and renders them, adding browse options for paged output."""

    def __init__(self) -> None:
        self.resource: Optional[MenuResource] = None
        self.browse = BrowseConfig()
        self.page_count = 0
        self.sink = False
        self._items: list[tuple[str, str]] = []
        self._can_next = False
        self._can_previous = False
        self._keep = True

    def __str__(self) -> str:
        return (
            f"pagecount: {self.page_count} menusink: {str(self.sink).lower()} "
            f"next: {str(self._can_next).lower()} prev: {str(self._can_previous).lower()}"
        )

    def with_page_count(self, page_count: int) -> Menu:
        """Set the number of pages the menu represents."""
        self.page_count = page_count
        return self

    def with_pages(self) -> Menu:
        """Make the menu paged, with at least one page."""
        if self.page_count == 0:
            self.page_count = 1
        return self

    def with_sink(self) -> Menu:
        """Render the menu items as the page's sink content."""
        self.sink = True
        return self

    def with_dispose(self) -> Menu:
        """Discard the menu items after rendering."""
        self._keep = False
        return self

    def with_resource(self, resource: Optional[MenuResource]) -> Menu:
        """Resolve titles through the given resource."""
        self.resource = resource
        return self

    def with_browse_config(self, config: BrowseConfig) -> Menu:
        """Set the browse options."""
        self.browse = replace(config)
        return self

    def put(self, selector: str, title: str) -> None:
        """Add a menu option."""
        self._items.append((selector, title))

    def sizes(self, language: Any = None) -> tuple[int, int, int, int]:
        """Byte sizes of: the bare menu, the next option, the previous option, and both."""
        tmp = Menu().with_browse_config(self.browse)
        main = _byte_len(tmp.render(0, language))
        tmp.with_page_count(2)
        next_size = _byte_len(tmp.render(0, language)) - main
        prev_size = _byte_len(tmp.render(1, language)) - main
        return main, next_size, prev_size, next_size + prev_size

    def _title_for(self, title: str, language: Any) -> str:
        if self.resource is None:
            return title
        return self.resource.get_menu(title, language)

    def render(self, idx: int = 0, language: Any = None) -> str:
        """Render the options for the given page index, one per line as selector:title."""
        saved = list(self._items)
        self._apply_page(idx)
        items, self._items = self._items, []
        try:
            return "\n".join(
                f"{choice}:{self._title_for(title, language)}" for choice, title in items
            )
        finally:
            if self._keep:
                self._items = saved

    def _apply_page(self, idx: int) -> None:
        if self.page_count == 0:
            if idx > 0:
                raise ValueError(f"index {idx} > 0 for non-paged menu")
            return
        if idx >= self.page_count:
            raise BrowseError(idx, self.page_count)

        self._reset_browse()
        if idx == self.page_count - 1:
            self._can_next = False
        if idx == 0:
            self._can_previous = False
        logger.debug("apply page %s idx %d", self, idx)

        if self._can_next:
            self.put(self.browse.next_selector, self.browse.next_title)
        if self._can_previous:
            self.put(self.browse.previous_selector, self.browse.previous_title)

    def _reset_browse(self) -> None:
        if self.browse.next_available:
            self._can_next = True
        if self.browse.previous_available:
            self._can_previous = True

    def reset(self) -> None:
        """Clear options and sink mode for reuse."""
        self._items = []
        self.sink = False
        self._reset_browse()