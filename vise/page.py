"""Rendering of templates and menus into pages constrained by size."""

from __future__ import annotations

import logging
import re
from typing import Any, Mapping, Optional, Protocol

from vise.menu import Menu
from vise.resource import MenuResource
from vise.size import Sizer

logger = logging.getLogger(__name__)

_ACTION = re.compile(r"\{\{(.*?)\}\}", re.S)
_FIELD = re.compile(r"\.([A-Za-z_][A-Za-z0-9_]*)")

MENU_SINK = "_menu"


class RenderError(Exception):
    """Raised when content cannot be rendered within the page constraints."""


class ContentCache(Protocol):
    def get(self, key: str) -> str: ...

    def reserved_size(self, key: str) -> int: ...


def _byte_len(s: str) -> int:
    return len(s.encode("utf-8"))


def _execute(tpl: str, values: Mapping[str, str]) -> str:
    if "{{" in _ACTION.sub("", tpl):
        raise RenderError("unclosed action in template")

    def substitute(match: re.Match[str]) -> str:
        body = match.group(1).strip()
        field = _FIELD.fullmatch(body)
        if field is None:
            raise RenderError(f"unsupported template action: {body}")
        key = field.group(1)
        if key not in values:
            raise RenderError(f'map has no entry for key "{key}"')
        return values[key]

    return _ACTION.sub(substitute, tpl)


class Page:
    """Renders mapped content and a menu against a symbol's template."""

    def __init__(self, cache: ContentCache, resource: Optional[MenuResource]) -> None:
        self.cache = cache
        self.resource = resource
        self.menu: Optional[Menu] = None
        self.sizer: Optional[Sizer] = None
        self._cache_map: dict[str, str] = {}
        self._sink: Optional[str] = None
        self._error: Optional[BaseException] = None
        self._extra = ""

    def with_menu(self, menu: Menu) -> Page:
        """Set the menu renderer."""
        self.menu = menu.with_resource(self.resource)
        return self

    def with_sizer(self, sizer: Sizer) -> Page:
        """Set the size constraints."""
        self.sizer = sizer
        return self

    def with_error(self, error: Optional[BaseException]) -> Page:
        """Set an error to prepend to the output."""
        self._error = error
        return self

    def usage(self) -> tuple[int, int]:
        """Bytes used by mapped values, and bytes reserved but unused."""
        used = 0
        reserved = 0
        for key, value in self._cache_map.items():
            used += _byte_len(value)
            reserved += self.cache.reserved_size(key)
        return used, reserved - used

    def map(self, key: str) -> None:
        """Make a cached value available to the template; one sink at most."""
        value = self.cache.get(key)
        size = self.cache.reserved_size(key)
        if size == 0:
            if self._sink is not None and self._sink != key:
                raise RenderError(f"sink already set to symbol '{self._sink}'")
            self._sink = key
        self._cache_map[key] = value
        if self.sizer is not None:
            self.sizer.set(key, size)
        logger.debug("mapped %s", key)

    def val(self, key: str) -> str:
        """Mapped content for a symbol."""
        value = self._cache_map.get(key, "")
        if not value:
            raise KeyError(f"key {key} not mapped")
        return value

    def sizes(self) -> dict[str, int]:
        """Reserved sizes of the mapped symbols."""
        sizes: dict[str, int] = {}
        have_sink = False
        for key in self._cache_map:
            size = self.cache.reserved_size(key)
            if size == 0:
                if have_sink:
                    raise RenderError(f"duplicate sink for {key}")
                have_sink = True
            sizes[key] = size
        return sizes

    def render_template(
        self, sym: str, values: Mapping[str, str], idx: int = 0, language: Any = None
    ) -> str:
        """Render the symbol's template with the values for the given page index."""
        if self.resource is None:
            raise RenderError("no resource to get template from")
        tpl = self.resource.get_template(sym, language) + self._extra
        if self._error is not None:
            message = str(self._error)
            tpl = f"{message}\n{tpl}" if tpl else message
        if self.sizer is not None:
            values = self.sizer.get_at(values, idx)
        elif idx > 0:
            raise RenderError("sizer needed for indexed render")
        logger.debug("render %s for index %d", sym, idx)
        return _execute(tpl, values)

    def render(self, sym: str, idx: int = 0, language: Any = None) -> str:
        """Render mapped content and menu for the symbol at the given page index."""
        values = self._prepare(sym, self._cache_map, idx, language)
        return self._render(sym, values, idx, language)

    def reset(self) -> None:
        """Clear mappings, sink, menu and page cursors for reuse."""
        self._sink = None
        self._extra = ""
        self._cache_map = {}
        if self.menu is not None:
            self.menu.reset()
        if self.sizer is not None:
            self.sizer.reset()

    def _split(
        self, sym: str, values: Mapping[str, str]
    ) -> tuple[dict[str, str], str, list[str]]:
        sink = ""
        sink_values: list[str] = []
        no_sink: dict[str, str] = {}
        for key, value in values.items():
            if self.cache.reserved_size(key) == 0:
                sink = key
                sink_values = value.split("\n")
                value = ""
                logger.info("found sink %s for %s", key, sym)
            no_sink[key] = value
        if not sink:
            return dict(values), "", []
        return no_sink, sink, sink_values

    def _join_sink(
        self, sink_values: list[str], remaining: int, menu_sizes: tuple[int, int, int, int]
    ) -> tuple[str, int]:
        assert self.sizer is not None
        length = 0
        count = 0
        chunk = bytearray()
        joined = bytearray()

        net_remaining = remaining - 1
        if len(sink_values) > 1:
            net_remaining -= menu_sizes[1] - 1

        for i, value in enumerate(sink_values):
            raw = value.encode("utf-8")
            length += len(raw)
            if length > net_remaining - 1:
                if not chunk:
                    raise RenderError(f"capacity insufficient for sink field {i}")
                joined += chunk + b"\n"
                self.sizer.add_cursor(len(joined))
                chunk = bytearray()
                length = 0
                if count == 0:
                    net_remaining -= menu_sizes[2]
                count += 1
            if chunk:
                chunk += b"\x00"
                length += 1
            chunk += raw

        if chunk:
            joined += chunk
            count += 1
        return joined.decode("utf-8").rstrip("\n"), count

    def _apply_menu_sink(self, language: Any) -> list[str]:
        assert self.menu is not None
        return self.menu.with_dispose().with_pages().render(0, language).split("\n")

    def _prepare(
        self, sym: str, values: Mapping[str, str], idx: int, language: Any
    ) -> Mapping[str, str]:
        if self.sizer is None:
            return values

        no_sink, sink, sink_values = self._split(sym, values)

        if self.menu is not None and self.menu.sink:
            if sink:
                raise RenderError("cannot use menu as sink when sink already mapped")
            sink_values = self._apply_menu_sink(language)
            sink = MENU_SINK
            self._extra = "\n{{." + MENU_SINK + "}}"
            self.sizer.sink = sink
            no_sink[sink] = ""
            logger.debug("menu is sink with %d items", len(sink_values))

        self.sizer.add_cursor(0)
        s = self._render(sym, no_sink, 0, language)

        remaining, ok = self.sizer.check(s)
        if not ok:
            raise RenderError("capacity exceeded")

        menu_sizes = (0, 0, 0, 0)
        if self.menu is not None:
            menu_sizes = self.menu.sizes(language)
        logger.debug("pre-navigation allocation %d menu sizes %s", remaining, menu_sizes)

        sink_string, count = self._join_sink(sink_values, remaining, menu_sizes)
        no_sink[sink] = sink_string

        if self.menu is not None:
            self.menu.with_page_count(count)
        return no_sink

    def _render(
        self, sym: str, values: Mapping[str, str], idx: int, language: Any
    ) -> str:
        result = self.render_template(sym, values, idx, language)
        if self.menu is not None:
            menu_text = self.menu.render(idx, language)
            if menu_text:
                result += "\n" + menu_text
        if self.sizer is not None:
            _, ok = self.sizer.check(result)
            if not ok:
                raise RenderError(f"limit exceeded: {self.sizer}")
        return result