"""Output size constraints and splitting of sink content into browseable pages."""

from __future__ import annotations

import logging
from typing import Mapping

logger = logging.getLogger(__name__)


class Sizer:
    """Applies an output size limit and tracks page cursors into the sink content."""

    def __init__(self, output_size: int) -> None:
        self.output_size = output_size
        self.member_sizes: dict[str, int] = {}
        self.total_member_size = 0
        self.cursors: list[int] = []
        self.sink = ""

    def set(self, key: str, size: int) -> None:
        """Register a content symbol with its size limit; a zero limit marks the sink."""
        self.member_sizes[key] = size
        if size == 0:
            self.sink = key
        self.total_member_size += size

    def check(self, s: str) -> tuple[int, bool]:
        """Return the bytes left after the rendered string, and whether it fits."""
        length = len(s.encode("utf-8"))
        if self.output_size > 0:
            if length > self.output_size:
                logger.info("sized check fails: length %d sizer %s", length, self)
                return 0, False
            length = self.output_size - length
        return length, True

    def size(self, key: str) -> int:
        """Size limit of a registered symbol."""
        try:
            return self.member_sizes[key]
        except KeyError:
            raise KeyError(f"unknown member: {key}") from None

    def add_cursor(self, cursor: int) -> None:
        """Add a byte offset into the paged sink content."""
        logger.debug("added cursor at offset %d", cursor)
        self.cursors.append(cursor)

    def get_at(self, values: Mapping[str, str], idx: int) -> dict[str, str]:
        """Values with the sink narrowed to the content of the given page index."""
        if not self.sink:
            return dict(values)
        out: dict[str, str] = {}
        for key, value in values.items():
            if key == self.sink:
                if idx >= len(self.cursors):
                    raise IndexError("no more values in index")
                raw = value.encode("utf-8")[self.cursors[idx]:]
                nl = raw.find(b"\n")
                if nl > 0:
                    raw = raw[:nl]
                value = raw.replace(b"\x00", b"\n").decode("utf-8")
            out[key] = value
        return out

    def reset(self) -> None:
        """Forget all page cursors."""
        self.cursors = []

    def __str__(self) -> str:
        return f"output: {self.output_size}, member: {self.total_member_size}"


def bookmark(values: list[str]) -> list[int]:
    """Cumulative byte offsets of the values, each counted with one separator."""
    marks = [0]
    offset = 0
    for value in values:
        offset += len(value.encode("utf-8")) + 1
        marks.append(offset)
    return marks


def is_last(cursor: int, end: int, capacity: int) -> bool:
    """True if everything from cursor to end fits in the capacity."""
    return end - cursor <= capacity


def paginate(
    bookmarks: list[int], capacity: int, next_size: int, prev_size: int
) -> list[list[int]]:
    """Group bookmarks into pages that fit the capacity, allowing for browse options."""
    if not bookmarks:
        raise ValueError("empty page array")

    last_index = len(bookmarks) - 1
    last = bookmarks[last_index]
    if is_last(0, last, capacity):
        return [list(bookmarks)]

    look_ahead = bookmarks[1:]
    pages: list[list[int]] = [[]]
    cursor = 0
    i = 0
    have_more = True
    while have_more:
        remaining = capacity
        if i > 0:
            remaining -= prev_size
        if remaining < 0:
            raise ValueError(
                f"underrun in item {i}: prevsize {prev_size} remain {remaining} cap {capacity}"
            )
        if is_last(cursor, last, remaining):
            have_more = False
        else:
            remaining -= next_size
        if remaining < 0:
            raise ValueError(
                f"underrun in item {i}: prevsize {prev_size} nextsize {next_size} "
                f"remain {remaining} cap {capacity}"
            )

        used = 0
        current = pages[-1]
        while i < last_index:
            value = look_ahead[i]
            delta = value - cursor + 1
            if used == 0 and delta > remaining:
                raise ValueError(f"single value at {i} exceeds capacity")
            used += delta
            if used > remaining:
                break
            current.append(bookmarks[i])
            cursor = value
            i += 1
        logger.debug("more %s remaining %d cursor %d pages %s", have_more, remaining, cursor, pages)

        if have_more:
            pages.append([])

    pages[-1].append(last)
    return pages


def explode(values: list[str], pages: list[list[int]]) -> str:
    """Flatten paged values: NUL separates values in a page, LF separates pages."""
    s = "".join(values).encode("utf-8") + b"\n"
    out = bytearray()
    start = 0
    last_page = 0
    seen = 0
    for page_index, page in enumerate(pages):
        for mark in page:
            if mark == 0:
                continue
            seen += 1
            out += b"\n" if page_index != last_page else b"\x00"
            end = mark - seen
            out += s[start:end]
            start = end
        last_page = page_index
    return out.decode("utf-8").rstrip("\n")