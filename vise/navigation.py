"""Validation of client input and routing of navigation targets to state changes."""

from __future__ import annotations

import re
from typing import Protocol, Union

from vise.state import State

_INPUT_PATTERN = rb"\+?[a-zA-Z0-9].*"
_CTRL_PATTERN = rb"[><_^.]"
_SYM_PATTERN = rb"[a-zA-Z0-9][a-zA-Z0-9_]+"

_INPUT_RE = re.compile(_INPUT_PATTERN)
_CTRL_RE = re.compile(_CTRL_PATTERN)
_SYM_RE = re.compile(_SYM_PATTERN)

CATCH_SYM = "_catch"


class InvalidInputError(ValueError):
    """Client input that the bytecode did not handle."""

    def __init__(self, input: str) -> None:
        super().__init__(f"invalid input: '{input}'")
        self.input = input


class NavigationCache(Protocol):
    def push(self) -> None: ...

    def pop(self) -> None: ...


def _as_bytes(value: Union[str, bytes]) -> bytes:
    return value.encode("utf-8") if isinstance(value, str) else bytes(value)


def _show(value: bytes) -> str:
    return value.decode("utf-8", errors="replace")


def valid_input(value: Union[str, bytes]) -> None:
    """Raise ValueError unless the value is acceptable client input."""
    raw = _as_bytes(value)
    if _INPUT_RE.fullmatch(raw) is None:
        raise ValueError(
            f"Input '{_show(raw)}' does not match input format /{_INPUT_PATTERN.decode()}/"
        )


def _valid_control(raw: bytes) -> bool:
    return _CTRL_RE.fullmatch(raw) is not None


def valid_sym(value: Union[str, bytes]) -> None:
    """Raise ValueError unless the value is a valid node symbol."""
    raw = _as_bytes(value)
    if raw == CATCH_SYM.encode():
        return
    if _SYM_RE.fullmatch(raw) is None:
        raise ValueError(
            f"Input '{_show(raw)}' does not match 'sym' format /{_SYM_PATTERN.decode()}/"
        )


def _valid(raw: bytes) -> bool:
    if not raw:
        return False
    try:
        valid_sym(raw)
    except ValueError:
        return _valid_control(raw)
    return True


def check_target(target: Union[str, bytes], state: State) -> bool:
    """Whether navigating to the target is available in the current state."""
    raw = _as_bytes(target)
    if not _valid(raw):
        raise ValueError(f"invalid target: {raw.hex()}")
    first = raw[:1]
    if first == b"_":
        return state.top()
    if first == b"<":
        return state.sides()[1]
    if first == b">":
        return state.sides()[0]
    return True


def apply_target(
    target: Union[str, bytes], state: State, cache: NavigationCache
) -> tuple[str, int]:
    """Apply a navigation target to the state and cache; return symbol and page index."""
    raw = _as_bytes(target)
    sym, idx = state.where()
    if not _valid(raw):
        raise ValueError(f"invalid input: {_show(raw)}")

    text = raw.decode("utf-8")
    if text == "_":
        sym = state.up()
        cache.pop()
    elif text == ">":
        idx = state.next()
    elif text == "<":
        idx = state.previous()
    elif text == "^":
        while not state.top():
            sym = state.up()
            cache.pop()
    elif text == ".":
        state.same()
        return state.where()
    else:
        sym = text
        state.down(sym)
        cache.push()
        idx = 0
    return sym, idx