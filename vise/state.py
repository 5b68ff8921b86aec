"""Execution state: navigation stack, flag bit field, pending code and input."""

from __future__ import annotations

from enum import IntEnum
from typing import Optional

MAX_INPUT_SIZE = 255


class Flag(IntEnum):
    """Built-in flag indices. The first eight bits are reserved."""

    READIN = 0
    INMATCH = 1
    TERMINATE = 2
    DIRTY = 3
    WAIT = 4
    LOADFAIL = 5
    RESERVED = 6
    LANG = 7
    USERSTART = 8


def is_writeable_flag(flag: int) -> bool:
    """Return whether external code may set or reset the given flag."""
    return flag > 6


def _get_flag(bit_index: int, bit_field: bytes) -> bool:
    return bool(bit_field[bit_index // 8] & (1 << (bit_index % 8)))


def _to_byte_size(bit_size: int) -> int:
    return (bit_size + 7) // 8


class FlagDebugger:
    """Maps flag indices to names for human-readable flag listings."""

    def __init__(self) -> None:
        self._names: dict[int, str] = {}
        for flag, name in (
            (Flag.READIN, "INTERNAL_READIN"),
            (Flag.INMATCH, "INTERNAL_INMATCH"),
            (Flag.TERMINATE, "INTERNAL_TERMINATE"),
            (Flag.DIRTY, "INTERNAL_DIRTY"),
            (Flag.WAIT, "INTERNAL_WAIT"),
            (Flag.LOADFAIL, "INTERNAL_LOADFAIL"),
            (Flag.LANG, "INTERNAL_LANG"),
        ):
            self._names[int(flag)] = name

    def register(self, flag: int, name: str) -> None:
        """Name a user flag. Reserved flags (below 8) cannot be named."""
        if flag < Flag.USERSTART:
            raise ValueError(f"flag {flag} is not definable by user")
        self._names[flag] = name

    def as_string(self, flags: bytes, length: int) -> str:
        """Comma-separated names of the set flags."""
        return ",".join(self.as_list(flags, length))

    def as_list(self, flags: bytes, length: int) -> list[str]:
        """Names of the set flags, each followed by its index in parentheses."""
        return [
            f"{self._names.get(i, '')}({i})"
            for i in range(length + Flag.USERSTART)
            if _get_flag(i, flags)
        ]


flag_debugger = FlagDebugger()


class StateIndexError(IndexError):
    """Raised when browsing back from the first page index."""

    def __init__(self, message: str = "already at first index") -> None:
        super().__init__(message)


class State:
    """Navigation stack, flags, pending bytecode and last input of a session."""

    def __init__(self, bit_size: int) -> None:
        self.bit_size = bit_size + Flag.USERSTART
        self.flags = bytearray(_to_byte_size(self.bit_size))
        self.code = b""
        self.exec_path: list[str] = []
        self.size_idx = 0
        self.moves = 0
        self.language: Optional[object] = None
        self._input: Optional[bytes] = None
        self._debug = False

    def use_debug(self) -> None:
        """Render flags by name in the string representation."""
        self._debug = True

    def _check_index(self, bit_index: int) -> None:
        if bit_index < 0 or bit_index + 1 > self.bit_size:
            raise IndexError(
                f"bit index {bit_index} is out of range of bitfield size {self.bit_size}"
            )

    def set_flag(self, bit_index: int) -> bool:
        """Set a flag; return True if its state changed."""
        self._check_index(bit_index)
        if _get_flag(bit_index, self.flags):
            return False
        self.flags[bit_index // 8] |= 1 << (bit_index % 8)
        return True

    def reset_flag(self, bit_index: int) -> bool:
        """Clear a flag; return True if its state changed."""
        self._check_index(bit_index)
        if not _get_flag(bit_index, self.flags):
            return False
        self.flags[bit_index // 8] &= ~(1 << (bit_index % 8)) & 0xFF
        return True

    def get_flag(self, bit_index: int) -> bool:
        """Return the state of a flag."""
        self._check_index(bit_index)
        return _get_flag(bit_index, self.flags)

    def match_flag(self, sig: int, match_set: bool) -> bool:
        """True if the flag's state equals match_set."""
        return self.get_flag(sig) == match_set

    def get_index(self, flags: bytes) -> bool:
        """True if any bit set in the given mask is also set in the state flags."""
        limit = min(self.bit_size, len(flags) * 8)
        return any(
            flags[i // 8] & self.flags[i // 8] & (1 << (i % 8)) for i in range(limit)
        )

    def where(self) -> tuple[str, int]:
        """Current symbol and page index."""
        if not self.exec_path:
            return "", 0
        return self.exec_path[-1], self.size_idx

    def _require_root(self) -> None:
        if not self.exec_path:
            raise RuntimeError("state root node not yet defined")

    def next(self) -> int:
        """Move to the next page index and return it."""
        self._require_root()
        self.size_idx += 1
        self.moves += 1
        return self.size_idx

    def same(self) -> None:
        """Record a move that stays on the current node."""
        self.moves += 1

    def previous(self) -> int:
        """Move to the previous page index and return it."""
        self._require_root()
        if self.size_idx == 0:
            raise StateIndexError()
        self.size_idx -= 1
        self.moves += 1
        return self.size_idx

    def sides(self) -> tuple[bool, bool]:
        """Availability of the next and previous browse options."""
        if not self.exec_path:
            return False, False
        return True, self.size_idx != 0

    def top(self) -> bool:
        """True if at the top node."""
        self._require_root()
        return len(self.exec_path) == 1

    def down(self, sym: str) -> None:
        """Push a symbol onto the navigation stack."""
        self.exec_path.append(sym)
        self.size_idx = 0
        self.moves += 1

    def up(self) -> str:
        """Pop the current symbol and return the new current one."""
        if not self.exec_path:
            raise RuntimeError("exit called beyond top frame")
        self.exec_path.pop()
        self.size_idx = 0
        self.moves += 1
        return self.exec_path[-1] if self.exec_path else ""

    def depth(self) -> int:
        """Depth of the navigation stack, zero at the top node."""
        return len(self.exec_path) - 1

    def append_code(self, code: bytes) -> None:
        """Append bytecode to the pending code."""
        self.code += bytes(code)

    def get_code(self) -> bytes:
        """Take the pending bytecode, leaving none behind."""
        code, self.code = self.code, b""
        return code

    def get_input(self) -> bytes:
        """The most recent client input."""
        if self._input is None:
            raise LookupError("no input has been set")
        return self._input

    def set_input(self, value: bytes) -> None:
        """Record the latest client input."""
        if len(value) > MAX_INPUT_SIZE:
            raise ValueError(
                f"input size {len(value)} too large (limit {MAX_INPUT_SIZE})"
            )
        self._input = bytes(value)

    def restart(self) -> None:
        """Prepare to run from the top node, keeping client flags."""
        if self.flags:
            self.flags[0] = 0
        self.moves = 0
        self.size_idx = 0
        self._input = b""

    def __str__(self) -> str:
        if self._debug:
            flags = flag_debugger.as_string(self.flags, self.bit_size - Flag.USERSTART)
        else:
            flags = "0x" + bytes(self.flags).hex()
        language = "(default)" if self.language is None else str(self.language)
        return (
            f"moves: {self.moves} idx: {self.size_idx} flags: {flags} "
            f"path: {'/'.join(self.exec_path)} lang: {language}"
        )