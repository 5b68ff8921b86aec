"""Bytecode instruction encoding and decoding."""

from __future__ import annotations

from enum import IntEnum
from typing import Iterable, Optional, Union

VERSION = 0


class Opcode(IntEnum):
    """Instruction opcodes."""

    NOOP = 0
    CATCH = 1
    CROAK = 2
    LOAD = 3
    RELOAD = 4
    MAP = 5
    MOVE = 6
    HALT = 7
    INCMP = 8
    MSINK = 9
    MOUT = 10
    MNEXT = 11
    MPREV = 12


_MAX = max(Opcode)


class BytecodeError(ValueError):
    """Raised when bytecode is malformed."""


def _encode_arg(arg: Union[str, bytes]) -> bytes:
    raw = arg.encode("utf-8") if isinstance(arg, str) else bytes(arg)
    if len(raw) > 0xFF:
        raise BytecodeError(f"argument too long: {len(raw)} bytes")
    return bytes([len(raw)]) + raw


def new_line(
    instructions: Optional[bytes],
    opcode: int,
    strargs: Optional[Iterable[Union[str, bytes]]] = None,
    byteargs: Optional[bytes] = None,
    numargs: Optional[Iterable[int]] = None,
) -> bytes:
    """Append one instruction to the given bytecode and return the result."""
    line = bytearray(int(opcode).to_bytes(2, "big"))
    for arg in strargs or ():
        line += _encode_arg(arg)
    if byteargs is not None:
        line += _encode_arg(bytes(byteargs))
    if numargs is not None:
        line += bytes(numargs)
    return bytes(instructions or b"") + bytes(line)


def _op_split(code: bytes) -> tuple[Opcode, bytes]:
    if len(code) < 2:
        raise BytecodeError(f"input size {len(code)} too short for opcode")
    op = int.from_bytes(code[:2], "big")
    if op > _MAX:
        raise BytecodeError(f"invalid opcode {op}")
    return Opcode(op), bytes(code[2:])


def _int_split(code: bytes) -> tuple[int, bytes]:
    if not code:
        raise BytecodeError("integer argument is empty")
    length = code[0]
    if length > 4:
        raise BytecodeError(f"integer argument length {length} exceeds 4 bytes")
    if len(code) < 1 + length:
        raise BytecodeError(
            f"corrupt instruction, len {len(code)} less than integer length: {length}"
        )
    return int.from_bytes(code[1 : 1 + length], "big"), bytes(code[1 + length :])


def _instruction_split(code: bytes) -> tuple[str, bytes]:
    if not code:
        raise BytecodeError("argument is empty")
    size = code[0]
    if size == 0:
        raise BytecodeError("zero-length argument")
    if len(code) < 1 + size:
        raise BytecodeError(
            f"corrupt instruction, len {len(code)} less than symbol length: {size}"
        )
    try:
        value = bytes(code[1 : 1 + size]).decode("utf-8")
    except UnicodeDecodeError as err:
        raise BytecodeError(f"argument is not valid text: {err}") from err
    return value, bytes(code[1 + size :])


def _parse_sym(code: bytes) -> tuple[str, bytes]:
    return _instruction_split(code)


def _parse_two_sym(code: bytes) -> tuple[str, str, bytes]:
    one, code = _instruction_split(code)
    two, code = _instruction_split(code)
    return one, two, code


def _parse_match_mode(code: bytes) -> tuple[bool, bytes]:
    if not code:
        raise BytecodeError("instruction too short")
    return code[0] > 0, bytes(code[1:])


def parse_op(code: bytes) -> tuple[Opcode, bytes]:
    """Split the opcode from the start of the bytecode."""
    return _op_split(bytes(code))


def parse_load(code: bytes) -> tuple[str, int, bytes]:
    """Arguments of LOAD: symbol and size."""
    sym, code = _instruction_split(code)
    size, code = _int_split(code)
    return sym, size, code


def parse_reload(code: bytes) -> tuple[str, bytes]:
    """Argument of RELOAD: symbol."""
    return _parse_sym(code)


def parse_map(code: bytes) -> tuple[str, bytes]:
    """Argument of MAP: symbol."""
    return _parse_sym(code)


def parse_move(code: bytes) -> tuple[str, bytes]:
    """Argument of MOVE: symbol."""
    return _parse_sym(code)


def parse_halt(code: bytes) -> bytes:
    """HALT has no arguments."""
    return bytes(code)


def parse_catch(code: bytes) -> tuple[str, int, bool, bytes]:
    """Arguments of CATCH: symbol, flag index and match mode."""
    sym, code = _instruction_split(code)
    sig, code = _int_split(code)
    mode, code = _parse_match_mode(code)
    return sym, sig, mode, code


def parse_croak(code: bytes) -> tuple[int, bool, bytes]:
    """Arguments of CROAK: flag index and match mode."""
    sig, code = _int_split(code)
    mode, code = _parse_match_mode(code)
    return sig, mode, code


def parse_in_cmp(code: bytes) -> tuple[str, str, bytes]:
    """Arguments of INCMP: target symbol and input to match."""
    return _parse_two_sym(code)


def parse_mprev(code: bytes) -> tuple[str, str, bytes]:
    """Arguments of MPREV: two symbols."""
    return _parse_two_sym(code)


def parse_mnext(code: bytes) -> tuple[str, str, bytes]:
    """Arguments of MNEXT: two symbols."""
    return _parse_two_sym(code)


def parse_msink(code: bytes) -> bytes:
    """MSINK has no arguments."""
    return bytes(code)


def parse_mout(code: bytes) -> tuple[str, str, bytes]:
    """Arguments of MOUT: two symbols."""
    return _parse_two_sym(code)