"""Verification and assembly-style listing of bytecode."""

from __future__ import annotations

import io
import logging
from typing import Optional, TextIO

from vise.bytecode import (
    Opcode,
    parse_catch,
    parse_croak,
    parse_halt,
    parse_in_cmp,
    parse_load,
    parse_map,
    parse_mnext,
    parse_mout,
    parse_move,
    parse_mprev,
    parse_msink,
    parse_op,
    parse_reload,
)

logger = logging.getLogger(__name__)


def _format(op: Opcode, code: bytes) -> tuple[str, bytes]:
    name = op.name
    if op == Opcode.CATCH:
        sym, sig, mode, code = parse_catch(code)
        return f"{name} {sym} {sig} {int(mode)}", code
    if op == Opcode.CROAK:
        sig, mode, code = parse_croak(code)
        return f"{name} {sig} {int(mode)}", code
    if op == Opcode.LOAD:
        sym, size, code = parse_load(code)
        return f"{name} {sym} {size}", code
    if op in (Opcode.RELOAD, Opcode.MAP, Opcode.MOVE):
        parser = {Opcode.RELOAD: parse_reload, Opcode.MAP: parse_map, Opcode.MOVE: parse_move}[op]
        sym, code = parser(code)
        return f"{name} {sym}", code
    if op in (Opcode.INCMP, Opcode.MOUT, Opcode.MNEXT, Opcode.MPREV):
        parser = {
            Opcode.INCMP: parse_in_cmp,
            Opcode.MOUT: parse_mout,
            Opcode.MNEXT: parse_mnext,
            Opcode.MPREV: parse_mprev,
        }[op]
        one, two, code = parser(code)
        return f"{name} {one} {two}", code
    if op == Opcode.HALT:
        return name, parse_halt(code)
    if op == Opcode.MSINK:
        return name, parse_msink(code)
    return name, code


def parse_all(code: bytes, writer: Optional[TextIO] = None) -> int:
    """Verify every instruction; write each as an assembly line if a writer is given.

    Returns the number of characters written.
    """
    code = bytes(code)
    written = 0
    while True:
        op, code = parse_op(code)
        line, code = _format(op, code)
        if writer is not None:
            text = line + "\n"
            writer.write(text)
            written += len(text)
            logger.debug("instruction debug write %s", line)
        if not code:
            return written


def to_string(code: bytes) -> str:
    """Assembly listing of the bytecode, one instruction per line."""
    buf = io.StringIO()
    parse_all(code, buf)
    return buf.getvalue()