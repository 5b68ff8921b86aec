import pytest

from vise.bytecode import (
    BytecodeError,
    Opcode,
    new_line,
    parse_catch,
    parse_croak,
    parse_halt,
    parse_in_cmp,
    parse_load,
    parse_map,
    parse_mout,
    parse_move,
    parse_msink,
    parse_op,
    parse_reload,
)


def _args(code):
    op, rest = parse_op(code)
    return op, rest


def test_parse_no_arg():
    op, rest = _args(new_line(None, Opcode.HALT))
    assert op == Opcode.HALT
    assert parse_halt(rest) == b""


def test_parse_msink_no_arg():
    op, rest = _args(new_line(None, Opcode.MSINK))
    assert op == Opcode.MSINK
    assert parse_msink(rest) == b""


def test_parse_sym():
    _, rest = _args(new_line(None, Opcode.MAP, ["baz"]))
    assert parse_map(rest) == ("baz", b"")

    _, rest = _args(new_line(None, Opcode.RELOAD, ["xyzzy"]))
    assert parse_reload(rest) == ("xyzzy", b"")

    _, rest = _args(new_line(None, Opcode.MOVE, ["plugh"]))
    assert parse_move(rest) == ("plugh", b"")


def test_parse_two_sym():
    _, rest = _args(new_line(None, Opcode.INCMP, ["foo", "bar"]))
    assert parse_in_cmp(rest) == ("foo", "bar", b"")


def test_parse_mout():
    _, rest = _args(new_line(None, Opcode.MOUT, ["1", "foo"]))
    assert parse_mout(rest) == ("1", "foo", b"")


def test_parse_sig():
    _, rest = _args(new_line(None, Opcode.CROAK, None, bytes([0x0B, 0x13]), [0x04]))
    n, m, rest = parse_croak(rest)
    assert n == 2835
    assert m is True
    assert rest == b""


def test_parse_sym_sig():
    _, rest = _args(new_line(None, Opcode.CATCH, ["baz"], bytes([0x0A, 0x13]), [0x01]))
    sym, n, m, rest = parse_catch(rest)
    assert sym == "baz"
    assert n == 2579
    assert m is True
    assert rest == b""


def test_parse_sym_and_len():
    _, rest = _args(new_line(None, Opcode.LOAD, ["foo"], bytes([0x2A])))
    sym, n, rest = parse_load(rest)
    assert (sym, n) == ("foo", 42)

    _, rest = _args(new_line(None, Opcode.LOAD, ["bar"], bytes([0x02, 0x9A])))
    assert parse_load(rest) == ("bar", 666, b"")

    _, rest = _args(new_line(None, Opcode.LOAD, ["baz"], bytes([0x00])))
    assert parse_load(rest) == ("baz", 0, b"")


def test_load_with_zero_length_numarg():
    _, rest = _args(new_line(None, Opcode.LOAD, ["dyn"], None, [0]))
    assert parse_load(rest) == ("dyn", 0, b"")


def test_new_line_appends():
    code = new_line(None, Opcode.HALT)
    code = new_line(code, Opcode.MAP, ["ab"])
    assert code == b"\x00\x07\x00\x05\x02ab"


def test_parse_op_too_short():
    with pytest.raises(BytecodeError):
        parse_op(b"\x00")


def test_parse_op_invalid():
    with pytest.raises(BytecodeError):
        parse_op(b"\x01\x02")


def test_zero_length_argument():
    with pytest.raises(BytecodeError):
        parse_map(b"\x00")


def test_truncated_argument():
    with pytest.raises(BytecodeError):
        parse_map(b"\x05ab")


def test_catch_missing_mode():
    _, rest = _args(new_line(None, Opcode.CATCH, ["baz"], bytes([0x01])))
    with pytest.raises(BytecodeError):
        parse_catch(rest)