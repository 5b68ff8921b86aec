from dataclasses import dataclass

import pytest

from vise.resource import FsResource, MemResource, MenuResource, Result


@dataclass
class Language:
    code: str


def entry(sym, input, language):
    return Result(content=f"{input.decode()}bar")


def get(sym, input, language):
    values = {"foo": "inky", "bar": "pinky", "baz": "blinky"}
    if sym not in values:
        raise LookupError(f"unknown sym: {sym}")
    return Result(content=values[sym])


def get_xyzzy(sym, input, language):
    return Result(
        content="inky pinky\nblinky clyde sue\ntinkywinky dipsy\nlala poo\n"
        "one two three four five six seven\neight nine ten\neleven twelve"
    )


def make_size_resource():
    rs = MemResource()
    rs.add_template("small", "one {{.foo}} two {{.bar}} three {{.baz}}")
    rs.add_template("pages", "one {{.foo}} two {{.bar}} three {{.baz}}\n{{.xyzzy}}")
    for sym in ("foo", "bar", "baz"):
        rs.add_entry_func(sym, get)
    rs.add_entry_func("xyzzy", get_xyzzy)
    return rs


def test_mem_resource_template():
    rs = MemResource()
    rs.add_template("foo", "bar")
    assert rs.get_template("foo") == "bar"
    with pytest.raises(LookupError):
        rs.get_template("bar")


def test_mem_resource_code():
    rs = MemResource()
    rs.add_bytecode("foo", b"bar")
    assert rs.get_code("foo") == b"bar"
    with pytest.raises(LookupError):
        rs.get_code("bar")


def test_mem_resource_entry():
    rs = MemResource()
    rs.add_entry_func("foo", entry)
    fn = rs.func_for("foo")
    assert fn("foo", b"xyzzy", None).content == "xyzzybar"
    with pytest.raises(LookupError):
        rs.func_for("bar")


def test_mem_resource_menu_defaults_to_symbol():
    rs = MemResource()
    assert rs.get_menu("next") == "next"


def test_size_resource_funcs():
    rs = make_size_resource()
    assert rs.func_for("bar")("bar", b"", None).content == "pinky"
    assert rs.func_for("xyzzy")("xyzzy", b"", None).content.startswith("inky pinky\n")
    assert rs.get_template("small") == "one {{.foo}} two {{.bar}} three {{.baz}}"


def test_menu_resource_missing_getter():
    rs = MenuResource(code_getter=lambda sym: sym.encode())
    assert rs.get_code("abc") == b"abc"
    with pytest.raises(LookupError):
        rs.get_template("abc")


def test_resource_language(tmp_path):
    language = Language("nor")
    fp = tmp_path / "foo"
    fp.write_text("one two three")

    rs = FsResource(tmp_path)
    assert rs.get_template("foo") == "one two three"
    assert rs.get_template("foo", language) == "one two three"

    (tmp_path / "foo_nor").write_text("en to tre")
    assert rs.get_template("foo", language) == "en to tre"
    assert rs.get_template("foo", "nor") == "en to tre"
    assert rs.get_template("foo") == "one two three"


def test_resource_template_missing(tmp_path):
    rs = FsResource(tmp_path)
    with pytest.raises(LookupError):
        rs.get_template("nope")


def test_resource_menu_language(tmp_path):
    language = Language("nor")
    rs = FsResource(tmp_path)
    assert rs.get_menu("foo") == "foo"

    (tmp_path / "foo_menu").write_text("foo bar")
    assert rs.get_menu("foo") == "foo bar"
    assert rs.get_menu("foo", language) == "foo bar"

    (tmp_path / "foo_menu_nor").write_text("baz bar")
    assert rs.get_menu("foo", language) == "baz bar"


def test_fs_code(tmp_path):
    (tmp_path / "root.bin").write_bytes(b"\x00\x07")
    rs = FsResource(tmp_path)
    assert rs.get_code("root") == b"\x00\x07"
    with pytest.raises(FileNotFoundError):
        rs.get_code("other")


def test_fs_func_for(tmp_path):
    (tmp_path / "foo.txt").write_text("  inky\n")
    (tmp_path / "foo_nor.txt").write_text("blekksprut")
    rs = FsResource(tmp_path)
    fn = rs.func_for("foo")
    assert fn("foo", b"", None).content == "inky"
    assert fn("foo", b"", Language("nor")).content == "blekksprut"
    with pytest.raises(LookupError, match="unknown sym: bar"):
        rs.func_for("bar")


def test_fs_local_func(tmp_path):
    rs = FsResource(tmp_path)
    rs.add_local_func("bar", entry)
    assert rs.func_for("bar")("bar", b"x", None).content == "xbar"


def test_fs_str(tmp_path):
    rs = FsResource(tmp_path)
    assert str(rs) == f"fs resource at path: {tmp_path.resolve()}" or str(rs) == f"fs resource at path: {tmp_path}"