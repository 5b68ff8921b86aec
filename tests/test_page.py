import pytest

from vise.menu import Menu, default_browse_config
from vise.page import Page, RenderError
from vise.resource import MemResource
from vise.size import Sizer

XYZZY = (
    "inky pinky\nblinky clyde sue\ntinkywinky dipsy\nlala poo\n"
    "one two three four five six seven\neight nine ten\neleven twelve"
)


class FakeCache:
    def __init__(self):
        self._frames = [{}]

    def push(self):
        self._frames.append({})

    def pop(self):
        self._frames.pop()

    def add(self, key, value, size):
        self._frames[-1][key] = (value, size)

    def _lookup(self, key):
        for frame in reversed(self._frames):
            if key in frame:
                return frame[key]
        raise KeyError(key)

    def get(self, key):
        return self._lookup(key)[0]

    def reserved_size(self, key):
        return self._lookup(key)[1]


def size_resource():
    rs = MemResource()
    rs.add_template("small", "one {{.foo}} two {{.bar}} three {{.baz}}")
    rs.add_template(
        "toobug",
        "Lorem ipsum dolor sit amet, consectetur adipiscing elit. Vivamus in "
        "mattis lorem. Aliquam erat volutpat. Ut vitae metus.",
    )
    rs.add_template("pages", "one {{.foo}} two {{.bar}} three {{.baz}}\n{{.xyzzy}}")
    return rs


def test_state_map_sink():
    ca = FakeCache()
    pg = Page(ca, None)
    ca.push()
    ca.add("foo", "bar", 0)
    ca.push()
    pg.reset()
    ca.add("bar", "xyzzy", 6)
    ca.add("baz", "bazbaz", 18)
    ca.add("xyzzy", "plugh", 0)
    pg.map("foo")
    with pytest.raises(RenderError):
        pg.map("xyzzy")
    pg.map("baz")
    assert pg.val("baz") == "bazbaz"
    ca.push()
    pg.reset()
    pg.map("foo")
    ca.pop()
    pg.reset()
    pg.map("foo")
    assert pg.val("foo") == "bar"


def test_val_not_mapped():
    pg = Page(FakeCache(), None)
    with pytest.raises(KeyError):
        pg.val("foo")


def test_usage_and_sizes():
    ca = FakeCache()
    ca.add("foo", "inky", 10)
    ca.add("bar", "pinky", 10)
    pg = Page(ca, None)
    pg.map("foo")
    pg.map("bar")
    assert pg.usage() == (9, 11)
    assert pg.sizes() == {"foo": 10, "bar": 10}


def test_reset_clears_mappings():
    ca = FakeCache()
    ca.add("foo", "inky", 10)
    pg = Page(ca, None)
    pg.map("foo")
    pg.reset()
    with pytest.raises(KeyError):
        pg.val("foo")


def test_with_error():
    ca = FakeCache()
    rs = MemResource()
    rs.add_template("foo", "bar")
    pg = Page(ca, rs)
    ca.push()
    mn = Menu()
    mn.put("0", "aiee")
    pg = pg.with_menu(mn).with_error(ValueError("my humps"))
    assert pg.render("foo", 0) == "my humps\nbar\n0:aiee"


def test_indexed_render_needs_sizer():
    rs = MemResource()
    rs.add_template("foo", "bar")
    pg = Page(FakeCache(), rs)
    with pytest.raises(RenderError):
        pg.render("foo", 1)


def test_missing_template_key():
    rs = MemResource()
    rs.add_template("foo", "bar {{.nope}}")
    pg = Page(FakeCache(), rs)
    with pytest.raises(RenderError):
        pg.render("foo", 0)


def test_unsupported_template_action():
    rs = MemResource()
    rs.add_template("foo", "bar {{if .x}}")
    pg = Page(FakeCache(), rs)
    with pytest.raises(RenderError):
        pg.render_template("foo", {"x": "1"}, 0)


def test_size_limit():
    ca = FakeCache()
    mn = Menu()
    szr = Sizer(128)
    pg = Page(ca, size_resource()).with_menu(mn).with_sizer(szr)
    ca.push()
    ca.add("foo", "inky", 4)
    ca.add("bar", "pinky", 10)
    ca.add("baz", "blinky", 0)
    pg.map("foo")
    pg.map("bar")
    pg.map("baz")
    mn.put("1", "foo the foo")
    mn.put("2", "go to bar")

    r = pg.render("small", 0)
    assert r == "one inky two pinky three blinky\n1:foo the foo\n2:go to bar"

    with pytest.raises(LookupError):
        pg.render("toobig", 0)
    with pytest.raises(RenderError):
        pg.render("toobug", 0)


def test_size_pages():
    ca = FakeCache()
    mn = Menu()
    szr = Sizer(128)
    pg = Page(ca, size_resource()).with_sizer(szr).with_menu(mn)
    ca.push()
    ca.add("foo", "inky", 4)
    ca.add("bar", "pinky", 10)
    ca.add("baz", "blinky", 20)
    ca.add("xyzzy", XYZZY, 0)
    for key in ("foo", "bar", "baz", "xyzzy"):
        pg.map(key)
    mn.put("1", "foo the foo")
    mn.put("2", "go to bar")

    assert pg.render("pages", 0) == (
        "one inky two pinky three blinky\n"
        "inky pinky\nblinky clyde sue\ntinkywinky dipsy\nlala poo\n"
        "1:foo the foo\n2:go to bar"
    )
    assert pg.render("pages", 1) == (
        "one inky two pinky three blinky\n"
        "one two three four five six seven\neight nine ten\neleven twelve\n"
        "1:foo the foo\n2:go to bar"
    )


def _many_sizes_page(size, menu_items):
    ca = FakeCache()
    mn = Menu()
    szr = Sizer(size)
    pg = Page(ca, size_resource()).with_sizer(szr).with_menu(mn)
    ca.push()
    ca.add("foo", "inky", 10)
    ca.add("bar", "pinky", 10)
    ca.add("baz", "blinky", 10)
    ca.add("xyzzy", XYZZY, 0)
    for key in ("foo", "bar", "baz", "xyzzy"):
        pg.map(key)
    for selector, title in menu_items:
        mn.put(selector, title)
    return pg


@pytest.mark.parametrize("size", range(60, 160))
def test_many_sizes(size):
    r = _many_sizes_page(size, []).render("pages", 0)
    assert r.startswith("one inky two pinky three blinky\ninky pinky")
    assert len(r.encode()) <= size


@pytest.mark.parametrize("size", range(60, 160))
def test_many_sizes_menued(size):
    r = _many_sizes_page(size, [("0", "yay"), ("12", "nay")]).render("pages", 0)
    assert r.endswith("\n0:yay\n12:nay")
    assert len(r.encode()) <= size


def test_menu_collide_sink():
    ca = FakeCache()
    rs = MemResource()
    rs.add_template("foo", "bar")
    szr = Sizer(30)
    pg = Page(ca, rs).with_sizer(szr)
    ca.push()
    ca.add("inky", "pinky", 5)
    ca.add("blinky", "clyde", 0)
    pg.map("inky")

    pg = pg.with_menu(Menu().with_sink())
    assert pg.render("foo", 0).startswith("bar")

    pg = pg.with_menu(Menu().with_sink())
    pg.map("blinky")
    with pytest.raises(RenderError):
        pg.render("foo", 0)


def _sink_menu():
    mn = Menu().with_sink().with_browse_config(default_browse_config())
    for selector, title in (
        ("0", "inky"),
        ("1", "pinky"),
        ("22", "blinky"),
        ("3", "clyde"),
        ("44", "tinkywinky"),
    ):
        mn.put(selector, title)
    return mn


def test_menu_sink():
    ca = FakeCache()
    rs = MemResource()
    rs.add_template("foo", "bar {{.baz}}")
    szr = Sizer(45)

    pg = Page(ca, rs).with_sizer(szr).with_menu(_sink_menu())
    ca.push()
    ca.add("baz", "xyzzy", 5)
    pg.map("baz")
    assert pg.render("foo", 0) == "bar xyzzy\n0:inky\n1:pinky\n22:blinky\n11:next"

    pg = Page(ca, rs).with_sizer(szr).with_menu(_sink_menu())
    ca.push()
    ca.add("baz", "xyzzy", 5)
    pg.map("baz")
    assert pg.render("foo", 1) == "bar xyzzy\n3:clyde\n44:tinkywinky\n22:previous"