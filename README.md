# vise

`vise` is a small virtual machine for menu-driven text interfaces whose
output has to fit within a fixed byte size. Nodes are described by
bytecode, templates and menu entries. The machine moves between nodes in
response to user input and loads content from external functions. It
renders each screen into pages that stay within the configured size.

## Installing

```
pip install .
```

To run the test suite:

```
pip install ".[test]"
pytest
```

## Modules

- `vise.state`: `State` holds the session's navigation stack, page index,
  pending bytecode, last input (at most 255 bytes) and bit flags. The
  first eight flags are reserved; `Flag` names them. `FlagDebugger` and
  the shared `flag_debugger` list set flags by name. `is_writeable_flag`
  tells which flags external functions may change.
- `vise.resource`: `Result` is what a content function returns (content,
  status, flags to set and reset). The resources supply templates,
  bytecode, menu titles and content functions for symbols:
  - `MemResource` keeps everything in memory.
  - `FsResource` reads from a directory. Templates come from `<sym>`,
    menu titles from `<sym>_menu`, bytecode from `<sym>.bin` and content
    from `<sym>.txt`. Each of these is tried first with a `_<language>`
    suffix where one applies.
  - `MenuResource` is the base, built from getter callables.
- `vise.menu`: `Menu` with `BrowseConfig` for next and previous page
  options. `default_browse_config()` gives `11:next` and `22:previous`.
  `BrowseError` is raised when a page index is out of range.
- `vise.size`: `Sizer` enforces the output size limit and keeps page
  cursors into the sink content. It also has the helpers `bookmark`,
  `is_last`, `paginate` and `explode`.
- `vise.page`: `Page` renders a symbol's template with mapped content and
  the menu. It splits the one unbounded "sink" value, or the menu itself
  after `MSINK`, across pages. Templates support only `{{.name}}` field
  substitution. Any other action, a missing key or an oversized result
  raises `RenderError`.
- `vise.bytecode`: the `Opcode` set, `new_line` for assembling
  instructions and the `parse_*` functions for reading them back.
  Malformed code raises `BytecodeError`.
- `vise.disasm`: `parse_all` verifies bytecode and can write assembly
  lines to a text stream. `to_string` returns them as a string.
- `vise.navigation`: `valid_input` and `valid_sym` check input and
  symbols. `check_target` and `apply_target` handle navigation targets:
  `_` goes up, `^` goes to the top, `>` is the next page, `<` is the
  previous page, `.` stays, and anything else moves down to that symbol.
- `vise.runner`: `Vm` executes bytecode against a state, a resource and a
  content cache, and renders the current screen.

## Examples

Assembling and listing bytecode:

```python
from vise.bytecode import Opcode, new_line
from vise.disasm import to_string

code = new_line(None, Opcode.MOUT, ["one", "0"], None, None)
code = new_line(code, Opcode.HALT, None, None, None)
print(to_string(code), end="")
# MOUT one 0
# HALT
```

Rendering a paged menu:

```python
from vise.menu import Menu, default_browse_config

menu = Menu().with_page_count(3).with_browse_config(default_browse_config())
menu.put("1", "foo")
menu.put("2", "bar")
print(menu.render(1))
# 1:foo
# 2:bar
# 11:next
# 22:previous
```

Running a node. The cache is supplied by the caller, as described below:

```python
from vise.bytecode import Opcode, new_line
from vise.resource import MemResource, Result
from vise.runner import Vm
from vise.state import State


class Cache:
    def __init__(self):
        self.values, self.sizes = {}, {}

    def get(self, key):
        return self.values[key]          # KeyError is a LookupError

    def add(self, key, value, size):
        self.values[key], self.sizes[key] = value, size

    def update(self, key, value):
        self.values[key] = value

    def reserved_size(self, key):
        return self.sizes[key]

    def push(self): ...
    def pop(self): ...
    def reset(self): ...


rs = MemResource()
rs.add_template("root", "hello {{.name}}")
rs.add_entry_func("name", lambda sym, input, language: Result(content="world"))
code = new_line(None, Opcode.LOAD, ["name"], b"\x0a")
code = new_line(code, Opcode.MAP, ["name"])
code = new_line(code, Opcode.HALT)
rs.add_bytecode("root", code)

vm = Vm(State(0), rs, Cache())
vm.run(new_line(None, Opcode.MOVE, ["root"]))
print(vm.render())   # hello world
```

Content functions are called as `fn(sym, input, language)` and return a
`Result`.

## Errors

`Vm.run` raises errors from instructions, apart from one case. If an
external content function fails, the failure is wrapped as
`ExternalCodeError`. Its message, `error <sym>:<code>`, goes at the top of
the page and execution moves to the `_catch` node. When bytecode runs out
while input is unmatched, the page gets an `InvalidInputError` message and
execution moves to `_catch`. `Vm.render` handles a `BrowseError` in the
same way, by moving to `_catch`.

## What this package does not include

- **Content cache.** There is no cache implementation. `Page` and `Vm`
  take any object with `get`, `add`, `update`, `reserved_size`, `push`,
  `pop` and `reset`. `get` must raise `LookupError` for missing keys.
- **Language handling.** Languages are not validated. A language is
  passed as a code string, or as an object with a `code` attribute, and
  is only used to pick per-language resource files.
- **Tools.** There is no command-line program, no interactive session and
  no assembler from text; bytecode is built with `new_line`.