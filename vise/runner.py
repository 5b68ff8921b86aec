"""Bytecode execution against state, resources, cache and page rendering."""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any, Callable, Optional, Protocol

from vise.bytecode import (
    Opcode,
    new_line,
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
from vise.menu import BrowseError, Menu
from vise.navigation import CATCH_SYM, InvalidInputError, apply_target
from vise.page import Page
from vise.resource import MenuResource
from vise.size import Sizer
from vise.state import Flag, State, StateIndexError, is_writeable_flag

logger = logging.getLogger(__name__)


class ContentCache(Protocol):
    def get(self, key: str) -> str: ...

    def add(self, key: str, value: str, size: int) -> None: ...

    def update(self, key: str, value: str) -> None: ...

    def reserved_size(self, key: str) -> int: ...

    def push(self) -> None: ...

    def pop(self) -> None: ...

    def reset(self) -> None: ...


class ExternalCodeError(Exception):
    """Failure of an external content function for a symbol (LOAD, RELOAD)."""

    def __init__(self, sym: str, error: BaseException, code: int = 0) -> None:
        super().__init__(f"error {sym}:{code}")
        self.sym = sym
        self.error = error
        self.code = code
        logger.error("external code error: %s", error)


def _catch_line() -> bytes:
    return new_line(None, Opcode.MOVE, [CATCH_SYM])


class Vm:
    """Executes bytecode, updating the state and the page to be rendered."""

    def __init__(
        self,
        state: State,
        resource: MenuResource,
        cache: ContentCache,
        sizer: Optional[Sizer] = None,
    ) -> None:
        self.state = state
        self.resource = resource
        self.cache = cache
        self.sizer = sizer
        self.page = Page(cache, resource)
        self.menu = Menu()
        self.reset()
        logger.info("vm created with state %s", state)

    def reset(self) -> None:
        """Start a fresh menu and clear the page for rendering a new node."""
        self.menu = Menu()
        self.page.reset()
        self.page.with_menu(self.menu)
        if self.sizer is not None:
            self.page.with_sizer(self.sizer)

    def run(self, code: bytes) -> bytes:
        """Execute instructions until halted or exhausted; return the remaining code.

        On error the exception propagates; state changes are not rolled back.
        """
        handlers: dict[Opcode, Callable[[bytes, Any], bytes]] = {
            Opcode.CATCH: self._run_catch,
            Opcode.CROAK: self._run_croak,
            Opcode.LOAD: self._run_load,
            Opcode.RELOAD: self._run_reload,
            Opcode.MAP: self._run_map,
            Opcode.MOVE: self._run_move,
            Opcode.INCMP: self._run_in_cmp,
            Opcode.MSINK: self._run_msink,
            Opcode.MOUT: self._run_mout,
            Opcode.MNEXT: self._run_mnext,
            Opcode.MPREV: self._run_mprev,
        }
        st = self.state
        language: Any = None
        b = bytes(code)
        while True:
            if st.match_flag(Flag.TERMINATE, True):
                logger.info("terminate set, bailing")
                return b""

            if st.reset_flag(Flag.LANG) and st.language is not None:
                language = st.language

            if st.reset_flag(Flag.WAIT):
                st.reset_flag(Flag.INMATCH)
                self.page.reset()
                self.menu.reset()

            st.set_flag(Flag.DIRTY)
            op, b = parse_op(b)
            logger.debug("execute opcode %s, state %s", op.name, st)

            if op == Opcode.HALT:
                b = parse_halt(b)
                logger.debug("found HALT, stopping")
                st.set_flag(Flag.WAIT)
                return b

            try:
                handler = handlers.get(op)
                if handler is None:
                    raise RuntimeError(f"Unhandled state: {int(op)}")
                b = handler(b, language)
            except Exception as err:
                b = self._err_check(err)

            if not b:
                b = self._dead_check()
            if not b:
                return b""

    def _err_check(self, err: Exception) -> bytes:
        self.page.with_error(err)
        if not self.state.match_flag(Flag.LOADFAIL, True):
            raise err
        return _catch_line()

    def _dead_check(self) -> bytes:
        st = self.state
        if st.match_flag(Flag.READIN, False):
            logger.debug("not processing input, setting terminate")
            st.set_flag(Flag.TERMINATE)
            return b""
        if st.match_flag(Flag.TERMINATE, True):
            return b""

        location, _ = st.where()
        if location == "":
            raise RuntimeError("dead runner with no current location")
        if location == CATCH_SYM:
            raise RuntimeError(f"unexpected catch endless loop detected for state: {st}")

        try:
            input_value = st.get_input()
        except LookupError:
            input_value = b"(no input)"
        self.page.with_error(InvalidInputError(input_value.decode("utf-8", errors="replace")))
        return _catch_line()

    def _run_map(self, b: bytes, language: Any) -> bytes:
        sym, b = parse_map(b)
        self.page.map(sym)
        return b

    def _run_catch(self, b: bytes, language: Any) -> bytes:
        sym, sig, mode, b = parse_catch(b)
        if self.state.match_flag(sig, mode):
            actual, _ = apply_target(sym, self.state, self.cache)
            logger.info("catch: flag %d sym %s target %s", sig, sym, actual)
            b = self.resource.get_code(actual)
        return b

    def _run_croak(self, b: bytes, language: Any) -> bytes:
        sig, mode, b = parse_croak(b)
        if self.state.match_flag(sig, mode):
            logger.info("croak: purging and moving to top, signal %d", sig)
            self.reset()
            self.cache.reset()
        return b""

    def _run_load(self, b: bytes, language: Any) -> bytes:
        sym, size, b = parse_load(b)
        try:
            self.cache.get(sym)
        except LookupError:
            pass
        else:
            logger.debug("skip already loaded symbol %s", sym)
            return b
        content = self._refresh(sym, language)
        self.cache.add(sym, content, size)
        return b

    def _run_reload(self, b: bytes, language: Any) -> bytes:
        sym, b = parse_reload(b)
        content = self._refresh(sym, language)
        self.cache.update(sym, content)
        self.page.map(sym)
        return b

    def _run_move(self, b: bytes, language: Any) -> bytes:
        sym, b = parse_move(b)
        sym, _ = apply_target(sym, self.state, self.cache)
        code = self.resource.get_code(sym)
        logger.debug("loaded code for %s", sym)
        b = b + bytes(code)
        self.reset()
        return b

    def _run_in_cmp(self, b: bytes, language: Any) -> bytes:
        st = self.state
        sym, target, b = parse_in_cmp(b)

        reading = st.get_flag(Flag.READIN)
        have = st.get_flag(Flag.INMATCH)
        if have:
            if reading:
                logger.debug("ignoring input %s, already have match", sym)
                return b
        else:
            st.set_flag(Flag.READIN)

        input_value = st.get_input()
        if not (not have and target == "*"):
            if target.encode("utf-8") != input_value:
                return b
            logger.info("input match %r, next %s", input_value, sym)

        st.set_flag(Flag.INMATCH)
        st.reset_flag(Flag.READIN)

        try:
            new_sym, _ = apply_target(sym, st, self.cache)
        except StateIndexError:
            st.set_flag(Flag.READIN)
            return b

        self.reset()
        code = self.resource.get_code(new_sym)
        logger.debug("loaded additional code for %s", new_sym)
        return b + bytes(code)

    def _run_msink(self, b: bytes, language: Any) -> bytes:
        b = parse_msink(b)
        config = self.menu.browse
        self.menu.with_sink().with_browse_config(config).with_pages()
        return b

    def _run_mout(self, b: bytes, language: Any) -> bytes:
        title, choice, b = parse_mout(b)
        self.menu.put(choice, title)
        return b

    def _run_mnext(self, b: bytes, language: Any) -> bytes:
        display, selector, b = parse_mnext(b)
        config = replace(
            self.menu.browse,
            next_selector=selector,
            next_title=display,
            next_available=True,
        )
        self.menu.with_browse_config(config)
        return b

    def _run_mprev(self, b: bytes, language: Any) -> bytes:
        display, selector, b = parse_mprev(b)
        config = replace(
            self.menu.browse,
            previous_selector=selector,
            previous_title=display,
            previous_available=True,
        )
        self.menu.with_browse_config(config)
        return b

    def render(self) -> str:
        """Render the current node; empty if nothing changed since the last render.

        Browsing beyond the rendered pages moves to the catch node instead.
        """
        if not self.state.reset_flag(Flag.DIRTY):
            return ""
        language = self.state.language
        sym, idx = self.state.where()
        try:
            return self.page.render(sym, idx, language)
        except BrowseError:
            self.reset()
            try:
                self.run(_catch_line())
            except Exception as err:
                logger.warning("moving to catch after browse error failed: %s", err)
            sym, idx = self.state.where()
            return self.page.render(sym, idx, language)

    def _refresh(self, key: str, language: Any) -> str:
        st = self.state
        fn = self.resource.func_for(key)
        if fn is None:
            raise LookupError(f"no retrieve function for external symbol {key}")
        try:
            input_value = st.get_input()
        except LookupError:
            input_value = b""
        try:
            result = fn(key, input_value, language)
        except Exception as err:
            st.set_flag(Flag.LOADFAIL)
            raise ExternalCodeError(key, err) from err

        for flag in result.flag_set:
            if is_writeable_flag(flag):
                st.set_flag(flag)
        for flag in result.flag_reset:
            if is_writeable_flag(flag):
                st.reset_flag(flag)

        if st.match_flag(Flag.LANG, True):
            st.language = result.content or None
            logger.info("language set: %s", st.language)

        return result.content