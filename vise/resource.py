"""Resolution of templates, bytecode, menu titles and external content for symbols."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Optional

logger = logging.getLogger(__name__)


@dataclass
class Result:
    """Outcome of an external content function."""

    content: str = ""
    status: int = 0
    flag_set: list[int] = field(default_factory=list)
    flag_reset: list[int] = field(default_factory=list)


EntryFunc = Callable[[str, bytes, Any], Result]
CodeGetter = Callable[[str], bytes]
TemplateGetter = Callable[[str, Any], str]
MenuGetter = Callable[[str, Any], str]
EntryFuncGetter = Callable[[str], EntryFunc]


def _language_code(language: Any) -> Optional[str]:
    if language is None:
        return None
    if isinstance(language, str):
        return language or None
    return language.code


class MenuResource:
    """Resource whose lookups are delegated to the given getter callables."""

    def __init__(
        self,
        code_getter: Optional[CodeGetter] = None,
        template_getter: Optional[TemplateGetter] = None,
        menu_getter: Optional[MenuGetter] = None,
        entry_func_getter: Optional[EntryFuncGetter] = None,
    ) -> None:
        self._code_getter = code_getter
        self._template_getter = template_getter
        self._menu_getter = menu_getter
        self._entry_func_getter = entry_func_getter

    @staticmethod
    def _require(getter: Optional[Callable[..., Any]], what: str) -> Callable[..., Any]:
        if getter is None:
            raise LookupError(f"no {what} getter defined")
        return getter

    def get_template(self, sym: str, language: Any = None) -> str:
        """Template for the given symbol."""
        return self._require(self._template_getter, "template")(sym, language)

    def get_code(self, sym: str) -> bytes:
        """Bytecode for the given symbol."""
        return self._require(self._code_getter, "code")(sym)

    def get_menu(self, sym: str, language: Any = None) -> str:
        """Display title for the given menu symbol."""
        return self._require(self._menu_getter, "menu")(sym, language)

    def func_for(self, sym: str) -> EntryFunc:
        """Content function for the given symbol."""
        return self._require(self._entry_func_getter, "entry function")(sym)


class MemResource(MenuResource):
    """Resource held entirely in memory."""

    def __init__(self) -> None:
        self._templates: dict[str, str] = {}
        self._bytecodes: dict[str, bytes] = {}
        self._menus: dict[str, str] = {}
        self._funcs: dict[str, EntryFunc] = {}
        super().__init__(
            code_getter=self._get_code,
            template_getter=self._get_template,
            menu_getter=self._get_menu,
            entry_func_getter=self._get_func,
        )

    def _get_template(self, sym: str, language: Any = None) -> str:
        try:
            return self._templates[sym]
        except KeyError:
            raise LookupError(f"unknown template symbol: {sym}") from None

    def _get_code(self, sym: str) -> bytes:
        try:
            return self._bytecodes[sym]
        except KeyError:
            raise LookupError(f"unknown bytecode: {sym}") from None

    def _get_menu(self, sym: str, language: Any = None) -> str:
        return self._menus.get(sym, sym)

    def _get_func(self, sym: str) -> EntryFunc:
        try:
            return self._funcs[sym]
        except KeyError:
            raise LookupError(f"unknown entry func: {sym}") from None

    def add_template(self, sym: str, tpl: str) -> None:
        """Register a template for a symbol."""
        logger.debug("mem resource added template %s length %d", sym, len(tpl))
        self._templates[sym] = tpl

    def add_entry_func(self, sym: str, fn: EntryFunc) -> None:
        """Register a content function for a symbol."""
        self._funcs[sym] = fn

    def add_bytecode(self, sym: str, code: bytes) -> None:
        """Register bytecode for a symbol."""
        self._bytecodes[sym] = bytes(code)


class FsResource(MenuResource):
    """Resource read from files in a directory, with optional per-language variants."""

    def __init__(self, path: str | os.PathLike[str]) -> None:
        super().__init__()
        self.path = os.path.abspath(path)
        self._fns: dict[str, EntryFunc] = {}

    def _read(self, name: str, localized: str) -> str:
        try:
            data = Path(self.path, localized).read_bytes()
        except FileNotFoundError:
            if localized == name:
                raise
            data = Path(self.path, name).read_bytes()
        return data.decode("utf-8").strip()

    @staticmethod
    def _localized(name: str, language: Any) -> str:
        code = _language_code(language)
        return f"{name}_{code}" if code else name

    def get_template(self, sym: str, language: Any = None) -> str:
        """Template from the file named by the symbol, language variant first."""
        try:
            return self._read(sym, self._localized(sym, language))
        except OSError as err:
            raise LookupError(f"failed getting template for sym '{sym}': {err}") from err

    def get_code(self, sym: str) -> bytes:
        """Bytecode from the symbol's .bin file."""
        return Path(self.path, sym + ".bin").read_bytes()

    def get_menu(self, sym: str, language: Any = None) -> str:
        """Menu title from the symbol's _menu file, or the symbol itself if absent."""
        name = sym + "_menu"
        try:
            return self._read(name, self._localized(name, language))
        except FileNotFoundError:
            return sym
        except OSError as err:
            raise LookupError(f"failed getting template for sym '{sym}': {err}") from err

    def add_local_func(self, sym: str, fn: EntryFunc) -> None:
        """Register a content function that takes precedence over files."""
        self._fns[sym] = fn

    def func_for(self, sym: str) -> EntryFunc:
        """Registered function for the symbol, or one reading its .txt file."""
        fn = self._fns.get(sym)
        if fn is not None:
            return fn
        try:
            self._get_func(sym, b"", None)
        except LookupError:
            raise LookupError(f"unknown sym: {sym}") from None
        return self._get_func

    def _get_func(self, sym: str, input: bytes, language: Any = None) -> Result:
        name = sym + ".txt"
        localized = self._localized(sym, language) + ".txt"
        try:
            content = self._read(name, localized)
        except OSError as err:
            raise LookupError(f"failed getting data for sym '{sym}': {err}") from err
        return Result(content=content)

    def __str__(self) -> str:
        return f"fs resource at path: {self.path}"