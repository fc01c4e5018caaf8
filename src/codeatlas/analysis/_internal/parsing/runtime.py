"""Grammar runtime: lazily loaded, process-wide tree-sitter grammars.

The runtime hands out ``ParserHandle`` objects by language identifier.
Loading rules:

- The runtime itself initializes exactly once per process (one-shot latch
  guarded by a lock). All callers block on the same initialization.
- Each language has its own lazy cell with its own lock. The first caller
  for a language performs the load; concurrent callers for that language
  wait for it and receive the same handle (single flight). Loads for other
  languages proceed independently.
- An unknown identifier raises ``GrammarError.not_found`` with the supported
  set. This is a configuration gap and halts the run; per-file problems
  never reach this layer.

Usage::

    handle = acquire_parser("python")
    tree = handle.parse(source_text)
    root = tree.root_node
"""

from __future__ import annotations

import importlib
import threading
from collections.abc import Callable
from typing import Any

import tree_sitter

from codeatlas.analysis._internal.parsing.packs import PACKS, GrammarPack
from codeatlas.core.errors import GrammarError
from codeatlas.core.logging import get_logger

log = get_logger(__name__)

LanguageLoader = Callable[[GrammarPack], Any]


def _load_language(pack: GrammarPack) -> tree_sitter.Language:
    """Import a grammar wheel and wrap its language pointer."""
    try:
        mod = importlib.import_module(pack.grammar_module)
        lang_fn = getattr(mod, pack.loader_name)
    except (ImportError, AttributeError) as err:
        raise GrammarError.load_failed(
            pack.name, f"{pack.grammar_package}>={pack.min_version} is not installed"
        ) from err
    return tree_sitter.Language(lang_fn())


class ParserHandle:
    """A loaded grammar. Safe to share; each parse uses its own parser."""

    __slots__ = ("language", "ts_language")

    def __init__(self, language: str, ts_language: Any) -> None:
        self.language = language
        self.ts_language = ts_language

    def parse(self, content: str | bytes) -> tree_sitter.Tree:
        data = content.encode("utf-8") if isinstance(content, str) else content
        parser = tree_sitter.Parser()
        parser.language = self.ts_language
        return parser.parse(data)

    def __repr__(self) -> str:
        return f"ParserHandle(language={self.language!r})"


class _LazyGrammar:
    """Thread-safe lazy cell holding one language's handle (or its load error)."""

    def __init__(self, pack: GrammarPack, loader: LanguageLoader) -> None:
        self._pack = pack
        self._loader = loader
        self._lock = threading.Lock()
        self._handle: ParserHandle | None = None
        self._error: GrammarError | None = None
        self.load_count = 0

    def get(self) -> ParserHandle:
        handle = self._handle
        if handle is not None:
            return handle

        with self._lock:
            if self._handle is None and self._error is None:
                self.load_count += 1
                try:
                    ts_language = self._loader(self._pack)
                except GrammarError as err:
                    self._error = err
                else:
                    self._handle = ParserHandle(self._pack.name, ts_language)
                    log.debug("grammar_loaded", language=self._pack.name)

            if self._error is not None:
                raise self._error
            assert self._handle is not None
            return self._handle


class GrammarRuntime:
    """Process-scoped registry of lazily loaded grammars."""

    def __init__(
        self,
        packs: dict[str, GrammarPack] | None = None,
        loader: LanguageLoader = _load_language,
    ) -> None:
        self._packs = dict(PACKS if packs is None else packs)
        self._loader = loader
        self._init_lock = threading.Lock()
        self._initialized = False
        self._cells: dict[str, _LazyGrammar] = {}
        self.init_count = 0

    def _ensure_initialized(self) -> None:
        if self._initialized:
            return
        with self._init_lock:
            if self._initialized:
                return
            self.init_count += 1
            self._cells = {
                name: _LazyGrammar(pack, self._loader) for name, pack in self._packs.items()
            }
            self._initialized = True
            log.debug("grammar_runtime_initialized", languages=sorted(self._cells))

    def supported_languages(self) -> list[str]:
        return sorted(self._packs)

    def supports(self, language: str) -> bool:
        return language in self._packs

    def acquire_parser(self, language: str) -> ParserHandle:
        """Return the handle for a language, loading its grammar on first use.

        Raises:
            GrammarError: Unknown language, or grammar wheel not installed.
        """
        self._ensure_initialized()
        cell = self._cells.get(language)
        if cell is None:
            raise GrammarError.not_found(language, self.supported_languages())
        return cell.get()

    def load_count(self, language: str) -> int:
        """How many times a language's grammar load was attempted."""
        cell = self._cells.get(language)
        return cell.load_count if cell is not None else 0


_runtime: GrammarRuntime | None = None
_runtime_lock = threading.Lock()


def get_runtime() -> GrammarRuntime:
    """Get the process-wide grammar runtime."""
    global _runtime
    if _runtime is None:
        with _runtime_lock:
            if _runtime is None:
                _runtime = GrammarRuntime()
    return _runtime


def acquire_parser(language: str) -> ParserHandle:
    return get_runtime().acquire_parser(language)


def supported_languages() -> list[str]:
    return get_runtime().supported_languages()
