"""Tests for the grammar runtime.

Covers:
- lazy, single-flight grammar loading under concurrency
- one-shot runtime initialization
- GrammarError for unknown and uninstalled languages
- parsing with a real grammar
"""

from __future__ import annotations

import threading
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Any

import pytest

from codeatlas.analysis._internal.parsing import (
    PACKS,
    GrammarPack,
    GrammarRuntime,
    ParserHandle,
    acquire_parser,
    get_runtime,
    is_grammar_installed,
)
from codeatlas.core.errors import ErrorCode, GrammarError


class _CountingLoader:
    """Fake loader that records calls and takes a moment to finish."""

    def __init__(self, delay: float = 0.05) -> None:
        self.delay = delay
        self.calls: list[str] = []
        self._lock = threading.Lock()

    def __call__(self, pack: GrammarPack) -> Any:
        with self._lock:
            self.calls.append(pack.name)
        time.sleep(self.delay)
        return object()


def _packs(*names: str) -> dict[str, GrammarPack]:
    return {name: PACKS[name] for name in names}


class TestSingleFlightLoading:
    """Concurrent first use loads each grammar once."""

    def test_given_concurrent_callers_when_acquire_then_loaded_once(self) -> None:
        # Given
        loader = _CountingLoader()
        runtime = GrammarRuntime(packs=_packs("python"), loader=loader)
        barrier = threading.Barrier(8)

        def acquire() -> ParserHandle:
            barrier.wait()
            return runtime.acquire_parser("python")

        # When
        with ThreadPoolExecutor(max_workers=8) as executor:
            handles = list(executor.map(lambda _: acquire(), range(8)))

        # Then
        assert loader.calls == ["python"]
        assert runtime.load_count("python") == 1
        assert all(h is handles[0] for h in handles)

    def test_given_concurrent_callers_when_acquire_then_runtime_initialized_once(self) -> None:
        # Given
        runtime = GrammarRuntime(packs=_packs("python", "go"), loader=_CountingLoader(0))
        barrier = threading.Barrier(6)

        def acquire(i: int) -> ParserHandle:
            barrier.wait()
            return runtime.acquire_parser("python" if i % 2 else "go")

        # When
        with ThreadPoolExecutor(max_workers=6) as executor:
            list(executor.map(acquire, range(6)))

        # Then
        assert runtime.init_count == 1

    def test_given_two_languages_when_acquire_then_loaded_independently(self) -> None:
        loader = _CountingLoader(0)
        runtime = GrammarRuntime(packs=_packs("python", "go"), loader=loader)

        py = runtime.acquire_parser("python")
        go = runtime.acquire_parser("go")
        runtime.acquire_parser("python")

        assert sorted(loader.calls) == ["go", "python"]
        assert py.language == "python"
        assert go.language == "go"

    def test_given_no_acquire_when_created_then_nothing_loaded(self) -> None:
        loader = _CountingLoader(0)
        runtime = GrammarRuntime(packs=_packs("python"), loader=loader)

        assert loader.calls == []
        assert runtime.init_count == 0
        assert runtime.load_count("python") == 0


class TestGrammarErrors:
    """Configuration gaps surface as GrammarError."""

    def test_given_unknown_language_when_acquire_then_not_found(self) -> None:
        runtime = GrammarRuntime(packs=_packs("go", "python"), loader=_CountingLoader(0))

        with pytest.raises(GrammarError) as exc_info:
            runtime.acquire_parser("cobol")

        assert exc_info.value.code == ErrorCode.GRAMMAR_NOT_FOUND
        assert "cobol" in exc_info.value.message
        assert "go, python" in exc_info.value.message

    def test_given_failing_loader_when_acquire_twice_then_same_error_without_retry(self) -> None:
        # Given
        attempts: list[str] = []

        def failing(pack: GrammarPack) -> Any:
            attempts.append(pack.name)
            raise GrammarError.load_failed(pack.name, "not installed")

        runtime = GrammarRuntime(packs=_packs("rust"), loader=failing)

        # When / Then
        with pytest.raises(GrammarError) as first:
            runtime.acquire_parser("rust")
        with pytest.raises(GrammarError) as second:
            runtime.acquire_parser("rust")

        assert first.value.code == ErrorCode.GRAMMAR_LOAD_FAILED
        assert second.value is first.value
        assert attempts == ["rust"]

    def test_given_missing_grammar_module_when_load_then_load_failed(self) -> None:
        pack = GrammarPack(
            name="imaginary",
            grammar_package="tree-sitter-imaginary",
            grammar_module="tree_sitter_imaginary_does_not_exist",
            min_version="0.1.0",
        )
        runtime = GrammarRuntime(packs={"imaginary": pack})

        with pytest.raises(GrammarError, match="tree-sitter-imaginary>=0.1.0"):
            runtime.acquire_parser("imaginary")

    def test_supported_languages_sorted(self) -> None:
        runtime = GrammarRuntime(packs=_packs("rust", "go", "python"), loader=_CountingLoader(0))
        assert runtime.supported_languages() == ["go", "python", "rust"]
        assert runtime.supports("go")
        assert not runtime.supports("yaml")


class TestRealGrammars:
    """Parsing with the installed grammar wheels."""

    def test_process_runtime_is_shared(self) -> None:
        assert get_runtime() is get_runtime()

    @pytest.mark.parametrize("language", sorted(PACKS))
    def test_all_grammars_installed(self, language: str) -> None:
        assert is_grammar_installed(language)

    def test_parse_python(self) -> None:
        tree = acquire_parser("python").parse("def f():\n    return 1\n")

        root = tree.root_node
        assert root.type == "module"
        assert root.children[0].type == "function_definition"
        assert not root.has_error

    def test_parse_typescript_with_jsx(self) -> None:
        tree = acquire_parser("typescript").parse(
            "export const App = (): JSX.Element => <div>hi</div>;\n"
        )
        assert tree.root_node.type == "program"
        assert not tree.root_node.has_error

    def test_handle_is_reused(self) -> None:
        assert acquire_parser("go") is acquire_parser("go")

    def test_is_grammar_installed_for_unknown(self) -> None:
        assert not is_grammar_installed("yaml")
