"""Tests for per-file module assembly."""

from __future__ import annotations

import pytest

from codeatlas.analysis._internal.assembly import ModuleAssembler, count_lines
from codeatlas.analysis._internal.extraction import AdapterRegistry
from codeatlas.analysis._internal.extraction.text import TextAdapter
from codeatlas.analysis.models import (
    ModuleInfo,
    ParserResult,
    SkippedFile,
    SourceLocation,
    Symbol,
    SymbolKind,
)
from codeatlas.core.errors import ErrorCode, GrammarError
from codeatlas.core.hashing import compute_content_hash


class _StaticAdapter:
    language = "python"

    def parse(self, content: str, file_path: str) -> ParserResult:
        return ParserResult(
            symbols=[
                Symbol(
                    id=f"{file_path}:main",
                    name="main",
                    kind=SymbolKind.FUNCTION,
                    exported=True,
                    location=SourceLocation(file=file_path, line=1, column=1),
                )
            ]
        )


class _ExplodingAdapter:
    language = "python"

    def parse(self, content: str, file_path: str) -> ParserResult:
        raise ValueError("boom")


class _MissingGrammarAdapter:
    language = "python"

    def parse(self, content: str, file_path: str) -> ParserResult:
        raise GrammarError.load_failed("python", "not installed")


def _assembler(adapter: object | None = None) -> ModuleAssembler:
    registry = AdapterRegistry(fallback=TextAdapter())
    if adapter is not None:
        registry.register(adapter)  # type: ignore[arg-type]
    return ModuleAssembler(registry)


class TestCountLines:
    @pytest.mark.parametrize(
        ("content", "expected"),
        [("", 1), ("a", 1), ("a\n", 2), ("a\nb", 2), ("a\r\nb\r\n", 3)],
    )
    def test_counts_newline_separated_lines(self, content: str, expected: int) -> None:
        assert count_lines(content) == expected


class TestModuleAssembler:
    def test_builds_module_info(self) -> None:
        # Given a file handled by a registered adapter
        content = "def main():\n    pass\n"

        # When
        module = _assembler(_StaticAdapter()).assemble("src/app.py", "python", content)

        # Then the adapter output is wrapped with file metadata
        assert isinstance(module, ModuleInfo)
        assert module.file_path == "src/app.py"
        assert module.language == "python"
        assert [s.name for s in module.symbols] == ["main"]
        assert module.line_count == 3
        assert module.file_size == len(content.encode("utf-8"))
        assert module.content_hash == compute_content_hash(content)
        assert module.analyzed_at

    def test_explicit_file_size_wins(self) -> None:
        module = _assembler(_StaticAdapter()).assemble("a.py", "python", "x", file_size=99)
        assert isinstance(module, ModuleInfo)
        assert module.file_size == 99

    def test_adapter_failure_skips_file(self) -> None:
        outcome = _assembler(_ExplodingAdapter()).assemble("src/app.py", "python", "x")

        assert isinstance(outcome, SkippedFile)
        assert outcome.path == "src/app.py"
        assert outcome.reason == "Failed to extract src/app.py (python): boom"

    def test_grammar_error_propagates(self) -> None:
        with pytest.raises(GrammarError) as exc_info:
            _assembler(_MissingGrammarAdapter()).assemble("src/app.py", "python", "x")
        assert exc_info.value.code == ErrorCode.GRAMMAR_LOAD_FAILED

    def test_unknown_language_is_skipped(self) -> None:
        outcome = _assembler().assemble("prog.cob", "cobol", "IDENTIFICATION DIVISION.")

        assert isinstance(outcome, SkippedFile)
        assert outcome.reason == "unsupported language 'cobol'"

    def test_known_language_without_adapter_uses_fallback(self) -> None:
        module = _assembler().assemble("Main.kt", "kotlin", "// Entry point\nfun main() {}\n")

        assert isinstance(module, ModuleInfo)
        assert module.symbols == []
        assert module.module_doc is not None
        assert module.module_doc.summary == "Entry point"

    def test_unencodable_content_is_skipped(self) -> None:
        # Given content holding a lone surrogate left over from a lossy decode
        content = "echo \udce9\n"

        # When
        outcome = _assembler().assemble("bin/run.sh", "shell", content)

        # Then the file is skipped rather than failing the caller
        assert isinstance(outcome, SkippedFile)
        assert outcome.path == "bin/run.sh"
        assert outcome.reason.startswith("Failed to extract bin/run.sh (shell): invalid encoding")
