"""Tests for the adapter registry."""

from __future__ import annotations

from codeatlas.analysis._internal.extraction import (
    AdapterRegistry,
    LanguageAdapter,
    create_registry,
    get_registry,
)
from codeatlas.analysis._internal.extraction.text import TextAdapter
from codeatlas.analysis.models import ParserResult

BUILTIN_LANGUAGES = {
    "typescript",
    "javascript",
    "python",
    "go",
    "rust",
    "java",
    "csharp",
    "ruby",
    "php",
    "shell",
    "sql",
    "yaml",
    "markdown",
    "hcl",
}


class _StubAdapter:
    language = "cobol"

    def parse(self, content: str, file_path: str) -> ParserResult:
        return ParserResult()


class TestAdapterRegistry:
    def test_register_and_get(self) -> None:
        registry = AdapterRegistry()
        adapter = _StubAdapter()

        registry.register(adapter)

        assert registry.get("cobol") is adapter
        assert registry.supported_languages() == ["cobol"]

    def test_get_unknown_returns_none(self) -> None:
        assert AdapterRegistry().get("cobol") is None

    def test_fallback(self) -> None:
        fallback = TextAdapter()
        registry = AdapterRegistry(fallback=fallback)

        assert registry.get("swift") is None
        assert registry.get_or_fallback("swift") is fallback

    def test_stub_satisfies_protocol(self) -> None:
        assert isinstance(_StubAdapter(), LanguageAdapter)


class TestBuiltinRegistry:
    def test_all_builtin_adapters_registered(self) -> None:
        registry = create_registry()
        assert set(registry.supported_languages()) == BUILTIN_LANGUAGES

    def test_adapters_report_their_language(self) -> None:
        registry = create_registry()
        for language in BUILTIN_LANGUAGES:
            adapter = registry.get(language)
            assert adapter is not None
            assert adapter.language == language
            assert isinstance(adapter, LanguageAdapter)

    def test_fallback_is_text(self) -> None:
        assert isinstance(create_registry().get_or_fallback("kotlin"), TextAdapter)

    def test_global_registry_is_shared(self) -> None:
        assert get_registry() is get_registry()
