"""Extraction adapter protocol and registry.

Defines the interface for language-specific extraction adapters and provides
a registry for looking up adapters by language identifier.

Each adapter turns one file's content into a ``ParserResult``. Adapters are
stateless between calls and must not raise on syntactically invalid input;
they return whatever partial result the tree (or text) supports.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from codeatlas.analysis.models import ParserResult


@runtime_checkable
class LanguageAdapter(Protocol):
    """Protocol for language-specific extraction."""

    @property
    def language(self) -> str:
        """The language identifier this adapter handles."""
        ...

    def parse(self, content: str, file_path: str) -> ParserResult:
        """Extract symbols, imports, exports and module doc from one file."""
        ...


class AdapterRegistry:
    """Registry of language-specific extraction adapters."""

    def __init__(self, fallback: LanguageAdapter | None = None) -> None:
        self._adapters: dict[str, LanguageAdapter] = {}
        self._fallback = fallback

    def register(self, adapter: LanguageAdapter) -> None:
        """Register an adapter for its language."""
        self._adapters[adapter.language] = adapter

    def get(self, language: str) -> LanguageAdapter | None:
        """Get adapter for language, or None."""
        return self._adapters.get(language)

    def get_or_fallback(self, language: str) -> LanguageAdapter | None:
        """Get adapter for language, or the text fallback."""
        return self._adapters.get(language, self._fallback)

    def supported_languages(self) -> list[str]:
        """List all languages with a dedicated adapter."""
        return list(self._adapters.keys())


# Global registry instance
_registry: AdapterRegistry | None = None


def get_registry() -> AdapterRegistry:
    """Get the global adapter registry, initializing if needed."""
    global _registry
    if _registry is None:
        registry = create_registry()
        _registry = registry
    return _registry


def create_registry() -> AdapterRegistry:
    """Build a registry with every built-in adapter."""
    # Import here to avoid circular imports
    from codeatlas.analysis._internal.extraction.csharp import CSharpAdapter
    from codeatlas.analysis._internal.extraction.go import GoAdapter
    from codeatlas.analysis._internal.extraction.hcl import HclAdapter
    from codeatlas.analysis._internal.extraction.java import JavaAdapter
    from codeatlas.analysis._internal.extraction.markdown import MarkdownAdapter
    from codeatlas.analysis._internal.extraction.php import PhpAdapter
    from codeatlas.analysis._internal.extraction.python import PythonAdapter
    from codeatlas.analysis._internal.extraction.ruby import RubyAdapter
    from codeatlas.analysis._internal.extraction.rust import RustAdapter
    from codeatlas.analysis._internal.extraction.shell import ShellAdapter
    from codeatlas.analysis._internal.extraction.sql import SqlAdapter
    from codeatlas.analysis._internal.extraction.text import TextAdapter
    from codeatlas.analysis._internal.extraction.typescript import (
        JavaScriptAdapter,
        TypeScriptAdapter,
    )
    from codeatlas.analysis._internal.extraction.yaml_config import YamlAdapter

    registry = AdapterRegistry(fallback=TextAdapter())
    for adapter in (
        TypeScriptAdapter(),
        JavaScriptAdapter(),
        PythonAdapter(),
        GoAdapter(),
        RustAdapter(),
        JavaAdapter(),
        CSharpAdapter(),
        RubyAdapter(),
        PhpAdapter(),
        ShellAdapter(),
        SqlAdapter(),
        YamlAdapter(),
        MarkdownAdapter(),
        HclAdapter(),
    ):
        registry.register(adapter)
    return registry


__all__ = [
    "AdapterRegistry",
    "LanguageAdapter",
    "create_registry",
    "get_registry",
]
